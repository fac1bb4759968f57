"""The structured score produced by the parser and read by the compiler.

A :class:`Score` holds one immutable :class:`Header`, the named sections in
the order they were first seen, and an optional play order already expanded
from its repeat counts (``A x2, B x1`` becomes ``["A", "A", "B"]``).
"""

import dataclasses
import typing

import qwertydrums.constants.timing


DEFAULT_SECTION = "Default"


class ScoreError (Exception):

	"""Base class for errors raised while reading or parsing a score."""


class ScoreParseError (ScoreError):

	"""
	A recognised directive carried a value that cannot be used.

	Attributes:
		line_number: 1-based line number in the score text.
		field: The directive or modifier that was rejected (e.g. ``BPM``).
		line: The offending line, trimmed.
	"""

	def __init__ (self, line_number: int, field: str, line: str, reason: str) -> None:

		self.line_number = line_number
		self.field = field
		self.line = line
		self.reason = reason

		super().__init__(f"line {line_number}: invalid {field} ({reason}): {line!r}")


class ScoreReadError (ScoreError):

	"""The score file could not be opened or is not valid UTF-8."""


@dataclasses.dataclass(frozen=True)
class Header:

	"""
	Global settings for a score.

	Attributes:
		bpm: Tempo in beats per minute.
		bars: Bars per section; also the minimum number of bars each track renders.
		grid: Default grid denominator (8, 16 or 32).
		swing: Swing amount. 50 or below is straight time.
		seed: When set, compiles are deterministic.
		humanize_ms: Maximum timing jitter in either direction, in milliseconds.
	"""

	bpm: float = qwertydrums.constants.timing.DEFAULT_BPM
	bars: int = qwertydrums.constants.timing.DEFAULT_BARS
	grid: int = qwertydrums.constants.timing.DEFAULT_DENOMINATOR
	swing: float = qwertydrums.constants.timing.DEFAULT_SWING
	seed: typing.Optional[int] = None
	humanize_ms: typing.Optional[int] = None


@dataclasses.dataclass(frozen=True)
class TrackModifier:

	"""Per-track grid and steps-per-bar overrides. None means use the header."""

	grid: typing.Optional[int] = None
	length: typing.Optional[int] = None


@dataclasses.dataclass(frozen=True)
class TrackLine:

	instrument: str
	modifier: TrackModifier
	pattern: str


@dataclasses.dataclass
class Section:

	name: str
	tracks: typing.List[TrackLine] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class Score:

	header: Header = dataclasses.field(default_factory=Header)
	sections: typing.Dict[str, Section] = dataclasses.field(default_factory=dict)
	order: typing.Optional[typing.List[str]] = None
