"""Score text parser.

Reads score text line by line and builds a :class:`qwertydrums.score.Score`.

**Line forms** (checked in this order, keywords in any case):
- ``%humanize=±12ms`` - timing jitter bound.
- ``ORDER: Intro x1, Main x4, Outro x∞`` - play order (``∞`` plays once).
- ``[Main]`` - start or resume a section.
- ``BPM: 120``, ``BARS: 2``, ``GRID: 1/16``, ``SWING: 60``, ``SEED: 7`` - header.
- ``Q: x...x...`` or ``E@1/32,LEN=12: ...`` - a track line.

Blank lines and ``#`` comments are skipped. Any other line is dropped and
parsing carries on, so a typo never costs the rest of the score. A line
that *is* recognised but carries an unusable value (``BPM: fast``) raises
:class:`qwertydrums.score.ScoreParseError` naming the line and the field.

Example:
	```python
	score = parse(\"\"\"
	BPM: 120
	[Main]
	Q: x...x...x...x...
	W: ....X.......X...
	ORDER: Main x2
	\"\"\")
	```
"""

import dataclasses
import logging
import math
import re
import typing

import qwertydrums.constants.instruments
import qwertydrums.grid
import qwertydrums.score


logger = logging.getLogger(__name__)


_HUMANIZE = re.compile(r"^%humanize=\s*±?(\d+)ms$", re.IGNORECASE)
_ORDER = re.compile(r"^ORDER\s*:(.*)$", re.IGNORECASE)
_ORDER_ENTRY = re.compile(r"^(.*?)\s+x(\d+|∞)$", re.IGNORECASE)
_SECTION = re.compile(r"^\[(.+?)\]$")
_HEADER = re.compile(r"^(BPM|BARS|GRID|SWING|SEED)\s*:\s*(.+)$", re.IGNORECASE)
_TRACK = re.compile(
	r"^([" + "".join(qwertydrums.constants.instruments.INSTRUMENTS) + r"])(?:@([^:]+))?\s*:\s*(.+)$",
	re.IGNORECASE
)
_MOD_GRID = re.compile(r"^GRID\s*=\s*(\d+/\d+)$", re.IGNORECASE)
_MOD_LEN = re.compile(r"^LEN\s*=\s*(\d+)$", re.IGNORECASE)
_GRID_SHORTHAND = re.compile(r"^\d+/\d+$")

INFINITE = "∞"


@dataclasses.dataclass(frozen=True)
class HumanizeLine:

	milliseconds: int


@dataclasses.dataclass(frozen=True)
class OrderLine:

	names: typing.Tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class SectionLine:

	name: str


@dataclasses.dataclass(frozen=True)
class HeaderLine:

	"""``field`` is the header attribute name, ``value`` already converted."""

	field: str
	value: typing.Union[int, float]


@dataclasses.dataclass(frozen=True)
class TrackEntry:

	track: qwertydrums.score.TrackLine


ScoreLine = typing.Union[HumanizeLine, OrderLine, SectionLine, HeaderLine, TrackEntry]


def classify_line (line: str, line_number: int = 0) -> typing.Optional[ScoreLine]:

	"""
	Classify one trimmed, non-comment line.

	Returns None when the line matches no known form.

	Raises:
		qwertydrums.score.ScoreParseError: A header or track line has an unusable value.
	"""

	match = _HUMANIZE.match(line)
	if match:
		return HumanizeLine(int(match.group(1)))

	match = _ORDER.match(line)
	if match:
		return OrderLine(tuple(expand_order(match.group(1).split(":")[0])))

	match = _SECTION.match(line)
	if match:
		return SectionLine(match.group(1).strip())

	match = _HEADER.match(line)
	if match:
		return _header_line(match.group(1).upper(), match.group(2).strip(), line, line_number)

	match = _TRACK.match(line)
	if match:
		modifier = _track_modifier(match.group(2), line, line_number)
		pattern = "".join(match.group(3).split())
		return TrackEntry(qwertydrums.score.TrackLine(instrument=match.group(1).upper(), modifier=modifier, pattern=pattern))

	return None


def expand_order (text: str) -> typing.List[str]:

	"""
	Expand ``Name xN`` entries into a flat list of section names.

	``xN`` repeats a name N times and ``x∞`` adds it once. Entries that do not
	fit the form are skipped.
	"""

	names: typing.List[str] = []

	for part in text.split(","):

		part = part.strip()
		if not part:
			continue

		match = _ORDER_ENTRY.match(part)
		if not match:
			logger.debug(f"Skipping order entry {part!r}")
			continue

		name = match.group(1).strip()
		count = match.group(2)

		if count == INFINITE:
			names.append(name)
		else:
			names.extend([name] * int(count))

	return names


def _header_line (key: str, value: str, line: str, line_number: int) -> HeaderLine:

	def fail (reason: str) -> qwertydrums.score.ScoreParseError:
		return qwertydrums.score.ScoreParseError(line_number, key, line, reason)

	if key == "BPM":
		bpm = _to_float(value)
		if bpm is None or bpm <= 0:
			raise fail("expected a positive number")
		return HeaderLine("bpm", bpm)

	if key == "BARS":
		bars = _to_int(value)
		if bars is None or bars < 1:
			raise fail("expected a positive integer")
		return HeaderLine("bars", bars)

	if key == "GRID":
		try:
			return HeaderLine("grid", qwertydrums.grid.parse_grid(value))
		except ValueError:
			raise fail("expected 1/8, 1/16 or 1/32") from None

	if key == "SWING":
		swing = _to_float(value)
		if swing is None:
			raise fail("expected a number")
		return HeaderLine("swing", swing)

	seed = _to_int(value)
	if seed is None:
		raise fail("expected an integer")
	return HeaderLine("seed", seed)


def _track_modifier (text: typing.Optional[str], line: str, line_number: int) -> qwertydrums.score.TrackModifier:

	"""
	Read the comma-separated modifiers after ``@``.

	Accepts a bare grid (``1/32``), ``GRID=1/32`` and ``LEN=12``. Other parts
	are ignored.
	"""

	if not text:
		return qwertydrums.score.TrackModifier()

	grid: typing.Optional[int] = None
	length: typing.Optional[int] = None

	for part in (p.strip() for p in text.split(",")):

		grid_text: typing.Optional[str] = None

		if _GRID_SHORTHAND.match(part):
			grid_text = part
		else:
			match = _MOD_GRID.match(part)
			if match:
				grid_text = match.group(1)

		if grid_text is not None:
			try:
				grid = qwertydrums.grid.parse_grid(grid_text)
			except ValueError:
				raise qwertydrums.score.ScoreParseError(line_number, "GRID", line, "expected 1/8, 1/16 or 1/32") from None
			continue

		match = _MOD_LEN.match(part)
		if match:
			length = int(match.group(1))
			if length < 1:
				raise qwertydrums.score.ScoreParseError(line_number, "LEN", line, "expected a positive step count")

	return qwertydrums.score.TrackModifier(grid=grid, length=length)


def _to_float (text: str) -> typing.Optional[float]:

	try:
		value = float(text)
	except ValueError:
		return None

	return value if math.isfinite(value) else None


def _to_int (text: str) -> typing.Optional[int]:

	try:
		return int(text)
	except ValueError:
		return None


def parse (text: str) -> qwertydrums.score.Score:

	"""
	Parse score text into a :class:`qwertydrums.score.Score`.

	Sections are created the first time they are named. A ``Default``
	section always exists and collects track lines written before any
	section header.
	"""

	header = qwertydrums.score.Header()
	sections: typing.Dict[str, qwertydrums.score.Section] = {
		qwertydrums.score.DEFAULT_SECTION: qwertydrums.score.Section(qwertydrums.score.DEFAULT_SECTION)
	}
	current = sections[qwertydrums.score.DEFAULT_SECTION]
	order: typing.Optional[typing.List[str]] = None

	for line_number, raw in enumerate(text.replace("\t", "  ").splitlines(), start=1):

		line = raw.strip()
		if not line or line.startswith("#"):
			continue

		entry = classify_line(line, line_number)

		if entry is None:
			logger.debug(f"Dropping unrecognised line {line_number}: {line!r}")

		elif isinstance(entry, HumanizeLine):
			header = dataclasses.replace(header, humanize_ms=entry.milliseconds)

		elif isinstance(entry, OrderLine):
			order = list(entry.names)

		elif isinstance(entry, SectionLine):
			if entry.name not in sections:
				sections[entry.name] = qwertydrums.score.Section(entry.name)
			current = sections[entry.name]

		elif isinstance(entry, HeaderLine):
			header = dataclasses.replace(header, **{entry.field: entry.value})

		else:
			current.tracks.append(entry.track)

	return qwertydrums.score.Score(header=header, sections=sections, order=order)


def load (path: str) -> qwertydrums.score.Score:

	"""
	Read and parse a score file.

	Raises:
		qwertydrums.score.ScoreReadError: The file cannot be read or is not UTF-8.
		qwertydrums.score.ScoreParseError: The score has an unusable value.
	"""

	try:
		with open(path, "r", encoding="utf-8") as f:
			text = f.read()
	except UnicodeDecodeError as e:
		raise qwertydrums.score.ScoreReadError(f"{path} is not valid UTF-8: {e}") from e
	except OSError as e:
		raise qwertydrums.score.ScoreReadError(f"Cannot read {path}: {e}") from e

	return parse(text)
