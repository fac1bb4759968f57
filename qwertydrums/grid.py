"""Grid and tempo arithmetic.

All functions are pure. A grid is identified by its denominator (8, 16 or 32
for ``1/8``, ``1/16`` and ``1/32``) and the time signature is fixed at 4/4.

At 120 BPM on a 1/16 grid:

- 4 steps per beat, 16 steps per bar
- 125 ms per step, 2000 ms per bar
"""

import dataclasses
import math
import typing

import qwertydrums.constants.timing


def parse_grid (text: str) -> int:

	"""
	Return the denominator for a grid written as ``1/8``, ``1/16`` or ``1/32``.

	Raises:
		ValueError: If the text is not one of the supported grids.
	"""

	numerator, sep, denominator = text.strip().partition("/")

	if sep != "/" or numerator.strip() != "1" or not denominator.strip().isdigit():
		raise ValueError(f"Unsupported grid {text!r}")

	value = int(denominator)

	if value not in qwertydrums.constants.timing.SUPPORTED_DENOMINATORS:
		raise ValueError(f"Unsupported grid {text!r}")

	return value


def format_grid (denominator: int) -> str:

	"""Return the textual form of a grid denominator, e.g. ``1/16``."""

	return f"1/{denominator}"


def _check (denominator: int, bpm: typing.Optional[float] = None) -> None:

	if denominator not in qwertydrums.constants.timing.SUPPORTED_DENOMINATORS:
		raise ValueError(f"Unsupported grid denominator {denominator}")

	if bpm is not None and bpm <= 0:
		raise ValueError("BPM must be positive")


def steps_per_beat (denominator: int) -> float:

	_check(denominator)
	return denominator / 4


def steps_per_bar (denominator: int) -> int:

	return int(steps_per_beat(denominator) * qwertydrums.constants.timing.BEATS_PER_BAR)


def step_ms (denominator: int, bpm: float) -> float:

	"""Duration of one grid step in milliseconds."""

	_check(denominator, bpm)
	return (60000.0 / bpm) / steps_per_beat(denominator)


def bar_ms (denominator: int, bpm: float) -> float:

	"""Duration of one 4/4 bar in milliseconds."""

	return step_ms(denominator, bpm) * steps_per_bar(denominator)


@dataclasses.dataclass(frozen=True)
class GridTiming:

	"""
	The derived quantities for one grid at one tempo.

	The compiler builds one of these per track (a track may override the grid
	and its steps per bar) and one per section from the header grid.
	"""

	steps_per_beat: float
	steps_per_bar: int
	step_ms: float
	bar_ms: float

	@property
	def micro_ms (self) -> float:

		"""Duration of one micro-step (a quarter of a step)."""

		return self.step_ms / qwertydrums.constants.timing.MICRO_STEPS_PER_STEP

	@classmethod
	def for_grid (cls, denominator: int, bpm: float) -> "GridTiming":

		return cls(
			steps_per_beat = steps_per_beat(denominator),
			steps_per_bar = steps_per_bar(denominator),
			step_ms = step_ms(denominator, bpm),
			bar_ms = bar_ms(denominator, bpm),
		)


def loop_length_ms (bpm: float, bars: int) -> int:

	"""
	Nominal length of one pass over ``bars`` bars, rounded to whole milliseconds.

	A player waits this long between passes when looping a score.
	"""

	if bpm <= 0:
		raise ValueError("BPM must be positive")

	return math.floor(bars * qwertydrums.constants.timing.BEATS_PER_BAR * (60000.0 / bpm) + 0.5)
