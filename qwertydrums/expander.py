import dataclasses
import math
import typing

import qwertydrums.constants.timing
import qwertydrums.constants.velocity
import qwertydrums.tokenizer


DEFAULT_VELOCITIES: typing.Dict[str, int] = {
	"x": qwertydrums.constants.velocity.NORMAL_VELOCITY,
	"X": qwertydrums.constants.velocity.ACCENT_VELOCITY,
	"g": qwertydrums.constants.velocity.GHOST_VELOCITY,
	"r": qwertydrums.constants.velocity.NORMAL_VELOCITY,
}


@dataclasses.dataclass(frozen=True)
class HitToken:

	"""
	One concrete hit before scheduling.

	``micro_shift`` is in micro-steps (4 per step). ``roll`` is the roll count
	the hit came from, or 0 for a single hit.
	"""

	instrument: str
	velocity: int
	probability: int
	micro_shift: int
	roll: int = 0


def clamp (value: int, low: int, high: int) -> int:

	return max(low, min(high, value))


def roll_offset (index: int, count: int) -> int:

	"""
	Micro-step offset of sub-hit ``index`` in a roll of ``count`` hits.

	Offsets spread evenly across one step and round half up, so a roll of 4
	lands on micro-steps 0, 1, 2, 3.
	"""

	spread = index * qwertydrums.constants.timing.MICRO_STEPS_PER_STEP / max(1, count)
	return math.floor(spread + 0.5)


def expand_cell (instrument: str, cell: qwertydrums.tokenizer.Cell) -> typing.List[HitToken]:

	"""
	Expand one cell into the hits it plays.

	Empty cells give nothing. A roll of two or more gives one token per
	sub-hit, all sharing velocity and probability; any other hit gives one.
	Velocity is clamped to 0-127 and probability to 0-100.
	"""

	if not isinstance(cell, qwertydrums.tokenizer.HitCell):
		return []

	velocity = DEFAULT_VELOCITIES[cell.kind]
	probability = qwertydrums.constants.velocity.MAX_PROBABILITY
	micro_shift = 0

	if cell.velocity is not None:
		velocity = clamp(cell.velocity, qwertydrums.constants.velocity.MIN_VELOCITY, qwertydrums.constants.velocity.MAX_VELOCITY)

	if cell.probability is not None:
		probability = clamp(cell.probability, qwertydrums.constants.velocity.MIN_PROBABILITY, qwertydrums.constants.velocity.MAX_PROBABILITY)

	if cell.shift is not None:
		micro_shift = cell.shift

	if cell.kind == "r" and cell.roll > 1:
		return [
			HitToken(
				instrument = instrument,
				velocity = velocity,
				probability = probability,
				micro_shift = micro_shift + roll_offset(i, cell.roll),
				roll = cell.roll,
			)
			for i in range(cell.roll)
		]

	return [HitToken(instrument=instrument, velocity=velocity, probability=probability, micro_shift=micro_shift)]
