"""Score compiler.

Turns a parsed score into a flat, time-ordered list of :class:`TimedEvent`.

For every section in the play order the compiler renders each track on its
own grid, gates each hit by its probability, then adds swing, micro-step
shifts and humanize jitter. Each section's events are sorted and appended to
the output, and the cursor moves on by exactly one header-sized section
(``BARS`` bars of the header grid at the header tempo). Tracks that run longer
than that spill into the next section's window; they are not cut off.

Finally the whole list is shifted so the earliest event sits at 0 ms.

Example:
	```python
	score = qwertydrums.parser.parse(text)
	events = compile_score(score)

	for event in events:
		print(event.time_ms, event.instrument, event.velocity)
	```
"""

import dataclasses
import logging
import math
import typing

import qwertydrums.constants.timing
import qwertydrums.constants.velocity
import qwertydrums.expander
import qwertydrums.grid
import qwertydrums.rng
import qwertydrums.score
import qwertydrums.tokenizer


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class TimedEvent:

	"""
	A hit scheduled at an absolute offset from the start of playback.

	``time_ms`` may be fractional; round it where the events are played.
	"""

	time_ms: float
	instrument: str
	velocity: int


def swing_offset_ms (step_index: int, step_ms: float, swing: float) -> float:

	"""
	Delay for a step under swing.

	Even steps are never moved. Odd steps are delayed by up to half a step,
	scaling from 0 at ``swing=50`` to half a step at ``swing=100``.
	"""

	if swing <= qwertydrums.constants.timing.SWING_NEUTRAL:
		return 0.0

	if step_index % 2 == 1:
		amount = (swing - qwertydrums.constants.timing.SWING_NEUTRAL) / qwertydrums.constants.timing.SWING_NEUTRAL
		return amount * (step_ms * 0.5)

	return 0.0


class Compiler:

	"""
	Compiles sections of one score under one header.

	When no generator is passed, every call to :meth:`compile` starts a fresh
	one from ``header.seed`` (unseeded when the header has no seed), so a
	seeded header compiles to the same events on every call.

	Parameters:
		header: The score header. Never modified.
		rng: Optional random source with a ``random()`` method. An injected
			source is shared: its draw position carries over from one
			compile to the next.
	"""

	def __init__ (self, header: qwertydrums.score.Header, rng: typing.Optional[qwertydrums.rng.RandomSource] = None) -> None:

		self.header = header
		self._shared_rng = rng
		self.rng: qwertydrums.rng.RandomSource = rng if rng is not None else qwertydrums.rng.make_rng(header.seed)

	def section_ms (self) -> float:

		"""Length of one section: header bars of the header grid at the header tempo."""

		return self.header.bars * qwertydrums.grid.bar_ms(self.header.grid, self.header.bpm)

	def compile (self, sections: typing.Mapping[str, qwertydrums.score.Section], order: typing.Optional[typing.Sequence[str]] = None) -> typing.List[TimedEvent]:

		"""
		Compile sections into a time-sorted event list starting at 0 ms.

		Parameters:
			sections: Sections by name.
			order: Section names to play, repeats already expanded. When empty
				or None every section plays once in mapping order. Names with no
				matching section are skipped.
		"""

		if self._shared_rng is None:
			self.rng = qwertydrums.rng.make_rng(self.header.seed)

		names = list(order) if order else list(sections.keys())

		events: typing.List[TimedEvent] = []
		cursor = 0.0
		section_ms = self.section_ms()

		for name in names:

			section = sections.get(name)

			if section is None:
				logger.debug(f"Skipping unknown section {name!r}")
				continue

			section_events: typing.List[TimedEvent] = []

			for track in section.tracks:
				section_events.extend(self.render_track(track, cursor))

			section_events.sort(key=lambda e: e.time_ms)
			events.extend(section_events)

			logger.debug(f"Section {name!r} at {cursor:.2f} ms: {len(section_events)} events")

			cursor += section_ms

		return normalize(events)

	def render_track (self, track: qwertydrums.score.TrackLine, cursor: float = 0.0) -> typing.List[TimedEvent]:

		"""
		Render one track line starting at ``cursor`` milliseconds.

		The track renders at least ``header.bars`` bars, or more when its
		pattern is longer. Steps past the end of the pattern are silent.
		"""

		denominator = track.modifier.grid or self.header.grid
		timing = qwertydrums.grid.GridTiming.for_grid(denominator, self.header.bpm)
		steps_per_bar = track.modifier.length or timing.steps_per_bar

		cells = qwertydrums.tokenizer.tokenize(track.pattern)
		total_steps = len(cells)
		bars_in_line = math.ceil(total_steps / steps_per_bar) or 1
		bars = max(bars_in_line, self.header.bars)

		events: typing.List[TimedEvent] = []

		for bar in range(bars):

			bar_start = cursor + bar * steps_per_bar * timing.step_ms

			for step in range(steps_per_bar):

				index = bar * steps_per_bar + step
				if index >= total_steps:
					break

				hits = qwertydrums.expander.expand_cell(track.instrument, cells[index])
				if not hits:
					continue

				swing = swing_offset_ms(step, timing.step_ms, self.header.swing)

				for hit in hits:

					if not self._passes(hit):
						continue

					time_ms = (
						bar_start
						+ step * timing.step_ms
						+ swing
						+ hit.micro_shift * timing.micro_ms
						+ self._jitter()
					)

					events.append(TimedEvent(time_ms=time_ms, instrument=hit.instrument, velocity=hit.velocity))

		return events

	def _passes (self, hit: qwertydrums.expander.HitToken) -> bool:

		"""Probability gate. Draws only for hits below 100%."""

		if hit.probability >= qwertydrums.constants.velocity.MAX_PROBABILITY:
			return True

		return self.rng.random() * 100 <= hit.probability

	def _jitter (self) -> float:

		"""Humanize offset in ``[-humanize_ms, +humanize_ms)``. Draws only when humanize is set."""

		if not self.header.humanize_ms:
			return 0.0

		return (self.rng.random() * 2 - 1) * self.header.humanize_ms


def normalize (events: typing.List[TimedEvent]) -> typing.List[TimedEvent]:

	"""Shift every event so the earliest one is at 0 ms. Order is kept."""

	if not events:
		return []

	earliest = min(e.time_ms for e in events)

	if earliest == 0:
		return list(events)

	return [dataclasses.replace(e, time_ms=e.time_ms - earliest) for e in events]


def compile_score (
	score: qwertydrums.score.Score,
	seed: typing.Optional[int] = None,
	rng: typing.Optional[qwertydrums.rng.RandomSource] = None
) -> typing.List[TimedEvent]:

	"""
	Compile a parsed score with its own sections and order.

	Parameters:
		score: The parsed score.
		seed: Overrides the header seed for this compile (a player looping an
			unseeded score can pass a fresh seed each pass).
		rng: Random source to use instead of one built from the seed.
	"""

	header = score.header

	if seed is not None:
		header = dataclasses.replace(header, seed=seed)

	return Compiler(header, rng=rng).compile(score.sections, score.order)


def loop_length_ms (header: qwertydrums.score.Header) -> int:

	"""Nominal length of one pass over the header's bars, in whole milliseconds."""

	return qwertydrums.grid.loop_length_ms(header.bpm, header.bars)
