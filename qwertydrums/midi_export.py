"""Standard MIDI File export for compiled event lists.

Writes one note on / note off pair per :class:`qwertydrums.compiler.TimedEvent`
on a single track, preceded by a tempo message taken from the score header.
Instrument symbols are mapped to General MIDI drum notes by default.
"""

import logging
import typing

import mido

import qwertydrums.compiler
import qwertydrums.constants.instruments
import qwertydrums.score


logger = logging.getLogger(__name__)


TICKS_PER_BEAT = 480
DEFAULT_NOTE_LENGTH_MS = 50.0


def _ms_to_ticks (time_ms: float, tempo: int) -> int:

	return max(0, int(round(mido.second2tick(time_ms / 1000.0, TICKS_PER_BEAT, tempo))))


def build_midi_file (
	events: typing.Sequence[qwertydrums.compiler.TimedEvent],
	header: qwertydrums.score.Header,
	note_map: typing.Optional[typing.Mapping[str, int]] = None,
	channel: int = qwertydrums.constants.instruments.GM_DRUM_CHANNEL,
	note_length_ms: float = DEFAULT_NOTE_LENGTH_MS
) -> mido.MidiFile:

	"""
	Build an in-memory MIDI file from compiled events.

	Parameters:
		events: Compiled events (times in milliseconds from the start).
		header: Header whose BPM sets the file tempo.
		note_map: Instrument symbol to MIDI note. Defaults to the GM drum map.
		channel: 0-indexed MIDI channel (9 is the GM drum channel).
		note_length_ms: Gate length of each note.

	Raises:
		ValueError: An event uses an instrument missing from ``note_map``.
	"""

	if note_length_ms <= 0:
		raise ValueError("Note length must be positive")

	if note_map is None:
		note_map = qwertydrums.constants.instruments.GM_NOTE_MAP

	tempo = mido.bpm2tempo(header.bpm)

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = TICKS_PER_BEAT
	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage('set_tempo', tempo=tempo, time=0))

	timeline: typing.List[typing.Tuple[int, int, mido.Message]] = []

	for event in events:

		if event.instrument not in note_map:
			raise ValueError(f"No MIDI note mapped for instrument {event.instrument!r}")

		note = note_map[event.instrument]
		start = _ms_to_ticks(event.time_ms, tempo)
		end = max(start + 1, _ms_to_ticks(event.time_ms + note_length_ms, tempo))

		# Note offs sort ahead of note ons at the same tick
		timeline.append((start, 1, mido.Message('note_on', channel=channel, note=note, velocity=event.velocity)))
		timeline.append((end, 0, mido.Message('note_off', channel=channel, note=note, velocity=0)))

	timeline.sort(key=lambda x: (x[0], x[1]))

	last_tick = 0

	for tick, _, message in timeline:
		message.time = tick - last_tick
		track.append(message)
		last_tick = tick

	return mid


def write_midi (
	events: typing.Sequence[qwertydrums.compiler.TimedEvent],
	path: str,
	header: qwertydrums.score.Header,
	note_map: typing.Optional[typing.Mapping[str, int]] = None,
	channel: int = qwertydrums.constants.instruments.GM_DRUM_CHANNEL,
	note_length_ms: float = DEFAULT_NOTE_LENGTH_MS
) -> None:

	"""Write compiled events to a Standard MIDI File at ``path``."""

	mid = build_midi_file(events, header, note_map=note_map, channel=channel, note_length_ms=note_length_ms)

	logger.info(f"Saving {len(events)} events to {path}...")
	mid.save(path)
	logger.info(f"Saved {path}")
