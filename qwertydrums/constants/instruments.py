"""Instrument symbols and their General MIDI drum notes.

A score addresses six instruments by the letters of the top-left keyboard row.
Each letter is the key a player presses to fire the instrument.

``GM_NOTE_MAP`` is the default mapping used when exporting to MIDI; pass a
different map to :func:`qwertydrums.midi_export.write_midi` to retarget it.
"""

import typing


INSTRUMENTS: typing.Tuple[str, ...] = ("Q", "W", "E", "R", "T", "Y")

# General MIDI percussion notes (channel 10, 0-indexed 9)
KICK = 36
SNARE = 38
HAND_CLAP = 39
HI_HAT_CLOSED = 42
HI_HAT_OPEN = 46
CRASH = 49

GM_NOTE_MAP: typing.Dict[str, int] = {
	"Q": KICK,
	"W": SNARE,
	"E": HI_HAT_CLOSED,
	"R": HI_HAT_OPEN,
	"T": HAND_CLAP,
	"Y": CRASH,
}

GM_DRUM_CHANNEL = 9
