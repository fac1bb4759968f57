"""Compile every example score and write a MIDI file next to each one."""

import glob
import logging
import os

import qwertydrums
import qwertydrums.midi_export


logging.basicConfig(level=logging.INFO)

here = os.path.dirname(os.path.abspath(__file__))

for path in sorted(glob.glob(os.path.join(here, "*.qds"))):

	score = qwertydrums.load(path)
	events = qwertydrums.compile_score(score)

	qwertydrums.midi_export.write_midi(events, os.path.splitext(path)[0] + ".mid", score.header)
