"""Compile a drum score from the command line.

Usage::

    python -m qwertydrums score.qds
    python -m qwertydrums score.qds --seed 7 --json
    python -m qwertydrums score.qds --midi out.mid --config qwertydrums.yaml

Prints one event per line (time in ms, instrument, velocity), or a JSON
array with ``--json``. Settings for MIDI export and a fallback seed are read
from an optional YAML config file.
"""

import argparse
import json
import logging
import os
import sys
import typing

import yaml

import qwertydrums.compiler
import qwertydrums.constants.instruments
import qwertydrums.grid
import qwertydrums.midi_export
import qwertydrums.parser
import qwertydrums.score


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "qwertydrums.yaml"


def load_config (config_path: str = DEFAULT_CONFIG_PATH) -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		config = yaml.safe_load(f)

	if config is None:
		return {}

	if not isinstance(config, dict):
		logger.warning(f"Config file {config_path} is not a mapping. Using defaults.")
		return {}

	return config


def _config_section (config: dict, name: str) -> dict:

	"""A named sub-mapping of the config, or ``{}`` when missing or not a mapping."""

	section = config.get(name)

	if section is None:
		return {}

	if not isinstance(section, dict):
		logger.warning(f"Config section {name!r} is not a mapping. Ignoring it.")
		return {}

	return section


def _midi_channel (value: typing.Any) -> int:

	"""A 0-indexed MIDI channel from the config, falling back to the GM drum channel."""

	default = qwertydrums.constants.instruments.GM_DRUM_CHANNEL

	if value is None:
		return default

	if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 15:
		logger.warning(f"MIDI channel {value!r} is not an integer from 0 to 15. Using {default}.")
		return default

	return value


def _note_map (raw: typing.Optional[dict]) -> typing.Optional[typing.Dict[str, int]]:

	if not raw:
		return None

	return {str(key).upper(): int(value) for key, value in raw.items()}


def format_events (events: typing.Sequence[qwertydrums.compiler.TimedEvent], as_json: bool = False) -> str:

	"""Render events as tab-separated lines, or as a JSON array."""

	if as_json:
		return json.dumps([
			{"t": event.time_ms, "inst": event.instrument, "velocity": event.velocity}
			for event in events
		])

	return "\n".join(f"{event.time_ms:.3f}\t{event.instrument}\t{event.velocity}" for event in events)


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point. Returns the process exit status.
	"""

	parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
	parser.add_argument("score",                                  help="Path to a score file")
	parser.add_argument("--seed",   type=int, default=None,       help="Seed to use instead of the score's SEED")
	parser.add_argument("--json",   action="store_true",          help="Print events as a JSON array")
	parser.add_argument("--midi",   type=str, default=None,       help="Also write a Standard MIDI File")
	parser.add_argument("--config", type=str, default=DEFAULT_CONFIG_PATH, help="YAML config file")
	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.INFO)

	config = load_config(args.config)
	midi_config = _config_section(config, 'midi')
	compile_config = _config_section(config, 'compile')

	try:
		score = qwertydrums.parser.load(args.score)
	except qwertydrums.score.ScoreError as e:
		logger.error(str(e))
		return 1

	header = score.header
	logger.info(
		f"{args.score}: BPM={header.bpm:g} GRID={qwertydrums.grid.format_grid(header.grid)} "
		f"SWING={header.swing:g} BARS={header.bars}"
	)

	seed = args.seed
	if seed is None and header.seed is None:
		seed = compile_config.get('seed')

	events = qwertydrums.compiler.compile_score(score, seed=seed)

	output = format_events(events, as_json=args.json)
	if output:
		print(output)

	if args.midi:
		qwertydrums.midi_export.write_midi(
			events,
			args.midi,
			header,
			note_map = _note_map(midi_config.get('note_map')),
			channel = _midi_channel(midi_config.get('channel')),
			note_length_ms = midi_config.get('note_length_ms', qwertydrums.midi_export.DEFAULT_NOTE_LENGTH_MS),
		)

	return 0


if __name__ == "__main__":
	sys.exit(main())
