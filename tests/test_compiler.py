import dataclasses

import pytest

import qwertydrums.compiler
import qwertydrums.parser
import qwertydrums.score


def _times (events: list) -> list:

	"""Event times only."""

	return [e.time_ms for e in events]


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

SEEDED_SCORE = """
BPM: 97
SWING: 64
SEED: 2024
%humanize=±3ms
[A]
Q: x..x[p=60]..x.|r3.X{vel=80}.g^-1[p=30]
E@1/32,LEN=6: x.x[p=50].x.x
[B]
W: ..r4[p=80].X^2..
ORDER: A x2, Nope x1, B x1
"""

SEEDED_EXPECTED = [
	(0.0, "E", 96),
	(0.6572808958590031, "Q", 96),
	(309.84653524932037, "E", 96),
	(462.5745787725582, "E", 96),
	(927.5249135140857, "Q", 96),
	(1237.012066299787, "Q", 96),
	(1274.673547288883, "Q", 96),
	(1352.8731088573688, "Q", 96),
	(1544.3405253555884, "Q", 80),
	(1815.5581738039293, "Q", 60),
	(2470.531138063394, "Q", 96),
	(2471.7156806601997, "E", 96),
	(2779.368948871428, "E", 96),
	(2936.0311166879374, "E", 96),
	(2958.2306655852085, "Q", 96),
	(3403.4091940755407, "Q", 96),
	(3708.090559905606, "Q", 96),
	(3745.8125105299987, "Q", 96),
	(3826.6048426498155, "Q", 96),
	(4022.402781037532, "Q", 80),
	(5256.644006573739, "W", 96),
	(5296.59882365207, "W", 96),
	(5334.72805392854, "W", 96),
	(5373.941879346942, "W", 96),
	(5642.069662551756, "W", 115),
]


def test_seeded_compile_is_repeatable (compile_text) -> None:

	"""Two compiles of a seeded score give identical events."""

	assert compile_text(SEEDED_SCORE) == compile_text(SEEDED_SCORE)


def test_seeded_compile_matches_reference (compile_text) -> None:

	"""A seeded score with probability, humanize, swing, rolls and polymeter compiles to a fixed timeline."""

	events = compile_text(SEEDED_SCORE)

	assert [(e.instrument, e.velocity) for e in events] == [(inst, vel) for _, inst, vel in SEEDED_EXPECTED]
	assert _times(events) == pytest.approx([t for t, _, _ in SEEDED_EXPECTED], rel=1e-12, abs=1e-9)


def test_probability_and_humanize_reference (compile_text) -> None:

	"""Seed 42 gates eight 50% hits down to four with jitter."""

	text = "BPM: 120\nSEED: 42\n%humanize=±5ms\nQ: x[p=50]x[p=50]x[p=50]x[p=50]x[p=50]x[p=50]x[p=50]x[p=50]"

	events = compile_text(text)

	assert _times(events) == pytest.approx([0.0, 246.74126748694107, 372.72278860444203, 618.9745794073679])


def test_seed_override_does_not_touch_header () -> None:

	"""compile_score(seed=...) compiles with the seed but leaves the parsed header alone."""

	score = qwertydrums.parser.parse("Q: x[p=50]x[p=50]x[p=50]x[p=50]")

	first = qwertydrums.compiler.compile_score(score, seed=5)
	second = qwertydrums.compiler.compile_score(score, seed=5)

	assert first == second
	assert score.header.seed is None


def test_injected_rng_replaces_header_seed (compile_text, stub_random) -> None:

	"""An injected random source is used instead of the header seed."""

	rng = stub_random([0.99])
	events = compile_text("SEED: 1\nQ: x[p=50]x[p=50]", rng=rng)

	assert events == []
	assert rng.draws == 2


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

def test_straight_sixteenths (compile_text) -> None:

	"""Hits land on 125 ms steps at 120 BPM."""

	assert _times(compile_text("BPM: 120\nQ: xxxx")) == [0.0, 125.0, 250.0, 375.0]


@pytest.mark.parametrize("swing", [0, 30, 50])
def test_no_swing_at_or_below_fifty (compile_text, swing: int) -> None:

	"""Swing of 50 or less leaves the grid straight."""

	assert _times(compile_text(f"BPM: 120\nSWING: {swing}\nQ: xxxx")) == [0.0, 125.0, 250.0, 375.0]


def test_swing_delays_odd_steps (compile_text) -> None:

	"""SWING 75 on 1/16 at 120 BPM delays odd steps by 31.25 ms."""

	assert _times(compile_text("BPM: 120\nSWING: 75\nQ: xxxx")) == [0.0, 156.25, 250.0, 406.25]


def test_swing_parity_restarts_each_polymeter_bar (compile_text) -> None:

	"""Swing parity is the step index within the track's own bar."""

	events = compile_text("BPM: 120\nSWING: 100\nQ@LEN=3: xx..x.")

	# bar 0: steps 0 and 1; bar 1: step 1 (global step 4)
	assert _times(events) == [0.0, 187.5, 562.5]


def test_micro_shift (compile_text) -> None:

	"""^n moves a hit by n quarter-steps."""

	assert _times(compile_text("BPM: 120\nQ: x.x^2")) == [0.0, 312.5]


def test_roll_expands_inside_step (compile_text) -> None:

	"""r4 plays four hits a micro-step apart."""

	events = compile_text("BPM: 120\nQ: r4...")

	assert _times(events) == [0.0, 31.25, 62.5, 93.75]
	assert all(e.velocity == 96 and e.instrument == "Q" for e in events)


def test_track_grid_override (compile_text) -> None:

	"""A track grid override changes its step length."""

	assert _times(compile_text("BPM: 120\nQ@1/32: xx")) == [0.0, 62.5]
	assert _times(compile_text("BPM: 120\nQ@GRID=1/8: xx")) == [0.0, 250.0]


def test_polymeter_length (compile_text) -> None:

	"""LEN sets steps per bar; the pattern runs past the header's bar count."""

	events = compile_text("BPM: 120\nBARS: 2\nQ@LEN=3: x..x..x..")

	assert _times(events) == [0.0, 375.0, 750.0]


def test_short_pattern_not_wrapped (compile_text) -> None:

	"""Steps past the end of a pattern are silent, even over several bars."""

	assert len(compile_text("BARS: 4\nQ: x...")) == 1


def test_long_pattern_not_truncated (compile_text) -> None:

	"""A pattern longer than BARS keeps playing."""

	events = compile_text("BPM: 120\nBARS: 1\nQ: x...............|x...............|x...............")

	assert _times(events) == [0.0, 2000.0, 4000.0]


# ---------------------------------------------------------------------------
# Normalisation and ordering
# ---------------------------------------------------------------------------

def test_first_event_at_zero (compile_text) -> None:

	"""Leading rests are removed from the output timeline."""

	assert _times(compile_text("BPM: 120\nQ: ..x.")) == [0.0]


def test_negative_shift_normalised (compile_text) -> None:

	"""A hit shifted before the start pulls the whole timeline along."""

	assert _times(compile_text("BPM: 120\nQ: x^-2x")) == [0.0, 187.5]


def test_empty_score_compiles_to_nothing (compile_text) -> None:

	"""No hits, no events."""

	assert compile_text("") == []
	assert compile_text("Q: ....") == []


def test_tracks_merged_in_time_order (compile_text) -> None:

	"""Events from several tracks are sorted within a section."""

	events = compile_text("BPM: 120\nQ: ..x.\nW: x...")

	assert [(e.time_ms, e.instrument) for e in events] == [(0.0, "W"), (250.0, "Q")]


def test_velocity_clamped_in_output (compile_text) -> None:

	"""Modifier velocities are clamped to 127."""

	assert compile_text("Q: x{vel=999}")[0].velocity == 127


def test_zero_probability_never_plays (compile_text) -> None:

	"""p=0 hits are dropped."""

	assert compile_text("SEED: 3\nQ: " + "x[p=0]" * 200) == []


# ---------------------------------------------------------------------------
# Random draws
# ---------------------------------------------------------------------------

def test_certain_hits_do_not_draw (compile_text, stub_random) -> None:

	"""Only hits below 100% consume a draw for the gate."""

	rng = stub_random([0.9])
	events = compile_text("BPM: 120\nQ: x[p=50]x", rng=rng)

	assert len(events) == 1
	assert rng.draws == 1


def test_probability_boundary_inclusive (compile_text, stub_random) -> None:

	"""A draw of exactly p/100 passes the gate."""

	assert len(compile_text("Q: x[p=50]", rng=stub_random([0.5]))) == 1
	assert len(compile_text("Q: x[p=50]", rng=stub_random([0.51]))) == 0


def test_humanize_jitter (compile_text, stub_random) -> None:

	"""Humanize offsets each hit by (2r - 1) * magnitude."""

	rng = stub_random([0.75, 0.25])
	events = compile_text("BPM: 120\n%humanize=±8ms\nQ: x.x.", rng=rng)

	# +4 ms and -4 ms, then normalised
	assert _times(events) == [0.0, 242.0]
	assert rng.draws == 2


def test_dropped_hits_do_not_draw_humanize (compile_text, stub_random) -> None:

	"""A hit that fails its gate consumes no humanize draw."""

	rng = stub_random([0.99])
	compile_text("%humanize=±8ms\nQ: x[p=10]", rng=rng)

	assert rng.draws == 1


# ---------------------------------------------------------------------------
# Sections and order
# ---------------------------------------------------------------------------

def test_sections_chain_end_to_end (compile_text) -> None:

	"""The second section starts exactly one section length after the first."""

	text = "BPM: 120\nBARS: 1\nGRID: 1/16\n[A]\nQ: x\n[B]\nW: x\nORDER: A x1, B x1"

	assert [(e.time_ms, e.instrument) for e in compile_text(text)] == [(0.0, "Q"), (2000.0, "W")]


def test_no_order_plays_sections_in_encounter_order (compile_text) -> None:

	"""Without ORDER every section plays once, including the empty Default."""

	events = compile_text("BPM: 120\n[A]\nQ: x\n[B]\nW: x")

	# Default (empty) takes the first 2000 ms, then normalisation removes it
	assert [(e.time_ms, e.instrument) for e in events] == [(0.0, "Q"), (2000.0, "W")]


def test_order_repeats (compile_text) -> None:

	"""A x2, B x1 with an empty B plays A twice, one section apart."""

	events = compile_text("BPM: 120\n[A]\nQ: x\n[B]\nORDER: A x2, B x1")

	assert _times(events) == [0.0, 2000.0]


def test_order_skips_unknown_sections (compile_text) -> None:

	"""Unknown names add no time and no events."""

	events = compile_text("BPM: 120\n[A]\nQ: x\nORDER: A x1, Missing x3, A x1")

	assert _times(events) == [0.0, 2000.0]


def test_section_length_uses_header_grid (compile_text) -> None:

	"""Per-track grids do not change section length."""

	events = compile_text("BPM: 120\nGRID: 1/8\n[A]\nQ@1/32: x\n[B]\nW: x\nORDER: A x1, B x1")

	assert _times(events) == [0.0, 2000.0]


def test_overrunning_track_spills_into_next_section (compile_text) -> None:

	"""A long track is not cut at the section boundary."""

	text = "BPM: 120\n[A]\nQ: x...............x\n[B]\nW: x\nORDER: A x1, B x1"

	assert [(e.time_ms, e.instrument) for e in compile_text(text)] == [(0.0, "Q"), (2000.0, "Q"), (2000.0, "W")]


def test_garbage_line_does_not_change_output (compile_text) -> None:

	"""Dropped lines leave the compile unchanged."""

	clean = "BPM: 110\nSEED: 9\nQ: x.x[p=50].x\nW: ..X."
	noisy = "BPM: 110\nSEED: 9\nQ: x.x[p=50].x\n!!! not a line !!!\nW: ..X."

	assert compile_text(noisy) == compile_text(clean)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_compiler_section_ms () -> None:

	"""Section length is header bars times the header bar length."""

	header = qwertydrums.score.Header(bpm=120, bars=3, grid=32)

	assert qwertydrums.compiler.Compiler(header).section_ms() == 6000.0


def test_normalize_keeps_order () -> None:

	"""normalize() shifts times without reordering."""

	events = [
		qwertydrums.compiler.TimedEvent(10.0, "Q", 1),
		qwertydrums.compiler.TimedEvent(5.0, "W", 2),
	]

	assert qwertydrums.compiler.normalize(events) == [
		qwertydrums.compiler.TimedEvent(5.0, "Q", 1),
		qwertydrums.compiler.TimedEvent(0.0, "W", 2),
	]


def test_events_are_immutable () -> None:

	"""TimedEvent is frozen."""

	event = qwertydrums.compiler.TimedEvent(0.0, "Q", 96)

	with pytest.raises(dataclasses.FrozenInstanceError):
		event.velocity = 10  # type: ignore[misc]


def test_loop_length_ms () -> None:

	"""Loop length follows the header tempo and bars."""

	assert qwertydrums.compiler.loop_length_ms(qwertydrums.score.Header(bpm=120, bars=2)) == 4000


def test_compiler_instance_repeats_seeded_compile () -> None:

	"""One Compiler compiles a seeded score to the same events on every call."""

	score = qwertydrums.parser.parse("SEED: 7\nQ: " + "x[p=50]" * 16)
	compiler = qwertydrums.compiler.Compiler(score.header)

	first = compiler.compile(score.sections, score.order)
	second = compiler.compile(score.sections, score.order)

	assert first == second
	assert first == qwertydrums.compiler.compile_score(score)


def test_injected_rng_is_shared_across_compiles (stub_random) -> None:

	"""An injected random source keeps its draw position between compiles."""

	score = qwertydrums.parser.parse("Q: x[p=50]")
	rng = stub_random([0.1, 0.9])
	compiler = qwertydrums.compiler.Compiler(score.header, rng=rng)

	assert len(compiler.compile(score.sections, score.order)) == 1
	assert len(compiler.compile(score.sections, score.order)) == 0
	assert rng.draws == 2
