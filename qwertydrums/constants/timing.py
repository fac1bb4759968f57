"""Timing constants.

Time signature is fixed at 4/4. Grids are written as ``1/<denominator>``.
"""

BEATS_PER_BAR = 4

# Supported grid denominators: eighth, sixteenth and thirty-second notes
SUPPORTED_DENOMINATORS = (8, 16, 32)

# Grid used when a score has no GRID line
DEFAULT_DENOMINATOR = 16

# One step is split into this many micro-steps (the unit of ^ shifts)
MICRO_STEPS_PER_STEP = 4

# Swing values at or below this are straight time
SWING_NEUTRAL = 50.0

# Header defaults
DEFAULT_BPM = 92.0
DEFAULT_BARS = 1
DEFAULT_SWING = 50.0
