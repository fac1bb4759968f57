"""Velocity constants.

Velocity is the attack strength of a hit (0-127), the same range MIDI uses.
"""

# Default velocity per hit marker
NORMAL_VELOCITY = 96            # x, and every roll (rN)
ACCENT_VELOCITY = 115           # X
GHOST_VELOCITY = 60             # g

# MIDI standard range
MIN_VELOCITY = 0
MAX_VELOCITY = 127

# Trigger probability range (percent)
MIN_PROBABILITY = 0
MAX_PROBABILITY = 100
