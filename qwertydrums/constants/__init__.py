"""Constants for qwertydrums.

This package contains:

- ``qwertydrums.constants.velocity`` - Default hit velocities and the MIDI velocity range
- ``qwertydrums.constants.timing`` - Grid, micro-step and swing constants
- ``qwertydrums.constants.instruments`` - The six instrument symbols and their GM drum notes
"""
