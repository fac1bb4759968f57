"""
qwertydrums - compile a line-oriented drum notation into timed hit events.

A score is plain text: a header (tempo, bars, grid, swing, seed, humanize),
named sections of track lines, and an optional play order. Each track line
addresses one of six instruments (``Q W E R T Y``) with a step pattern:

    BPM: 120
    GRID: 1/16
    SWING: 58
    SEED: 7
    %humanize=±4ms

    [Main]
    Q: x.......x.......
    W: ....X.......X.g.
    E@1/32: x.x.x.x.x.x.x.x.x.x.x.x.x.x.x.x.
    R@LEN=12: x..x..x..r3.

    [Fill]
    W: x.x.X.x.r4r4X...

    ORDER: Main x3, Fill x1

Compiling produces a finite list of ``(time_ms, instrument, velocity)``
events, sorted and starting at 0 ms, ready for a player to schedule or for
export to a MIDI file. With a ``SEED`` the result is identical on every run.

Minimal example:

    ```python
    import qwertydrums

    score = qwertydrums.parse(open("groove.qds", encoding="utf-8").read())
    events = qwertydrums.compile_score(score)
    ```

Package-level exports: ``parse``, ``load``, ``compile_score``, ``Compiler``,
``TimedEvent``, ``Score``, ``ScoreError``, ``ScoreParseError``.
"""

import qwertydrums.compiler
import qwertydrums.parser
import qwertydrums.score


parse = qwertydrums.parser.parse
load = qwertydrums.parser.load
compile_score = qwertydrums.compiler.compile_score
Compiler = qwertydrums.compiler.Compiler
TimedEvent = qwertydrums.compiler.TimedEvent
Score = qwertydrums.score.Score
ScoreError = qwertydrums.score.ScoreError
ScoreParseError = qwertydrums.score.ScoreParseError
