"""Terminal monitor: Rich rendering of run details snapshots.

Modules
-------
renderer
    ``SnapshotRenderer`` turns a ``RunDetailsSnapshot`` into Rich panels.
terminal
    ``TerminalSurface`` / ``TerminalHost`` implement the surface protocols
    for a terminal, and ``run_live`` drives the refresh loop in
    ``Rich.Live`` mode.
"""
