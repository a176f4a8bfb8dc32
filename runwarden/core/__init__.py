"""runwarden core: read-only access to a run's on-disk state.

Modules
-------
journal
    ``JournalTailer``: incremental, partial-failure tolerant JSONL reader.
text_tail
    ``TextTailSession``: bounded tail of a single growing text file.
path_guard
    ``is_inside_root``: containment check for operator-supplied paths.
snapshot
    ``build_snapshot``: composes every source into a ``RunDetailsSnapshot``.
run_loader
    ``load_run`` / ``discover_runs``: describe run directories.
message_bus
    ``MessageBus``: validation and wire format of surface messages.
"""
