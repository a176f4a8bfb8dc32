"""Unit tests for the polling run-tree watcher."""

from __future__ import annotations

from pathlib import Path

from runwarden.surface.batching import RunChangeBatcher
from runwarden.surface.watcher import RunTreeWatcher


class TestRunTreeWatcher:
    """The first poll is a baseline; later polls report differences."""

    def test_first_poll_is_baseline(self, tmp_path: Path):
        root = tmp_path / "r1"
        root.mkdir()
        (root / "journal.jsonl").write_text("{}\n", encoding="utf-8")
        batcher = RunChangeBatcher(window_seconds=0)
        batcher.track("r1", root)
        watcher = RunTreeWatcher(batcher)
        assert watcher.poll() == []
        assert batcher.has_pending is False

    def test_change_new_and_removed_files_are_reported(self, tmp_path: Path):
        root = tmp_path / "r1"
        root.mkdir()
        journal = root / "journal.jsonl"
        doomed = root / "old.txt"
        journal.write_text("{}\n", encoding="utf-8")
        doomed.write_text("x", encoding="utf-8")
        batcher = RunChangeBatcher(window_seconds=0)
        batcher.track("r1", root)
        watcher = RunTreeWatcher(batcher)
        watcher.poll()

        journal.write_text("{}\n{}\n", encoding="utf-8")
        (root / "artifacts").mkdir()
        (root / "artifacts" / "new.txt").write_text("n", encoding="utf-8")
        doomed.unlink()

        changed = {p.name for p in watcher.poll()}
        assert changed == {"artifacts", "journal.jsonl", "new.txt", "old.txt"}
        batch = batcher.flush()
        assert batch is not None and batch.run_ids == ["r1"]

    def test_untracked_runs_are_forgotten(self, tmp_path: Path):
        root = tmp_path / "r1"
        root.mkdir()
        batcher = RunChangeBatcher(window_seconds=0)
        batcher.track("r1", root)
        watcher = RunTreeWatcher(batcher)
        watcher.poll()
        batcher.untrack("r1")
        (root / "late.txt").write_text("x", encoding="utf-8")
        assert watcher.poll() == []

    def test_scan_is_capped(self, tmp_path: Path):
        root = tmp_path / "r1"
        root.mkdir()
        for i in range(10):
            (root / f"f{i}.txt").write_text("x", encoding="utf-8")
        batcher = RunChangeBatcher(window_seconds=0)
        batcher.track("r1", root)
        watcher = RunTreeWatcher(batcher, max_files_per_root=3)
        assert len(watcher._scan(root)) == 3

    def test_new_empty_folder_is_reported(self, tmp_path: Path):
        root = tmp_path / "r1"
        (root / "artifacts").mkdir(parents=True)
        batcher = RunChangeBatcher(window_seconds=0)
        batcher.track("r1", root)
        watcher = RunTreeWatcher(batcher)
        watcher.poll()

        (root / "artifacts" / "empty").mkdir()
        assert watcher.poll() == [root / "artifacts" / "empty"]
        assert batcher.has_pending is True

    def test_removed_empty_folder_is_reported(self, tmp_path: Path):
        root = tmp_path / "r1"
        doomed = root / "artifacts" / "scratch"
        doomed.mkdir(parents=True)
        batcher = RunChangeBatcher(window_seconds=0)
        batcher.track("r1", root)
        watcher = RunTreeWatcher(batcher)
        watcher.poll()

        doomed.rmdir()
        assert watcher.poll() == [doomed]

    def test_write_inside_folder_reports_only_the_file(self, tmp_path: Path):
        root = tmp_path / "r1"
        (root / "artifacts").mkdir(parents=True)
        batcher = RunChangeBatcher(window_seconds=0)
        batcher.track("r1", root)
        watcher = RunTreeWatcher(batcher)
        watcher.poll()

        (root / "artifacts" / "a.txt").write_text("a", encoding="utf-8")
        assert watcher.poll() == [root / "artifacts" / "a.txt"]
