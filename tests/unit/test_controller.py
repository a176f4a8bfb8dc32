"""Unit tests for RunSurfaceController: one surface per run id."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from runwarden.core.run_loader import load_run
from runwarden.models.run import Run
from runwarden.surface.batching import RunChangeBatch, RunChangeBatcher
from runwarden.surface.controller import RunSurfaceController


@pytest.fixture
def channels() -> dict:
    return {}


@pytest.fixture
def controller(channels: dict, host, make_channel) -> RunSurfaceController:
    def factory(run: Run):
        channels[run.id] = make_channel()
        return channels[run.id]

    return RunSurfaceController(factory, host=host, batcher=RunChangeBatcher())


class TestRegistry:
    """Opening the same run twice reuses its surface."""

    def test_open_creates_and_refreshes(self, controller, channels, run: Run):
        surface = controller.open(run)
        assert run.id in controller
        assert len(controller) == 1
        assert controller.get(run.id) is surface
        assert len(channels[run.id].of_type("snapshot")) == 1

    def test_reopen_reveals_existing_surface(self, controller, channels, run: Run):
        first = controller.open(run)
        second = controller.open(run)
        assert first is second
        assert len(controller) == 1
        assert channels[run.id].reveals == 1
        assert len(channels[run.id].of_type("snapshot")) == 2

    def test_dispose_removes_entry_and_untracks(self, controller, run: Run):
        controller.open(run)
        assert controller._batcher.tracked_roots
        assert controller.dispose(run.id) is True
        assert run.id not in controller
        assert controller._batcher.tracked_roots == {}
        assert controller.dispose(run.id) is False

    def test_surface_disposing_itself_is_forgotten(self, controller, run: Run):
        surface = controller.open(run)
        surface.dispose()
        assert run.id not in controller

    def test_dispose_all(self, controller, run: Run, make_run_root: Callable[..., Path]):
        other = load_run(make_run_root(name="run-test-002", state={"runId": "run-test-002"}))
        controller.open(run)
        controller.open(other)
        assert sorted(controller.run_ids) == ["run-test-001", "run-test-002"]
        controller.dispose_all()
        assert len(controller) == 0


class TestTriggers:
    """Refresh triggers reach only the surfaces they name."""

    def test_change_batch_refreshes_each_named_run_once(
        self, controller, channels, run: Run, make_run_root: Callable[..., Path]
    ):
        other = load_run(make_run_root(name="run-test-002", state={"runId": "run-test-002"}))
        controller.open(run)
        controller.open(other)
        controller.on_run_change_batch(
            RunChangeBatch(run_ids=[run.id, run.id, "not-open"], change_count=3)
        )
        assert len(channels[run.id].of_type("snapshot")) == 2
        assert len(channels[other.id].of_type("snapshot")) == 1

    def test_refresh_unknown_run(self, controller):
        assert controller.refresh("missing") is False

    def test_handle_message_routes_to_surface(self, controller, channels, run: Run):
        controller.open(run)
        assert controller.handle_message(run.id, {"type": "refresh"}) is True
        assert len(channels[run.id].of_type("snapshot")) == 2
        assert controller.handle_message("missing", {"type": "refresh"}) is False
