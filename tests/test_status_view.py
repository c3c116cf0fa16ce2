"""Tests for the rich session status views."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

from rich.console import Console

from studio_orchestrator.orchestrator.coordinator import Coordinator
from studio_orchestrator.visualizer.session_status import render_session_list, render_session_status
from studio_orchestrator.visualizer.utils import format_timestamp, truncate

from .helpers import make_routed_session


def _render(tmp_path: Path, fn, *args, **kwargs) -> str:
	out = tmp_path / "out.txt"
	with open(out, "w") as f:
		console = Console(file=f, width=120)
		fn(*args, console=console, **kwargs)
	return out.read_text()


# -- utils tests --

def test_truncate_short():
	assert truncate("short", 10) == "short"


def test_truncate_long():
	assert truncate("x" * 100, 10) == "xxxxxxx..."


def test_truncate_empty():
	assert truncate("", 10) == ""


def test_format_timestamp_relative():
	five_min_ago = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
	assert format_timestamp(five_min_ago) == "5m ago"


def test_format_timestamp_invalid():
	assert format_timestamp("not-a-date") == "not-a-date"


# -- status panel --

def test_render_no_session(tmp_path: Path):
	text = _render(tmp_path, render_session_status, None)
	assert "No active orchestration session" in text


def test_render_session_status(tmp_path: Path):
	coordinator = Coordinator(tmp_path / "orchestration")
	session_id = make_routed_session(coordinator)
	coordinator.start(session_id, "planner")
	coordinator.complete(session_id, "planner", {"plan_id": "p1"})
	coordinator.save_checkpoint(session_id, "planning_complete")
	coordinator.start(session_id, "builder")
	coordinator.fail(session_id, "builder", "tests [failed]")

	text = _render(tmp_path, render_session_status, coordinator.read(session_id))

	assert "Orchestration Status" in text
	assert session_id in text
	assert "plan_then_build" in text
	assert "planner" in text
	assert "builder" in text
	assert "Failures: 1" in text
	assert "tests [failed]" in text
	assert "undecided" in text
	assert "planning_complete" in text


def test_render_outcome(tmp_path: Path):
	coordinator = Coordinator(tmp_path / "orchestration")
	session_id = make_routed_session(coordinator)
	session = coordinator.finish(session_id, True, "Shipped login page")

	text = _render(tmp_path, render_session_status, session)
	assert "Shipped login page" in text
	assert "complete" in text


# -- session list --

def test_render_empty_list(tmp_path: Path):
	text = _render(tmp_path, render_session_list, [])
	assert "No orchestration sessions recorded yet." in text


def test_render_session_list(tmp_path: Path):
	coordinator = Coordinator(tmp_path / "orchestration")
	first = make_routed_session(coordinator, "Add login page")
	second = make_routed_session(coordinator, "fix typo")

	text = _render(
		tmp_path,
		render_session_list,
		coordinator.list_sessions(),
		current_id=second,
	)
	assert "Orchestration Sessions" in text
	assert first in text
	assert second in text
	assert "build_only" in text
	assert "0/2" in text
