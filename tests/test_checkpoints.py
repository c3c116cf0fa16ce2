"""Tests for checkpoint save and resume."""

from pathlib import Path

import pytest

from studio_orchestrator.orchestrator.checkpoints import CheckpointManager
from studio_orchestrator.orchestrator.lifecycle import AgentTracker
from studio_orchestrator.orchestrator.router import Router
from studio_orchestrator.session.models import SessionStatus
from studio_orchestrator.session.store import CheckpointNotFoundError, SessionStore

# Fields resume always rewrites
VOLATILE = {"status", "updated_at"}


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
	return SessionStore(tmp_path)


@pytest.fixture
def session_id(store: SessionStore) -> str:
	session_id = store.create("Add login page")
	Router(store).route(session_id)
	return session_id


@pytest.fixture
def manager(store: SessionStore) -> CheckpointManager:
	return CheckpointManager(store)


def _without(data: dict, keys: set) -> dict:
	return {k: v for k, v in data.items() if k not in keys}


def test_save_appends_record(store, session_id, manager):
	tracker = AgentTracker(store)
	tracker.start(session_id, "planner")
	tracker.complete(session_id, "planner", {"plan_id": "p1"})

	record = manager.save(session_id, "planning_complete")

	assert record.id.startswith("cp_")
	assert record.name == "planning_complete"
	assert record.after_agent == "planner"
	assert record.can_resume_from is True
	assert record.state["id"] == session_id
	assert record.state["checkpoints"] == []

	session = store.read(session_id)
	assert [cp.id for cp in session.checkpoints] == [record.id]


def test_save_before_any_agent(session_id, manager):
	assert manager.save(session_id).after_agent == "none"


def test_save_default_name(session_id, manager):
	assert manager.save(session_id, "").name == "checkpoint"


def test_save_writes_snapshot_file(store, session_id, manager):
	record = manager.save(session_id, "routed")
	snapshot = store.load_snapshot(session_id, record.id)
	assert snapshot["id"] == session_id
	assert snapshot["checkpoints"][-1]["id"] == record.id


def test_checkpoint_ids_unique(session_id, manager):
	ids = {manager.save(session_id, f"cp{i}").id for i in range(3)}
	assert len(ids) == 3


def test_resume_restores_saved_document(store, session_id, manager):
	saved = store.read(session_id).model_dump(mode="json")
	record = manager.save(session_id, "routed")

	tracker = AgentTracker(store)
	tracker.start(session_id, "planner")
	tracker.fail(session_id, "planner", "planner crashed")

	restored = manager.resume(session_id, record.id)

	assert restored.status == SessionStatus.PAUSED
	assert _without(restored.model_dump(mode="json"), VOLATILE) == _without(saved, VOLATILE)
	assert store.read(session_id) == restored


def test_resume_latest_by_default(store, session_id, manager):
	manager.save(session_id, "first")
	AgentTracker(store).start(session_id, "planner")
	manager.save(session_id, "second")

	restored = manager.resume(session_id)
	assert len(restored.agent_states) == 1
	assert [cp.name for cp in restored.checkpoints] == ["first"]


def test_resume_earlier_checkpoint(store, session_id, manager):
	first = manager.save(session_id, "first")
	AgentTracker(store).start(session_id, "planner")
	manager.save(session_id, "second")

	restored = manager.resume(session_id, first.id)
	assert restored.agent_states == []
	assert restored.checkpoints == []


def test_resume_without_checkpoints(session_id, manager):
	with pytest.raises(CheckpointNotFoundError, match="No checkpoint"):
		manager.resume(session_id)


def test_resume_missing_snapshot(session_id, manager):
	with pytest.raises(CheckpointNotFoundError, match="not found"):
		manager.resume(session_id, "cp_123")


def test_saved_state_independent_of_live_document(store, session_id, manager):
	record = manager.save(session_id, "routed")
	store.mutate(session_id, lambda s: setattr(s, "goal", "Something else"))

	snapshot = store.load_snapshot(session_id, record.id)
	assert snapshot["checkpoints"][-1]["state"]["goal"] == "Add login page"
	assert store.read(session_id).checkpoints[0].state["goal"] == "Add login page"


def test_list_checkpoints_omits_state(session_id, manager):
	manager.save(session_id, "first")
	manager.save(session_id, "second")

	listed = manager.list_checkpoints(session_id)
	assert [cp["name"] for cp in listed] == ["first", "second"]
	assert all("state" not in cp for cp in listed)
