"""Tests for the handoff ledger."""

from pathlib import Path

import pytest

from studio_orchestrator.orchestrator.handoffs import HandoffLedger
from studio_orchestrator.session.store import InvalidInputError, SessionStore


@pytest.fixture
def store(tmp_path: Path) -> SessionStore:
	return SessionStore(tmp_path)


@pytest.fixture
def ledger(store: SessionStore) -> HandoffLedger:
	return HandoffLedger(store)


def test_record_appends(store, ledger):
	session_id = store.create("Add login page")
	handoff = ledger.record(session_id, "planner", "builder", {"task_id": "t1"})

	assert handoff.from_agent == "planner"
	assert handoff.to_agent == "builder"
	assert handoff.context_passed == {"task_id": "t1"}
	assert handoff.reason == "workflow_sequence"
	assert store.read(session_id).handoffs == [handoff]


def test_record_custom_reason(store, ledger):
	session_id = store.create("Add login page")
	handoff = ledger.record(session_id, "builder", "planner", {}, reason="replan")
	assert handoff.reason == "replan"


def test_record_malformed_context(store, ledger):
	session_id = store.create("Add login page")
	handoff = ledger.record(session_id, "planner", "builder", "{broken")
	assert handoff.context_passed == {}
	assert len(store.read(session_id).handoffs) == 1


def test_context_for_without_handoff(store, ledger):
	session_id = store.create("Add login page")
	assert ledger.context_for(session_id, "builder") == {}


def test_context_for_returns_latest(store, ledger):
	session_id = store.create("Add login page")
	ledger.record(session_id, "planner", "builder", {"task_id": "t1"})
	ledger.record(session_id, "planner", "verifier", {"check": "all"})
	ledger.record(session_id, "planner", "builder", {"task_id": "t2"})

	assert ledger.context_for(session_id, "builder") == {"task_id": "t2"}
	assert ledger.context_for(session_id, "verifier") == {"check": "all"}
	assert ledger.context_for(session_id, "planner") == {}


def test_context_for_without_session(ledger):
	assert ledger.context_for(None, "builder") == {}
	assert ledger.context_for("orch_missing", "builder") == {}


def test_context_for_non_object_payload(store, ledger):
	session_id = store.create("Add login page")
	ledger.record(session_id, "planner", "builder", "[1, 2, 3]")
	assert ledger.context_for(session_id, "builder") == [1, 2, 3]


def test_record_requires_agents(store, ledger):
	session_id = store.create("Add login page")
	with pytest.raises(InvalidInputError):
		ledger.record(session_id, "", "builder")
	with pytest.raises(InvalidInputError):
		ledger.record(session_id, "planner", "")


def test_history_filters_by_agent(store, ledger):
	session_id = store.create("Add login page")
	ledger.record(session_id, "planner", "builder", {"n": 1})
	ledger.record(session_id, "builder", "verifier", {"n": 2})

	assert len(ledger.history(session_id)) == 2
	assert [h.context_passed for h in ledger.history(session_id, "verifier")] == [{"n": 2}]


def test_handoffs_are_append_only(store, ledger):
	session_id = store.create("Add login page")
	first = ledger.record(session_id, "planner", "builder", {"task_id": "t1"})
	ledger.record(session_id, "planner", "builder", {"task_id": "t2"})
	assert store.read(session_id).handoffs[0] == first
