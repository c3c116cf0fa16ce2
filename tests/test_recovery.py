"""Tests for the recovery policy."""

from pathlib import Path

import pytest

from studio_orchestrator.orchestrator.lifecycle import AgentTracker
from studio_orchestrator.orchestrator.recovery import (
	RATIONALES,
	REPLAN_MAX,
	RETRY_MAX,
	RecoveryPolicy,
	choose_action,
	decide_for_count,
)
from studio_orchestrator.session.models import RecoveryAction
from studio_orchestrator.session.store import SessionNotFoundError, SessionStore


@pytest.mark.parametrize("count,expected", [
	(0, RecoveryAction.RETRY),
	(1, RecoveryAction.RETRY),
	(2, RecoveryAction.RETRY),
	(3, RecoveryAction.REPLAN),
	(4, RecoveryAction.REPLAN),
	(5, RecoveryAction.ESCALATE),
	(6, RecoveryAction.ESCALATE),
	(50, RecoveryAction.ESCALATE),
])
def test_choose_action_thresholds(count: int, expected: RecoveryAction):
	assert choose_action(count) == expected


def test_thresholds():
	assert RETRY_MAX == 3
	assert REPLAN_MAX == 5


def test_decision_carries_rationale_and_thresholds():
	for count in range(7):
		decision = decide_for_count(count, agent="builder")
		assert decision.reason == RATIONALES[decision.action]
		assert decision.thresholds == {"retry_max": 3, "replan_max": 5}
		assert decision.failure_count == count


def test_decision_to_dict():
	data = decide_for_count(3, agent="builder").to_dict()
	assert data == {
		"action": "replan",
		"reason": "retry threshold exceeded, attempting replan",
		"failure_count": 3,
		"agent": "builder",
		"thresholds": {"retry_max": 3, "replan_max": 5},
	}


class TestRecoveryPolicy:
	@pytest.fixture
	def store(self, tmp_path: Path) -> SessionStore:
		return SessionStore(tmp_path)

	def _fail(self, store: SessionStore, session_id: str, agent: str, times: int) -> None:
		tracker = AgentTracker(store)
		for _ in range(times):
			tracker.start(session_id, agent)
			tracker.fail(session_id, agent, "tests failed")

	def test_no_failures_retry_and_no_write(self, store):
		session_id = store.create("Add login page")
		decision = RecoveryPolicy(store).decide(session_id, "builder")
		assert decision.action == RecoveryAction.RETRY
		assert decision.failure_count == 0
		assert store.read(session_id).failures == []

	def test_stamps_latest_failure(self, store):
		session_id = store.create("Add login page")
		self._fail(store, session_id, "builder", 3)

		decision = RecoveryPolicy(store).decide(session_id, "builder")

		assert decision.action == RecoveryAction.REPLAN
		failures = store.read(session_id).failures
		assert failures[-1].recovery_action == RecoveryAction.REPLAN
		assert all(f.recovery_action is None for f in failures[:-1])

	def test_counts_per_agent(self, store):
		session_id = store.create("Add login page")
		self._fail(store, session_id, "planner", 4)
		self._fail(store, session_id, "builder", 1)

		policy = RecoveryPolicy(store)
		assert policy.decide(session_id, "builder").failure_count == 1
		assert policy.decide(session_id, "planner").action == RecoveryAction.REPLAN

	def test_counts_whole_session_without_agent(self, store):
		session_id = store.create("Add login page")
		self._fail(store, session_id, "planner", 3)
		self._fail(store, session_id, "builder", 2)

		decision = RecoveryPolicy(store).decide(session_id)
		assert decision.failure_count == 5
		assert decision.action == RecoveryAction.ESCALATE
		assert decision.agent is None

	def test_repeated_decide_overwrites_same_record(self, store):
		session_id = store.create("Add login page")
		self._fail(store, session_id, "builder", 1)
		policy = RecoveryPolicy(store)
		policy.decide(session_id, "builder")
		policy.decide(session_id, "builder")

		failures = store.read(session_id).failures
		assert len(failures) == 1
		assert failures[0].recovery_action == RecoveryAction.RETRY

	def test_missing_session(self, store):
		with pytest.raises(SessionNotFoundError):
			RecoveryPolicy(store).decide("orch_missing")
