"""
Recovery Policy - maps cumulative failure counts to retry / replan / escalate.

How the controller acts on each decision:
- retry: re-invoke the same agent with unchanged inputs
- replan: re-invoke the planner with the same goal
- escalate: stop and ask a human
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from ..session.models import RecoveryAction, Session
from ..session.store import SessionStore

logger = logging.getLogger(__name__)

RETRY_MAX = 3
REPLAN_MAX = 5

RATIONALES = {
	RecoveryAction.RETRY: "below retry threshold",
	RecoveryAction.REPLAN: "retry threshold exceeded, attempting replan",
	RecoveryAction.ESCALATE: "all thresholds exceeded, escalate to user",
}


def choose_action(failure_count: int) -> RecoveryAction:
	"""Pure threshold mapping from failure count to action."""
	if failure_count < RETRY_MAX:
		return RecoveryAction.RETRY
	if failure_count < REPLAN_MAX:
		return RecoveryAction.REPLAN
	return RecoveryAction.ESCALATE


@dataclass
class RecoveryDecision:
	action: RecoveryAction
	reason: str
	failure_count: int
	agent: Optional[str] = None
	thresholds: dict[str, int] = field(
		default_factory=lambda: {"retry_max": RETRY_MAX, "replan_max": REPLAN_MAX}
	)

	def to_dict(self) -> dict:
		data = asdict(self)
		data["action"] = self.action.value
		return data


def decide_for_count(failure_count: int, agent: Optional[str] = None) -> RecoveryDecision:
	action = choose_action(failure_count)
	return RecoveryDecision(
		action=action,
		reason=RATIONALES[action],
		failure_count=failure_count,
		agent=agent,
	)


class RecoveryPolicy:
	"""Decides recovery for a session and stamps the latest failure with the action."""

	def __init__(self, store: SessionStore):
		self.store = store

	def decide(self, session_id: str, agent: Optional[str] = None) -> RecoveryDecision:
		"""
		Decide how to recover from failures.

		Counts failures for the given agent, or for the whole session when no
		agent is given. The chosen action is written to the most recently
		appended failure record; calling again before a new failure is
		recorded overwrites that same record.

		Args:
			session_id: Session id
			agent: Failing agent (default: whole session)

		Returns:
			RecoveryDecision with action, reason, count, and thresholds
		"""
		agent = agent.strip() if agent else None

		def _apply(session: Session) -> RecoveryDecision:
			decision = decide_for_count(session.failure_count(agent), agent=agent)
			if session.failures:
				session.failures[-1].recovery_action = decision.action
			return decision

		decision = self.store.mutate(session_id, _apply)
		logger.info(
			f"Recovery decision for {agent or 'session'}: {decision.action.value} "
			f"(failure count {decision.failure_count}, {decision.reason})"
		)
		return decision
