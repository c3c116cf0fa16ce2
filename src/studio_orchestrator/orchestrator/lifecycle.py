"""
Agent Lifecycle Tracker - records start/complete/fail for agent invocations.

The tracker only records the before and after of agent work. Running the
agents is the controller's job.
"""

import logging
import time
from typing import Any, Optional

from ..session.models import (
	AgentInvocation,
	AgentStatus,
	Failure,
	Session,
	SessionStatus,
	utc_now,
)
from ..session.store import SessionStore, validate_id
from .payloads import parse_payload

logger = logging.getLogger(__name__)


def _invocation_id(agent: str) -> str:
	return f"{agent}_{time.time_ns()}"


class AgentTracker:
	"""
	Drives the per-agent state machine: pending -> active -> completed | failed.

	Usage:
		tracker = AgentTracker(store)
		tracker.start(session_id, "planner")
		tracker.complete(session_id, "planner", {"plan_id": "p1"})
	"""

	def __init__(self, store: SessionStore):
		self.store = store

	def start(self, session_id: str, agent: str) -> AgentInvocation:
		"""
		Mark an agent as started.

		A second start while an earlier invocation of the same agent is still
		active is accepted and adds another invocation record; complete and fail
		later close every active record of the agent together.

		Args:
			session_id: Session id
			agent: Agent name

		Returns:
			The new AgentInvocation
		"""
		agent = validate_id(agent, "agent name")

		def _apply(session: Session) -> AgentInvocation:
			now = utc_now()

			if session.active_invocation(agent) is not None:
				logger.warning(f"Agent {agent} started again while an invocation is still active")

			entry = session.routing.entry_for(agent)
			if entry is not None:
				entry.status = AgentStatus.ACTIVE
				entry.started_at = now
			else:
				logger.warning(f"Agent {agent} is not part of the routed sequence")

			invocation = AgentInvocation(
				agent_name=agent,
				invocation_id=_invocation_id(agent),
				status=AgentStatus.ACTIVE,
				started_at=now,
				input=session.incoming_context(agent),
			)
			session.agent_states.append(invocation)
			session.status = SessionStatus.EXECUTING
			return invocation

		invocation = self.store.mutate(session_id, _apply)
		logger.info(f"Agent started: {agent} ({invocation.invocation_id})")
		return invocation

	def complete(self, session_id: str, agent: str, output: Any = None) -> Optional[AgentInvocation]:
		"""
		Mark an agent as completed with its output.

		Every active invocation of the agent is completed with the same
		output. Output that is not valid structured data is stored as {}.
		Session status is left unchanged.

		Args:
			session_id: Session id
			agent: Agent name
			output: JSON text or a decoded JSON value

		Returns:
			The most recently started completed invocation, or None if none was active
		"""
		agent = validate_id(agent, "agent name")
		payload = parse_payload(output, label="agent output")

		def _apply(session: Session) -> Optional[AgentInvocation]:
			now = utc_now()

			entry = session.routing.entry_for(agent)
			if entry is not None:
				entry.status = AgentStatus.COMPLETED
				entry.completed_at = now

			invocations = session.active_invocations(agent)
			if not invocations:
				logger.warning(f"No active invocation to complete for agent {agent}")
				return None

			for invocation in invocations:
				invocation.status = AgentStatus.COMPLETED
				invocation.completed_at = now
				invocation.output = payload
			return invocations[-1].model_copy(deep=True)

		invocation = self.store.mutate(session_id, _apply)
		logger.info(f"Agent completed: {agent}")
		return invocation

	def fail(self, session_id: str, agent: str, error_message: str = "Unknown error") -> Failure:
		"""
		Mark an agent as failed and record the failure.

		The new Failure has retry_count 0 and no recovery action; the session
		moves to recovering until the controller acts on a recovery decision.

		Args:
			session_id: Session id
			agent: Agent name
			error_message: What went wrong

		Returns:
			The appended Failure record
		"""
		agent = validate_id(agent, "agent name")
		error_message = error_message or "Unknown error"

		def _apply(session: Session) -> Failure:
			now = utc_now()

			entry = session.routing.entry_for(agent)
			if entry is not None:
				entry.status = AgentStatus.FAILED

			invocations = session.active_invocations(agent)
			if not invocations:
				logger.warning(f"No active invocation to fail for agent {agent}")
			for invocation in invocations:
				invocation.status = AgentStatus.FAILED
				invocation.completed_at = now
				invocation.error = error_message

			failure = Failure(timestamp=now, agent=agent, error_message=error_message)
			session.failures.append(failure)
			session.status = SessionStatus.RECOVERING
			return failure.model_copy()

		failure = self.store.mutate(session_id, _apply)
		logger.error(f"Agent failed: {agent} - {error_message}")
		return failure
