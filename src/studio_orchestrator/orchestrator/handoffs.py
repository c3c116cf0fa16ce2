"""Handoff ledger - append-only record of context passed between agents."""

import logging
from typing import Any, Optional

from ..session.models import Handoff, Session, utc_now
from ..session.store import SessionStore, validate_id
from .payloads import parse_payload

logger = logging.getLogger(__name__)


class HandoffLedger:
	"""Records handoffs and answers "what context was passed to agent X?"."""

	def __init__(self, store: SessionStore):
		self.store = store

	def record(
		self,
		session_id: str,
		from_agent: str,
		to_agent: str,
		context: Any = None,
		reason: str = "workflow_sequence",
	) -> Handoff:
		"""
		Append a handoff record.

		Malformed context is replaced with {} so recording never blocks the
		pipeline.

		Args:
			session_id: Session id
			from_agent: Agent handing off
			to_agent: Agent receiving the context
			context: JSON text or a decoded JSON value
			reason: Why the handoff happened

		Returns:
			The appended Handoff
		"""
		from_agent = validate_id(from_agent, "from agent")
		to_agent = validate_id(to_agent, "to agent")
		payload = parse_payload(context, label="handoff context")

		def _apply(session: Session) -> Handoff:
			handoff = Handoff(
				from_agent=from_agent,
				to_agent=to_agent,
				timestamp=utc_now(),
				context_passed=payload,
				reason=reason or "workflow_sequence",
			)
			session.handoffs.append(handoff)
			return handoff.model_copy(deep=True)

		handoff = self.store.mutate(session_id, _apply)
		logger.info(f"Handoff: {from_agent} -> {to_agent}")
		return handoff

	def context_for(self, session_id: Optional[str], agent: str) -> Any:
		"""
		Context of the most recent handoff addressed to an agent.

		Returns {} when nothing was handed to the agent, when no session id is
		given, or when the session no longer exists.
		"""
		agent = validate_id(agent, "agent name")
		if not session_id or not self.store.exists(session_id):
			return {}
		return self.store.read(session_id).incoming_context(agent)

	def history(self, session_id: str, agent: Optional[str] = None) -> list[Handoff]:
		"""All handoffs in order, optionally only those addressed to one agent."""
		handoffs = self.store.read(session_id).handoffs
		if agent:
			handoffs = [h for h in handoffs if h.to_agent == agent]
		return handoffs
