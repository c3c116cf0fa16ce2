"""
Coordinator - single entry point for the controller driving a pipeline.

Bundles the session store with the router, agent tracker, handoff ledger,
checkpoint manager, and recovery policy. Every operation takes the session
id explicitly; the "current session" pointer is only a default resolved
once by the caller at start-up via resolve_session().
"""

import logging
from pathlib import Path
from typing import Any, Optional

from ..session.models import Session, SessionMode, SessionStatus, utc_now
from ..session.store import InvalidInputError, SessionStore
from .checkpoints import CheckpointManager
from .handoffs import HandoffLedger
from .lifecycle import AgentTracker
from .recovery import RecoveryPolicy
from .router import Router

logger = logging.getLogger(__name__)


class Coordinator:
	"""
	Facade over the orchestration components.

	Usage:
		coordinator = Coordinator(config.orchestration_dir)
		session_id = coordinator.create("Add login page")
		coordinator.route(session_id)
		coordinator.start(session_id, "planner")
		coordinator.complete(session_id, "planner", {"plan_id": "p1"})
	"""

	def __init__(self, root: Path | str):
		self.store = SessionStore(root)
		self.router = Router(self.store)
		self.tracker = AgentTracker(self.store)
		self.handoffs = HandoffLedger(self.store)
		self.checkpoints = CheckpointManager(self.store)
		self.recovery = RecoveryPolicy(self.store)

	# Session store

	def create(self, goal: str, mode: SessionMode | str = SessionMode.IMPLICIT) -> str:
		return self.store.create(goal, mode)

	def read(self, session_id: str) -> Session:
		return self.store.read(session_id)

	def current(self, override: Optional[str] = None) -> Optional[str]:
		return self.store.current(override)

	def resolve_session(self, override: Optional[str] = None) -> str:
		"""Resolve the session to operate on, or raise if there is none."""
		session_id = self.store.current(override)
		if not session_id:
			raise InvalidInputError("No active session. Run 'init' first.")
		return session_id

	def list_sessions(self) -> list[Session]:
		return self.store.list_sessions()

	def cleanup(self, session_id: str) -> bool:
		return self.store.delete(session_id)

	# Routing and agent lifecycle

	def route(self, session_id: str, goal: Optional[str] = None):
		return self.router.route(session_id, goal)

	def start(self, session_id: str, agent: str):
		return self.tracker.start(session_id, agent)

	def complete(self, session_id: str, agent: str, output: Any = None):
		return self.tracker.complete(session_id, agent, output)

	def fail(self, session_id: str, agent: str, error_message: str = "Unknown error"):
		return self.tracker.fail(session_id, agent, error_message)

	# Handoffs

	def record_handoff(self, session_id: str, from_agent: str, to_agent: str, context: Any = None):
		return self.handoffs.record(session_id, from_agent, to_agent, context)

	def context_for(self, session_id: Optional[str], agent: str) -> Any:
		return self.handoffs.context_for(session_id, agent)

	# Checkpoints and recovery

	def save_checkpoint(self, session_id: str, name: str = "checkpoint"):
		return self.checkpoints.save(session_id, name)

	def resume(self, session_id: str, checkpoint_id: Optional[str] = None) -> Session:
		return self.checkpoints.resume(session_id, checkpoint_id)

	def decide(self, session_id: str, agent: Optional[str] = None):
		return self.recovery.decide(session_id, agent)

	def finish(self, session_id: str, success: bool, summary: str = "") -> Session:
		"""
		Close out a session as complete or failed.

		Args:
			session_id: Session id
			success: Whether the goal was accomplished
			summary: Short description of the outcome

		Returns:
			The updated Session
		"""
		def _apply(session: Session) -> Session:
			session.status = SessionStatus.COMPLETE if success else SessionStatus.FAILED
			session.outcome = {
				"success": success,
				"summary": summary,
				"finished_at": utc_now(),
			}
			return session

		session = self.store.mutate(session_id, _apply)
		logger.info(f"Session {session_id} finished: {session.status.value}")
		return session

