"""
Checkpoint Manager - named snapshots of a session and resume from them.

A checkpoint is stored twice: as a metadata record (with an embedded copy
of the session) appended to the live document, and as a standalone
snapshot file keyed by checkpoint id. Resume always lands in `paused`;
the controller decides when execution continues.
"""

import logging
import time
from typing import Optional

from ..session.models import CheckpointRecord, Session, SessionStatus, utc_now
from ..session.store import CheckpointNotFoundError, SessionStore, validate_id

logger = logging.getLogger(__name__)


def _checkpoint_id(session: Session) -> str:
	taken = {cp.id for cp in session.checkpoints}
	stamp = time.time_ns()
	while f"cp_{stamp}" in taken:
		stamp += 1
	return f"cp_{stamp}"


class CheckpointManager:
	"""Saves and restores session checkpoints."""

	def __init__(self, store: SessionStore):
		self.store = store

	def save(self, session_id: str, name: str = "checkpoint") -> CheckpointRecord:
		"""
		Snapshot the session under a name.

		The snapshot file is written before the live document, so a failed
		snapshot write leaves the session untouched.

		Args:
			session_id: Session id
			name: Milestone name (e.g., "planning_complete")

		Returns:
			The checkpoint record (with embedded state)
		"""
		name = (name or "").strip() or "checkpoint"

		def _apply(session: Session) -> CheckpointRecord:
			now = utc_now()
			record = CheckpointRecord(
				id=_checkpoint_id(session),
				name=name,
				timestamp=now,
				after_agent=session.last_completed_agent(),
				state=session.snapshot(),
			)
			session.checkpoints.append(record)
			session.updated_at = now
			self.store.save_snapshot(session.id, record.id, session.snapshot())
			return record.model_copy(deep=True)

		record = self.store.mutate(session_id, _apply)
		logger.info(f"Checkpoint saved: {name} ({record.id}) after {record.after_agent}")
		return record

	def resume(self, session_id: str, checkpoint_id: Optional[str] = None) -> Session:
		"""
		Restore a session from a checkpoint and pause it.

		Args:
			session_id: Session id
			checkpoint_id: Checkpoint to restore (default: the latest one)

		Returns:
			The restored Session, with status paused

		Raises:
			CheckpointNotFoundError: If there is no checkpoint or its snapshot is missing
		"""
		if checkpoint_id:
			checkpoint_id = validate_id(checkpoint_id, "checkpoint id")
		else:
			session = self.store.read(session_id)
			if not session.checkpoints:
				raise CheckpointNotFoundError(f"No checkpoint found for session {session_id}")
			checkpoint_id = session.checkpoints[-1].id

		snapshot = self.store.load_snapshot(session_id, checkpoint_id)
		record = next(
			(cp for cp in snapshot.get("checkpoints", []) if cp.get("id") == checkpoint_id),
			None,
		)
		if record is None:
			raise CheckpointNotFoundError(
				f"Checkpoint {checkpoint_id} has no embedded state in its snapshot"
			)

		restored = Session.model_validate(record["state"])
		restored.status = SessionStatus.PAUSED
		restored.touch()
		self.store.replace(restored)

		logger.info(f"Resumed {session_id} from checkpoint: {checkpoint_id}")
		return restored

	def list_checkpoints(self, session_id: str) -> list[dict]:
		"""Checkpoint metadata for a session, oldest first, without embedded state."""
		return [cp.summary() for cp in self.store.read(session_id).checkpoints]
