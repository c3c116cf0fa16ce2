"""
Session Store - file-backed orchestration session documents.

Layout under the store root:
	<root>/.current                      id of the last created session
	<root>/<session_id>/state.json       the live Session document
	<root>/<session_id>/<cp_id>.json     standalone checkpoint snapshots

Every write goes to a temporary file in the same directory which is then
renamed over the target, so a half-written document is never observable.
The store does not lock: callers must serialize writers per session.
"""

import json
import logging
import os
import re
import shutil
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from .models import Session, SessionMode, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATE_FILE = "state.json"
CURRENT_FILE = ".current"

_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class InvalidInputError(ValueError):
	"""Raised when a required argument is missing or malformed."""
	pass


class NotFoundError(LookupError):
	"""Raised when a referenced session or checkpoint does not exist."""
	pass


class SessionNotFoundError(NotFoundError):
	"""Raised when a session document is not found."""
	pass


class CheckpointNotFoundError(NotFoundError):
	"""Raised when a checkpoint or its snapshot file is not found."""
	pass


def validate_id(value: Optional[str], label: str) -> str:
	"""Check that an id is present and safe to use as a single path component."""
	if not value or not value.strip():
		raise InvalidInputError(f"{label} is required")
	value = value.strip()
	if not _ID_PATTERN.match(value):
		raise InvalidInputError(f"Invalid {label}: {value!r}")
	return value


def write_text_atomic(path: Path, text: str) -> None:
	"""Atomic write: write to temp file, fsync, then rename over the target."""
	path.parent.mkdir(parents=True, exist_ok=True)
	fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
	try:
		with os.fdopen(fd, "w", encoding="utf-8") as f:
			f.write(text)
			f.flush()
			os.fsync(f.fileno())
		os.replace(tmp_path, path)
	except BaseException:
		if os.path.exists(tmp_path):
			os.unlink(tmp_path)
		raise


class SessionStore:
	"""
	Arena of Session documents keyed by id.

	Usage:
		store = SessionStore(config.orchestration_dir)

		session_id = store.create("Add login page")
		store.mutate(session_id, lambda s: setattr(s, "status", SessionStatus.ROUTING))
		session = store.read(session_id)
	"""

	def __init__(self, root: Path | str):
		"""Initialize the store rooted at the given directory."""
		self.root = Path(root)
		self.root.mkdir(parents=True, exist_ok=True)

	# ------------------------------------------------------------------
	# Paths
	# ------------------------------------------------------------------

	def session_dir(self, session_id: str) -> Path:
		return self.root / validate_id(session_id, "session id")

	def state_path(self, session_id: str) -> Path:
		return self.session_dir(session_id) / STATE_FILE

	def snapshot_path(self, session_id: str, checkpoint_id: str) -> Path:
		return self.session_dir(session_id) / f"{validate_id(checkpoint_id, 'checkpoint id')}.json"

	@property
	def current_path(self) -> Path:
		return self.root / CURRENT_FILE

	# ------------------------------------------------------------------
	# Sessions
	# ------------------------------------------------------------------

	def _generate_id(self) -> str:
		while True:
			timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
			session_id = f"orch_{timestamp}_{uuid.uuid4().hex[:4]}"
			if not (self.root / session_id).exists():
				return session_id

	def create(self, goal: str, mode: SessionMode | str = SessionMode.IMPLICIT) -> str:
		"""
		Create a new session and make it the current one.

		Args:
			goal: Free-text goal description
			mode: How the session was triggered (implicit or explicit)

		Returns:
			The new session id

		Raises:
			InvalidInputError: If the goal is empty or the mode unknown
		"""
		if not goal or not goal.strip():
			raise InvalidInputError("Goal is required")
		try:
			mode = SessionMode(mode)
		except ValueError:
			raise InvalidInputError(f"Invalid mode: {mode!r} (expected implicit or explicit)") from None

		session_id = self._generate_id()
		now = utc_now()
		session = Session(id=session_id, mode=mode, goal=goal, created_at=now, updated_at=now)

		self._write(session)
		self.set_current(session_id)
		logger.info(f"Created orchestration session {session_id} ({mode.value})")
		return session_id

	def exists(self, session_id: str) -> bool:
		"""Check whether a session document exists."""
		return self.state_path(session_id).is_file()

	def read(self, session_id: str) -> Session:
		"""
		Read a session document.

		Raises:
			SessionNotFoundError: If no document exists at that id
		"""
		path = self.state_path(session_id)
		if not path.is_file():
			raise SessionNotFoundError(f"Session not found: {session_id}")
		return Session.model_validate_json(path.read_text(encoding="utf-8"))

	def mutate(self, session_id: str, updater: Callable[[Session], T]) -> T:
		"""
		Read a session, apply an in-place update, and write it back.

		updated_at is refreshed on every call. If the updater raises, nothing
		is written.

		Args:
			session_id: Session to update
			updater: Callable that mutates the Session and may return a value

		Returns:
			Whatever the updater returned
		"""
		session = self.read(session_id)
		result = updater(session)
		session.touch()
		self._write(session)
		return result

	def replace(self, session: Session) -> None:
		"""Replace a live session document wholesale."""
		if not self.exists(session.id):
			raise SessionNotFoundError(f"Session not found: {session.id}")
		self._write(session)

	def _write(self, session: Session) -> None:
		path = self.state_path(session.id)
		try:
			write_text_atomic(path, session.model_dump_json(indent=2))
		except OSError as e:
			logger.error(f"Failed to write session {session.id}: {e}")
			raise

	def list_sessions(self) -> list[Session]:
		"""All persisted sessions, newest first."""
		sessions = []
		for child in sorted(self.root.iterdir()):
			state_file = child / STATE_FILE
			if child.is_dir() and state_file.is_file():
				sessions.append(Session.model_validate_json(state_file.read_text(encoding="utf-8")))
		return sorted(sessions, key=lambda s: s.created_at, reverse=True)

	def delete(self, session_id: str) -> bool:
		"""
		Delete a session's persisted state.

		Clears the current pointer if it pointed at this session.

		Returns:
			True if a session directory was removed
		"""
		session_dir = self.session_dir(session_id)
		removed = False
		if session_dir.is_dir():
			shutil.rmtree(session_dir)
			removed = True
			logger.info(f"Cleaned up session: {session_id}")

		if self.current() == session_id:
			self.clear_current()
		return removed

	# ------------------------------------------------------------------
	# Current session pointer
	# ------------------------------------------------------------------

	def current(self, override: Optional[str] = None) -> Optional[str]:
		"""
		Resolve the active session id.

		Args:
			override: Explicit session id supplied by the caller

		Returns:
			The override if given, else the last created session, else None
		"""
		if override and override.strip():
			return override.strip()
		if self.current_path.is_file():
			value = self.current_path.read_text(encoding="utf-8").strip()
			return value or None
		return None

	def set_current(self, session_id: str) -> None:
		write_text_atomic(self.current_path, validate_id(session_id, "session id") + "\n")

	def clear_current(self) -> None:
		self.current_path.unlink(missing_ok=True)

	# ------------------------------------------------------------------
	# Checkpoint snapshots
	# ------------------------------------------------------------------

	def save_snapshot(self, session_id: str, checkpoint_id: str, document: dict[str, Any]) -> Path:
		"""Persist a standalone snapshot addressable by checkpoint id."""
		path = self.snapshot_path(session_id, checkpoint_id)
		try:
			write_text_atomic(path, json.dumps(document, indent=2))
		except OSError as e:
			logger.error(f"Failed to write snapshot {checkpoint_id} for session {session_id}: {e}")
			raise
		return path

	def load_snapshot(self, session_id: str, checkpoint_id: str) -> dict[str, Any]:
		"""
		Load a standalone snapshot.

		Raises:
			CheckpointNotFoundError: If the snapshot file is missing
		"""
		path = self.snapshot_path(session_id, checkpoint_id)
		if not path.is_file():
			raise CheckpointNotFoundError(f"Checkpoint file not found: {checkpoint_id}")
		with open(path, "r", encoding="utf-8") as f:
			return json.load(f)
