"""Session module - Orchestration session documents and their file-backed store."""

from .models import (
	AgentInvocation,
	AgentSequenceEntry,
	AgentStatus,
	CheckpointRecord,
	Failure,
	Handoff,
	RecoveryAction,
	Routing,
	Session,
	SessionMode,
	SessionStatus,
)
from .store import (
	CheckpointNotFoundError,
	InvalidInputError,
	NotFoundError,
	SessionNotFoundError,
	SessionStore,
)

__all__ = [
	"Session",
	"SessionMode",
	"SessionStatus",
	"AgentStatus",
	"AgentSequenceEntry",
	"AgentInvocation",
	"Routing",
	"Handoff",
	"Failure",
	"CheckpointRecord",
	"RecoveryAction",
	"SessionStore",
	"InvalidInputError",
	"NotFoundError",
	"SessionNotFoundError",
	"CheckpointNotFoundError",
]
