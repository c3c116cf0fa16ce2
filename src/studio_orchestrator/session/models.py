"""
Session Models - Pydantic schemas for the orchestration session document.

One Session document describes a single orchestration run: how the goal
was routed, every agent invocation, the handoffs between agents, saved
checkpoints, and the failures that drove recovery decisions.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, JsonValue


def utc_now() -> str:
	"""Current UTC time as an ISO-8601 string."""
	return datetime.now(timezone.utc).isoformat()


class SessionMode(str, Enum):
	"""How the session was triggered."""
	IMPLICIT = "implicit"
	EXPLICIT = "explicit"


class SessionStatus(str, Enum):
	"""Lifecycle status of a session."""
	INITIALIZING = "initializing"
	ROUTING = "routing"
	EXECUTING = "executing"
	RECOVERING = "recovering"
	PAUSED = "paused"
	COMPLETE = "complete"
	FAILED = "failed"


class AgentStatus(str, Enum):
	"""Status of an agent in the routed sequence or of one invocation."""
	PENDING = "pending"
	ACTIVE = "active"
	COMPLETED = "completed"
	FAILED = "failed"


class RecoveryAction(str, Enum):
	"""What the controller should do after a failure."""
	RETRY = "retry"
	REPLAN = "replan"
	ESCALATE = "escalate"


class AgentSequenceEntry(BaseModel):
	"""One step of the routed workflow."""
	agent: str
	order: int = Field(description="1-based position in the workflow")
	status: AgentStatus = Field(default=AgentStatus.PENDING)
	reason: Optional[str] = Field(default=None)
	started_at: Optional[str] = Field(default=None)
	completed_at: Optional[str] = Field(default=None)


class Routing(BaseModel):
	"""Routing decision written into the session."""
	analyzed_goal: Optional[str] = Field(default=None)
	selected_workflow: Optional[str] = Field(default=None)
	agent_sequence: list[AgentSequenceEntry] = Field(default_factory=list)
	routing_confidence: float = Field(default=0.0, ge=0.0, le=1.0)

	def entry_for(self, agent: str) -> Optional[AgentSequenceEntry]:
		"""Get the sequence entry for an agent, if it was routed."""
		for entry in self.agent_sequence:
			if entry.agent == agent:
				return entry
		return None


class AgentInvocation(BaseModel):
	"""A single start of an agent."""
	agent_name: str
	invocation_id: str
	status: AgentStatus = Field(default=AgentStatus.ACTIVE)
	started_at: str = Field(default_factory=utc_now)
	completed_at: Optional[str] = Field(default=None)
	input: JsonValue = Field(default_factory=dict, description="Handoff context at start time")
	output: JsonValue = Field(default=None)
	error: Optional[str] = Field(default=None)


class Handoff(BaseModel):
	"""Context passed from one agent to the next. Immutable once appended."""
	from_agent: str
	to_agent: str
	timestamp: str = Field(default_factory=utc_now)
	context_passed: JsonValue = Field(default_factory=dict)
	reason: str = Field(default="workflow_sequence")


class Failure(BaseModel):
	"""A recorded agent failure. Only recovery_action is set after append."""
	timestamp: str = Field(default_factory=utc_now)
	agent: str
	error_type: str = Field(default="recoverable")
	error_message: str
	recovery_action: Optional[RecoveryAction] = Field(default=None)
	retry_count: int = Field(default=0)


class CheckpointRecord(BaseModel):
	"""Checkpoint metadata plus an embedded copy of the session at save time."""
	id: str
	name: str
	timestamp: str = Field(default_factory=utc_now)
	after_agent: str = Field(default="none", description="Last completed agent, or 'none'")
	state: dict[str, Any] = Field(default_factory=dict)
	can_resume_from: bool = Field(default=True)

	def summary(self) -> dict:
		"""Metadata without the embedded state."""
		return self.model_dump(mode="json", exclude={"state"})


class Session(BaseModel):
	"""
	One orchestration run.

	The document is owned by the orchestration core. Agents only ever
	see derived views (their routing entry, their handoff context).
	"""
	id: str
	mode: SessionMode = Field(default=SessionMode.IMPLICIT)
	trigger: str = Field(default="build_command")
	status: SessionStatus = Field(default=SessionStatus.INITIALIZING)
	created_at: str = Field(default_factory=utc_now)
	updated_at: str = Field(default_factory=utc_now)
	goal: str

	routing: Routing = Field(default_factory=Routing)
	agent_states: list[AgentInvocation] = Field(default_factory=list)
	handoffs: list[Handoff] = Field(default_factory=list)
	checkpoints: list[CheckpointRecord] = Field(default_factory=list)
	failures: list[Failure] = Field(default_factory=list)
	outcome: Optional[dict[str, Any]] = Field(default=None)

	def touch(self) -> None:
		"""Refresh updated_at."""
		self.updated_at = utc_now()

	def active_invocations(self, agent: str) -> list[AgentInvocation]:
		"""All invocations of an agent that are still active, oldest first."""
		return [
			invocation for invocation in self.agent_states
			if invocation.agent_name == agent and invocation.status == AgentStatus.ACTIVE
		]

	def active_invocation(self, agent: str) -> Optional[AgentInvocation]:
		"""Most recently started invocation of an agent that is still active."""
		for invocation in reversed(self.agent_states):
			if invocation.agent_name == agent and invocation.status == AgentStatus.ACTIVE:
				return invocation
		return None

	def incoming_context(self, agent: str) -> JsonValue:
		"""Context of the latest handoff addressed to an agent, or {}."""
		for handoff in reversed(self.handoffs):
			if handoff.to_agent == agent:
				return handoff.context_passed
		return {}

	def last_completed_agent(self) -> str:
		"""Name of the last completed agent in the routed sequence, or 'none'."""
		completed = [
			e.agent for e in self.routing.agent_sequence
			if e.status == AgentStatus.COMPLETED
		]
		return completed[-1] if completed else "none"

	def failure_count(self, agent: Optional[str] = None) -> int:
		"""Failures for one agent, or for the whole session."""
		if agent:
			return len([f for f in self.failures if f.agent == agent])
		return len(self.failures)

	def snapshot(self) -> dict[str, Any]:
		"""Independent deep copy of the document as plain JSON data."""
		return self.model_dump(mode="json")
