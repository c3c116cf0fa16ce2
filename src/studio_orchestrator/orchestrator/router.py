"""Goal router - picks the workflow (ordered agent sequence) for a goal."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..session.models import AgentSequenceEntry, AgentStatus, Routing, Session, SessionStatus
from ..session.store import InvalidInputError, SessionStore

logger = logging.getLogger(__name__)


class Workflow(str, Enum):
	BUILD_ONLY = "build_only"
	PLAN_THEN_BUILD = "plan_then_build"


@dataclass(frozen=True)
class RoutingRule:
	"""A keyword class and the workflow it selects."""
	name: str
	keywords: tuple[str, ...]
	workflow: Workflow
	agents: tuple[str, ...]
	confidence: float


@dataclass
class RoutingDecision:
	workflow: Workflow
	agent_sequence: list[str]
	confidence: float
	matched_rule: str = "default"
	goal: str = ""

	def to_routing(self) -> Routing:
		"""Materialize the decision as the session's routing record."""
		return Routing(
			analyzed_goal=self.goal,
			selected_workflow=self.workflow.value,
			agent_sequence=[
				AgentSequenceEntry(agent=agent, order=i, status=AgentStatus.PENDING)
				for i, agent in enumerate(self.agent_sequence, start=1)
			],
			routing_confidence=self.confidence,
		)


# Evaluated in order; the first rule with a matching keyword wins.
ROUTING_RULES: tuple[RoutingRule, ...] = (
	RoutingRule(
		name="quick_fix",
		keywords=("fix", "bug", "error", "typo"),
		workflow=Workflow.BUILD_ONLY,
		agents=("builder",),
		confidence=0.7,
	),
	RoutingRule(
		name="refactor",
		keywords=("refactor", "reorganize", "restructure"),
		workflow=Workflow.PLAN_THEN_BUILD,
		agents=("planner", "builder"),
		confidence=0.9,
	),
	RoutingRule(
		name="new_feature",
		keywords=("add", "create", "implement", "build"),
		workflow=Workflow.PLAN_THEN_BUILD,
		agents=("planner", "builder"),
		confidence=0.85,
	),
)

DEFAULT_RULE = RoutingRule(
	name="default",
	keywords=(),
	workflow=Workflow.PLAN_THEN_BUILD,
	agents=("planner", "builder"),
	confidence=0.8,
)


def classify_goal(goal: str) -> RoutingDecision:
	"""Classify a goal by case-insensitive substring match against the routing rules."""
	text = goal.lower()
	rule = next(
		(r for r in ROUTING_RULES if any(k in text for k in r.keywords)),
		DEFAULT_RULE,
	)
	return RoutingDecision(
		workflow=rule.workflow,
		agent_sequence=list(rule.agents),
		confidence=rule.confidence,
		matched_rule=rule.name,
		goal=goal,
	)


class Router:
	"""Routes a session's goal and records the decision in the session."""

	def __init__(self, store: SessionStore):
		self.store = store

	def route(self, session_id: str, goal: Optional[str] = None) -> RoutingDecision:
		"""
		Route a goal and write the decision into the session.

		Args:
			session_id: Session to route
			goal: Goal to classify (default: the session's own goal)

		Returns:
			RoutingDecision

		Raises:
			InvalidInputError: If there is no goal to route
			SessionNotFoundError: If the session does not exist
		"""
		if not goal or not goal.strip():
			goal = self.store.read(session_id).goal
		if not goal or not goal.strip():
			raise InvalidInputError("No goal provided")

		decision = classify_goal(goal)

		def _apply(session: Session) -> None:
			session.routing = decision.to_routing()
			session.status = SessionStatus.ROUTING

		self.store.mutate(session_id, _apply)
		logger.info(
			f"Routed {session_id} to workflow: {decision.workflow.value} "
			f"(confidence: {decision.confidence})"
		)
		return decision
