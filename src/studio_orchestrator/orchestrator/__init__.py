"""Orchestrator module - Routing, agent lifecycle, handoffs, checkpoints, and recovery."""

from .checkpoints import CheckpointManager
from .coordinator import Coordinator
from .handoffs import HandoffLedger
from .lifecycle import AgentTracker
from .recovery import RecoveryDecision, RecoveryPolicy
from .router import Router, RoutingDecision, Workflow, classify_goal

__all__ = [
	"Coordinator",
	"Router",
	"RoutingDecision",
	"Workflow",
	"classify_goal",
	"AgentTracker",
	"HandoffLedger",
	"CheckpointManager",
	"RecoveryPolicy",
	"RecoveryDecision",
]
