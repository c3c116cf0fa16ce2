"""Orchestration session tools - routing, agent lifecycle, handoffs, checkpoints, recovery."""

import json
import logging
from typing import Any, Callable

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..orchestrator.coordinator import Coordinator
from ..session.store import InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


def _run(fn: Callable[[], dict[str, Any]]) -> str:
	"""Run an operation and encode its result, mapping expected errors to JSON."""
	try:
		result = fn()
	except (InvalidInputError, NotFoundError) as e:
		return json.dumps({"success": False, "error": str(e)})
	return json.dumps({"success": True, **result}, indent=2)


def register_orchestration_tools(mcp: FastMCP, config: Config) -> None:
	"""Register orchestration tools."""

	_coordinator: Coordinator | None = None

	def coordinator() -> Coordinator:
		nonlocal _coordinator
		if _coordinator is None:
			_coordinator = Coordinator(config.orchestration_dir)
		return _coordinator

	def session(session_id: str) -> str:
		return coordinator().resolve_session(session_id or config.session_override)

	@mcp.tool()
	async def init_orchestration(goal: str, mode: str = "implicit") -> str:
		"""
		Start a new orchestration session for a goal.

		Args:
			goal: What the pipeline should accomplish
			mode: How the session was triggered ("implicit" or "explicit")
		"""
		return _run(lambda: {"session_id": coordinator().create(goal, mode)})

	@mcp.tool()
	async def get_orchestration_state(session_id: str = "") -> str:
		"""
		Get the full state document of a session.

		Args:
			session_id: Session ID (default: current session)
		"""
		return _run(lambda: {"state": coordinator().read(session(session_id)).model_dump(mode="json")})

	@mcp.tool()
	async def route_goal(goal: str = "", session_id: str = "") -> str:
		"""
		Pick the workflow (agent sequence) for a goal and record it in the session.

		Args:
			goal: Goal to route (default: the session's goal)
			session_id: Session ID (default: current session)
		"""
		def _route() -> dict:
			sid = session(session_id)
			coordinator().route(sid, goal or None)
			return {"routing": coordinator().read(sid).routing.model_dump(mode="json")}
		return _run(_route)

	@mcp.tool()
	async def agent_start(agent: str, session_id: str = "") -> str:
		"""
		Mark an agent as started. Returns the handoff context addressed to it.

		Args:
			agent: Agent name (e.g., "planner", "builder", "verifier")
			session_id: Session ID (default: current session)
		"""
		def _start() -> dict:
			invocation = coordinator().start(session(session_id), agent)
			return {"invocation": invocation.model_dump(mode="json")}
		return _run(_start)

	@mcp.tool()
	async def agent_complete(agent: str, output: str = "", session_id: str = "") -> str:
		"""
		Mark an agent as completed.

		Args:
			agent: Agent name
			output: JSON output of the agent (invalid JSON is stored as {})
			session_id: Session ID (default: current session)
		"""
		def _complete() -> dict:
			invocation = coordinator().complete(session(session_id), agent, output)
			return {"invocation": invocation.model_dump(mode="json") if invocation else None}
		return _run(_complete)

	@mcp.tool()
	async def agent_fail(agent: str, error: str = "Unknown error", session_id: str = "") -> str:
		"""
		Mark an agent as failed and record the failure. Follow up with decide_recovery.

		Args:
			agent: Agent name
			error: Error message
			session_id: Session ID (default: current session)
		"""
		def _fail() -> dict:
			failure = coordinator().fail(session(session_id), agent, error)
			return {"failure": failure.model_dump(mode="json")}
		return _run(_fail)

	@mcp.tool()
	async def record_handoff(from_agent: str, to_agent: str, context: str = "", session_id: str = "") -> str:
		"""
		Record context passed from one agent to the next.

		Args:
			from_agent: Agent handing off
			to_agent: Agent receiving the context
			context: JSON context (invalid JSON is stored as {})
			session_id: Session ID (default: current session)
		"""
		def _record() -> dict:
			handoff = coordinator().record_handoff(session(session_id), from_agent, to_agent, context)
			return {"handoff": handoff.model_dump(mode="json")}
		return _run(_record)

	@mcp.tool()
	async def get_handoff(agent: str, session_id: str = "") -> str:
		"""
		Get the latest handoff context addressed to an agent ({} if none).

		Args:
			agent: Agent name
			session_id: Session ID (default: current session)
		"""
		def _get() -> dict:
			sid = coordinator().current(session_id or config.session_override)
			return {"context": coordinator().context_for(sid, agent)}
		return _run(_get)

	@mcp.tool()
	async def save_checkpoint(name: str = "checkpoint", session_id: str = "") -> str:
		"""
		Save a named checkpoint of the session.

		Args:
			name: Milestone name (e.g., "planning_complete")
			session_id: Session ID (default: current session)
		"""
		def _save() -> dict:
			record = coordinator().save_checkpoint(session(session_id), name)
			return {"checkpoint": record.summary()}
		return _run(_save)

	@mcp.tool()
	async def resume_checkpoint(checkpoint_id: str = "", session_id: str = "") -> str:
		"""
		Restore the session from a checkpoint. The session is left paused.

		Args:
			checkpoint_id: Checkpoint ID (default: latest)
			session_id: Session ID (default: current session)
		"""
		def _resume() -> dict:
			restored = coordinator().resume(session(session_id), checkpoint_id or None)
			return {"session_id": restored.id, "status": restored.status.value}
		return _run(_resume)

	@mcp.tool()
	async def decide_recovery(agent: str = "", session_id: str = "") -> str:
		"""
		Decide how to recover from failures: retry, replan, or escalate.

		- retry: re-invoke the same agent with unchanged inputs
		- replan: re-invoke the planner with the same goal
		- escalate: stop and ask the user

		Args:
			agent: Failing agent (default: count all session failures)
			session_id: Session ID (default: current session)
		"""
		return _run(lambda: coordinator().decide(session(session_id), agent or None).to_dict())

	@mcp.tool()
	async def finish_orchestration(success: bool, summary: str = "", session_id: str = "") -> str:
		"""
		Mark the session complete (success) or failed.

		Args:
			success: Whether the goal was accomplished
			summary: Short outcome summary
			session_id: Session ID (default: current session)
		"""
		def _finish() -> dict:
			finished = coordinator().finish(session(session_id), success, summary)
			return {"status": finished.status.value, "outcome": finished.outcome}
		return _run(_finish)

	@mcp.tool()
	async def list_orchestrations() -> str:
		"""List all orchestration sessions, newest first."""
		def _list() -> dict:
			sessions = coordinator().list_sessions()
			return {
				"count": len(sessions),
				"current": coordinator().current(config.session_override),
				"sessions": [
					{
						"id": s.id,
						"status": s.status.value,
						"goal": s.goal,
						"workflow": s.routing.selected_workflow,
						"updated_at": s.updated_at,
					}
					for s in sessions
				],
			}
		return _run(_list)

	@mcp.tool()
	async def cleanup_orchestration(session_id: str = "") -> str:
		"""
		Delete a session's persisted state.

		Args:
			session_id: Session ID (default: current session)
		"""
		def _cleanup() -> dict:
			sid = session(session_id)
			return {"session_id": sid, "removed": coordinator().cleanup(sid)}
		return _run(_cleanup)
