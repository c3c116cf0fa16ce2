"""Shared test fixtures and helpers for studio-orchestrator tests."""

from pathlib import Path
from typing import Callable

from studio_orchestrator.config import Config
from studio_orchestrator.orchestrator.coordinator import Coordinator


def capture_tools(config: Config, register_fn: Callable) -> dict:
	"""Register tools on a mock MCP and return the captured tool functions.

	Args:
		config: Config object to pass to the registration function
		register_fn: The registration function (e.g., register_orchestration_tools)

	Returns:
		Dict mapping tool name to the tool function
	"""
	captured = {}

	class MockMCP:
		def tool(self):
			def decorator(fn):
				captured[fn.__name__] = fn
				return fn
			return decorator

	register_fn(MockMCP(), config)
	return captured


def make_config(tmp_path: Path) -> Config:
	"""Config rooted entirely under tmp_path."""
	config = Config(config_dir=tmp_path / "config", data_dir=tmp_path / "data")
	config.ensure_dirs()
	return config


def make_routed_session(coordinator: Coordinator, goal: str = "Add login page") -> str:
	"""Create and route a session, returning its id."""
	session_id = coordinator.create(goal)
	coordinator.route(session_id)
	return session_id
