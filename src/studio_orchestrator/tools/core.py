"""Core health check tool."""

import json

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..session.store import CURRENT_FILE


def register_core_tools(mcp: FastMCP, config: Config) -> None:
	"""Register core tools."""

	@mcp.tool()
	async def health_check() -> str:
		"""
		Check the health of the studio-orchestrator server.
		Returns status of all components.
		"""
		status = {
			"server": "running",
			"config_dir": str(config.config_dir),
			"data_dir": str(config.data_dir),
			"orchestration_dir": str(config.orchestration_dir),
			"orchestration_dir_exists": config.orchestration_dir.exists(),
			"has_current_session": (config.orchestration_dir / CURRENT_FILE).exists(),
		}
		return json.dumps(status, indent=2)
