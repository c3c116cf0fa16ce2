"""CLI for studio-orchestrator: session, routing, agent lifecycle, checkpoint, and recovery commands."""

import argparse
import json
import platform
import sys
from importlib.metadata import version as pkg_version
from typing import Any, Optional

from dotenv import load_dotenv
from rich.console import Console

from .config import Config, load_config
from .logging_config import setup_logging
from .orchestrator.coordinator import Coordinator
from .session.store import InvalidInputError, NotFoundError
from .visualizer.session_status import render_session_list, render_session_status


def _print_json(data: Any) -> None:
	print(json.dumps(data, indent=2))


def _session_id(coordinator: Coordinator, args: argparse.Namespace, config: Config) -> str:
	"""Session from --session / positional id, else the configured override, else current."""
	explicit = getattr(args, "session", None) or getattr(args, "session_id", None)
	return coordinator.resolve_session(explicit or config.session_override)


def cmd_init(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Initialize an orchestration session."""
	session_id = coordinator.create(args.goal, args.mode)
	print(session_id)


def cmd_state(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Print the session state document."""
	session = coordinator.read(_session_id(coordinator, args, config))
	_print_json(session.model_dump(mode="json"))


def cmd_route(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Route the goal and print the routing record."""
	session_id = _session_id(coordinator, args, config)
	coordinator.route(session_id, args.goal)
	_print_json(coordinator.read(session_id).routing.model_dump(mode="json"))


def cmd_agent_start(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	invocation = coordinator.start(_session_id(coordinator, args, config), args.agent)
	_print_json(invocation.model_dump(mode="json"))


def cmd_agent_complete(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	invocation = coordinator.complete(_session_id(coordinator, args, config), args.agent, args.output)
	_print_json(invocation.model_dump(mode="json") if invocation else None)


def cmd_agent_fail(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	failure = coordinator.fail(_session_id(coordinator, args, config), args.agent, args.error)
	_print_json(failure.model_dump(mode="json"))


def cmd_checkpoint(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Save a checkpoint and print its id."""
	record = coordinator.save_checkpoint(_session_id(coordinator, args, config), args.name)
	print(record.id)


def cmd_checkpoints(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	session_id = _session_id(coordinator, args, config)
	_print_json(coordinator.checkpoints.list_checkpoints(session_id))


def cmd_resume(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Restore from a checkpoint; the session is left paused."""
	restored = coordinator.resume(_session_id(coordinator, args, config), args.checkpoint_id)
	_print_json({"session_id": restored.id, "status": restored.status.value})


def cmd_handoff(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	handoff = coordinator.record_handoff(
		_session_id(coordinator, args, config),
		args.from_agent,
		args.to_agent,
		args.context,
	)
	_print_json(handoff.model_dump(mode="json"))


def cmd_get_handoff(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Print the incoming handoff context for an agent ({} if there is none)."""
	session_id = coordinator.current(args.session or config.session_override)
	_print_json(coordinator.context_for(session_id, args.agent))


def cmd_recover(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	decision = coordinator.decide(_session_id(coordinator, args, config), args.agent)
	_print_json(decision.to_dict())


def cmd_finish(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	session = coordinator.finish(_session_id(coordinator, args, config), not args.failed, args.summary)
	_print_json({"session_id": session.id, "status": session.status.value, "outcome": session.outcome})


def cmd_status(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Human-readable status of the current session."""
	console = Console()
	session_id = coordinator.current(args.session or config.session_override)
	if not session_id:
		render_session_status(None, console=console)
		return
	render_session_status(coordinator.read(session_id), console=console)


def cmd_list(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	render_session_list(
		coordinator.list_sessions(),
		current_id=coordinator.current(config.session_override),
		console=Console(),
	)


def cmd_cleanup(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Delete a session's state and clear the current pointer if it matches."""
	session_id = coordinator.current(args.session_id or args.session or config.session_override)
	if not session_id:
		print("No session to clean up", file=sys.stderr)
		return
	removed = coordinator.cleanup(session_id)
	_print_json({"session_id": session_id, "removed": removed})


def cmd_serve(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Run the MCP server (stdio transport)."""
	from .server import mcp
	mcp.run()


def cmd_doctor(args: argparse.Namespace, coordinator: Coordinator, config: Config) -> None:
	"""Health check - verify installation and configuration."""
	print("studio-orchestrator doctor")
	print(f"{'=' * 40}")

	issues: list[str] = []

	py_ver = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
	print(f"  Python:       {py_ver}")
	print(f"  Platform:     {platform.system()} {platform.machine()}")
	print()

	print("  Core deps:")
	for dep in ["pydantic", "platformdirs", "rich", "mcp", "python-dotenv"]:
		try:
			print(f"    {dep:22s} {pkg_version(dep)}")
		except Exception:
			print(f"    {dep:22s} NOT INSTALLED")
			issues.append(f"{dep} package not installed")
	print()

	print("  Paths:")
	for label, path in [
		("Config dir", config.config_dir),
		("Data dir", config.data_dir),
		("Sessions", config.orchestration_dir),
		("Logs", config.log_dir),
	]:
		status = "OK" if path.exists() else "MISSING"
		if not path.exists():
			issues.append(f"{label} missing: {path}")
		print(f"    [{status:7s}] {label}: {path}")
	print()

	print(f"  Sessions:     {len(coordinator.list_sessions())}")
	print(f"  Current:      {coordinator.current(config.session_override) or 'none'}")
	print()

	if issues:
		print(f"  {len(issues)} issue(s) found:")
		for issue in issues:
			print(f"    - {issue}")
		sys.exit(1)
	else:
		print("  All checks passed.")


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="studio-orchestrator",
		description="Orchestration state for planner/builder/verifier agent pipelines",
	)
	subparsers = parser.add_subparsers(dest="command")

	# Session-scoped commands accept an explicit session id
	scoped = argparse.ArgumentParser(add_help=False)
	scoped.add_argument("--session", type=str, default=None, help="Session ID (default: current)")

	p = subparsers.add_parser("init", help="Initialize an orchestration session")
	p.add_argument("goal", help="Goal description")
	p.add_argument("mode", nargs="?", default="implicit", choices=["implicit", "explicit"])
	p.set_defaults(func=cmd_init)

	p = subparsers.add_parser("state", parents=[scoped], help="Print session state")
	p.add_argument("session_id", nargs="?", default=None, help="Session ID (default: current)")
	p.set_defaults(func=cmd_state)

	p = subparsers.add_parser("route", parents=[scoped], help="Route goal to a workflow")
	p.add_argument("goal", nargs="?", default=None, help="Goal (default: session goal)")
	p.set_defaults(func=cmd_route)

	p = subparsers.add_parser("agent-start", parents=[scoped], help="Mark agent as started")
	p.add_argument("agent")
	p.set_defaults(func=cmd_agent_start)

	p = subparsers.add_parser("agent-complete", parents=[scoped], help="Mark agent as completed")
	p.add_argument("agent")
	p.add_argument("output", nargs="?", default=None, help="Agent output JSON")
	p.set_defaults(func=cmd_agent_complete)

	p = subparsers.add_parser("agent-fail", parents=[scoped], help="Mark agent as failed")
	p.add_argument("agent")
	p.add_argument("error", nargs="?", default="Unknown error", help="Error message")
	p.set_defaults(func=cmd_agent_fail)

	p = subparsers.add_parser("checkpoint", parents=[scoped], help="Save checkpoint")
	p.add_argument("name", nargs="?", default="checkpoint")
	p.set_defaults(func=cmd_checkpoint)

	p = subparsers.add_parser("checkpoints", parents=[scoped], help="List checkpoints")
	p.set_defaults(func=cmd_checkpoints)

	p = subparsers.add_parser("resume", parents=[scoped], help="Resume from checkpoint")
	p.add_argument("checkpoint_id", nargs="?", default=None, help="Checkpoint ID (default: latest)")
	p.set_defaults(func=cmd_resume)

	p = subparsers.add_parser("handoff", parents=[scoped], help="Record agent handoff")
	p.add_argument("from_agent")
	p.add_argument("to_agent")
	p.add_argument("context", nargs="?", default=None, help="Context JSON")
	p.set_defaults(func=cmd_handoff)

	p = subparsers.add_parser("get-handoff", parents=[scoped], help="Get incoming handoff context")
	p.add_argument("agent")
	p.set_defaults(func=cmd_get_handoff)

	p = subparsers.add_parser("recover", parents=[scoped], help="Decide recovery (retry/replan/escalate)")
	p.add_argument("agent", nargs="?", default=None, help="Failing agent (default: whole session)")
	p.set_defaults(func=cmd_recover)

	p = subparsers.add_parser("finish", parents=[scoped], help="Mark session complete or failed")
	p.add_argument("--failed", action="store_true", help="Mark the session failed")
	p.add_argument("--summary", type=str, default="", help="Outcome summary")
	p.set_defaults(func=cmd_finish)

	p = subparsers.add_parser("status", parents=[scoped], help="Show orchestration status")
	p.set_defaults(func=cmd_status)

	p = subparsers.add_parser("list", help="List sessions")
	p.set_defaults(func=cmd_list)

	p = subparsers.add_parser("cleanup", parents=[scoped], help="Clean up a session")
	p.add_argument("session_id", nargs="?", default=None, help="Session ID (default: current)")
	p.set_defaults(func=cmd_cleanup)

	p = subparsers.add_parser("serve", help="Run MCP server (stdio)")
	p.set_defaults(func=cmd_serve)

	p = subparsers.add_parser("doctor", help="Health check")
	p.set_defaults(func=cmd_doctor)

	return parser


def main(argv: Optional[list[str]] = None) -> None:
	"""CLI entry point."""
	load_dotenv()
	parser = build_parser()
	args = parser.parse_args(argv)

	if not args.command:
		parser.print_help()
		sys.exit(1)

	config = load_config()
	setup_logging(config.log_level, config.log_dir)
	coordinator = Coordinator(config.orchestration_dir)

	try:
		args.func(args, coordinator, config)
	except (InvalidInputError, NotFoundError) as e:
		print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)
