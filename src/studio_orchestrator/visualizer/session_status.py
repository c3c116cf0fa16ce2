"""Rich views for orchestration session status."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..session.models import AgentStatus, Session, SessionStatus
from .utils import format_timestamp, truncate

AGENT_ICONS = {
	AgentStatus.PENDING: "[dim]○[/dim]",
	AgentStatus.ACTIVE: "[yellow]⟳[/yellow]",
	AgentStatus.COMPLETED: "[green]✓[/green]",
	AgentStatus.FAILED: "[red]✗[/red]",
}

STATUS_STYLES = {
	SessionStatus.INITIALIZING: "dim",
	SessionStatus.ROUTING: "cyan",
	SessionStatus.EXECUTING: "yellow",
	SessionStatus.RECOVERING: "red",
	SessionStatus.PAUSED: "magenta",
	SessionStatus.COMPLETE: "green",
	SessionStatus.FAILED: "bold red",
}


def render_session_status(session: Optional[Session], console: Optional[Console] = None) -> None:
	"""Render a status panel for one session: routing, agents, failures, checkpoints."""
	console = console or Console()

	if session is None:
		console.print("[yellow]No active orchestration session[/yellow]")
		return

	style = STATUS_STYLES.get(session.status, "white")
	routing = session.routing

	lines = []
	lines.append(f"[bold]Session:[/bold] [cyan]{session.id}[/cyan]")
	lines.append(f"[bold]Mode:[/bold] {session.mode.value}")
	lines.append(f"[bold]Status:[/bold] [{style}]{session.status.value}[/{style}]")
	lines.append(f"[bold]Goal:[/bold] {escape(truncate(session.goal, 60))}")
	lines.append("")
	lines.append(f"[bold]Workflow:[/bold] {routing.selected_workflow or 'not routed'}")
	lines.append(f"[bold]Confidence:[/bold] {routing.routing_confidence}")

	if routing.agent_sequence:
		lines.append("")
		lines.append("[bold]Agent Sequence:[/bold]")
		for entry in routing.agent_sequence:
			icon = AGENT_ICONS.get(entry.status, "○")
			lines.append(f"  {icon} {entry.agent}")

	if session.failures:
		lines.append("")
		lines.append(f"[red]Failures: {len(session.failures)}[/red]")
		for failure in session.failures:
			action = failure.recovery_action.value if failure.recovery_action else "undecided"
			lines.append(f"  - {failure.agent}: {escape(failure.error_message)} [dim]({action})[/dim]")

	if session.checkpoints:
		lines.append("")
		lines.append(f"[green]Checkpoints: {len(session.checkpoints)}[/green]")
		for cp in session.checkpoints:
			lines.append(f"  - {escape(cp.name)} ({cp.id})")

	if session.outcome:
		lines.append("")
		lines.append(f"[bold]Outcome:[/bold] {escape(session.outcome.get('summary') or session.status.value)}")

	console.print(Panel("\n".join(lines), title="Orchestration Status", border_style="magenta"))


def render_session_list(
	sessions: list[Session],
	current_id: Optional[str] = None,
	console: Optional[Console] = None,
) -> None:
	"""Render a table of sessions, marking the current one."""
	console = console or Console()

	if not sessions:
		console.print("[dim]No orchestration sessions recorded yet.[/dim]")
		return

	table = Table(title="Orchestration Sessions")
	table.add_column("", width=1)
	table.add_column("Session ID", style="cyan")
	table.add_column("Status")
	table.add_column("Workflow")
	table.add_column("Agents", justify="right")
	table.add_column("Failures", justify="right")
	table.add_column("Goal")
	table.add_column("Updated")

	for session in sessions:
		style = STATUS_STYLES.get(session.status, "white")
		sequence = session.routing.agent_sequence
		done = len([e for e in sequence if e.status == AgentStatus.COMPLETED])
		table.add_row(
			"*" if session.id == current_id else "",
			session.id,
			f"[{style}]{session.status.value}[/{style}]",
			session.routing.selected_workflow or "-",
			f"{done}/{len(sequence)}",
			str(len(session.failures)),
			escape(truncate(session.goal, 40)),
			format_timestamp(session.updated_at),
		)

	console.print(table)
