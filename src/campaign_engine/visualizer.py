"""Rich views for plans, attempts and campaign results."""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .models import AttemptOutcome, CampaignResult, CampaignStatus

STATUS_STYLES = {
	CampaignStatus.COMPLETED: "green",
	CampaignStatus.PARTIALLY_COMPLETED: "yellow",
	CampaignStatus.TIMED_OUT: "yellow",
	CampaignStatus.ABORTED: "red",
}

OUTCOME_STYLES = {
	AttemptOutcome.GAINED: "green",
	AttemptOutcome.NO_CHANGE: "dim",
	AttemptOutcome.FAILED: "red",
}


def format_duration(seconds: float) -> str:
	"""Format a duration for display. e.g. '45s', '2m 3s', '1h 4m'."""
	if seconds < 60.0:
		return f"{seconds:.0f}s"
	if seconds < 3600.0:
		return f"{int(seconds // 60)}m {seconds % 60:.0f}s"
	return f"{int(seconds // 3600)}h {int(seconds % 3600 // 60)}m"


def _remaining(deficit: Optional[int]) -> str:
	return "unknown" if deficit is None else f"{deficit} points"


def render_plan(queries: list[str], title: str = "Query Plan", console: Optional[Console] = None) -> None:
	"""Render a numbered table of planned query strings."""
	console = console or Console()

	if not queries:
		console.print("[dim]No queries planned.[/dim]")
		return

	table = Table(title=f"{title} ({len(queries)})")
	table.add_column("#", justify="right", style="dim")
	table.add_column("Query", style="cyan")

	for i, query in enumerate(queries, 1):
		table.add_row(str(i), query)

	console.print(table)


def render_config(settings: dict, console: Optional[Console] = None) -> None:
	console = console or Console()
	table = Table(title="Effective Configuration")
	table.add_column("Setting", style="cyan", no_wrap=True)
	table.add_column("Value")
	for key, value in settings.items():
		table.add_row(key, str(value))
	console.print(table)


def render_attempt(payload: dict, console: Optional[Console] = None) -> None:
	"""One line per attempt event."""
	console = console or Console()
	outcome = AttemptOutcome(payload["outcome"])
	style = OUTCOME_STYLES[outcome]
	delay = payload.get("delay")
	wait = f" [dim]next in {delay:.0f}s[/dim]" if delay is not None else ""
	console.print(f"[{style}]{outcome.value:>9}[/{style}] {payload['delta']:+d}  {payload['query']}{wait}")


def render_result(result: CampaignResult, console: Optional[Console] = None) -> None:
	"""Render the campaign result as a summary panel."""
	console = console or Console()
	style = STATUS_STYLES[result.status]

	lines = [
		f"[bold]Status:[/bold] [{style}]{result.status.value}[/{style}]",
		f"[bold]Earned:[/bold] {result.earned_points} points",
		f"[bold]Remaining:[/bold] {_remaining(result.deficit_remaining)}",
		f"[bold]Attempts:[/bold] {result.attempts} ({result.extra_attempts} supplementary)",
		f"[bold]Recoveries:[/bold] {result.recoveries}",
		f"[bold]Elapsed:[/bold] {format_duration(result.elapsed_seconds)}",
	]
	if result.reason:
		lines.append(f"[bold]Reason:[/bold] {result.reason}")
	if result.error is not None:
		lines.append(f"[bold]Error:[/bold] [red]{result.error}[/red]")

	console.print(Panel("\n".join(lines), title="Campaign Result", border_style=style))
