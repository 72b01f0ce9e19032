"""
HTTP Analyzer Console Output Module

Rich console formatting for the CLI interface.
"""

from datetime import datetime

from rich.box import ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from httpanalyzer import __version__
from httpanalyzer.analysis.models import Exchange


# =============================================================================
# Constants
# =============================================================================

# Status code colors by class
STATUS_COLORS = {
    5: "bright_red bold",
    4: "yellow",
    3: "cyan",
    2: "green",
}


def score_style(score: int) -> str:
    """Color band for a risk score."""
    if score >= 40:
        return "bright_red bold"
    if score >= 25:
        return "yellow"
    if score >= 15:
        return "green"
    return "dim"


# =============================================================================
# Console Display Class
# =============================================================================


class AnalyzerConsole:
    """Rich console interface for the HTTP Analyzer CLI."""

    def __init__(self, console: Console | None = None):
        """Initialize the console."""
        self.console = console or Console()

    def print_banner(self) -> None:
        """Print the tool header."""
        self.console.print(Panel(
            f"[bold cyan]HTTP ANALYZER[/bold cyan] [dim]v{__version__}[/dim]\n"
            "[white]Passive HTTP exchange tagging and triage[/white]",
            border_style="bright_blue",
            padding=(0, 2),
        ))

    def print_success(self, text: str) -> None:
        self.console.print(f"[green]✓[/green] {text}")

    def print_warning(self, text: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {text}")

    def print_error(self, text: str) -> None:
        self.console.print(f"[red]✗[/red] {text}")

    def print_info(self, text: str) -> None:
        self.console.print(f"[blue]ℹ[/blue] {text}")

    def print_exchanges(self, exchanges: list[Exchange], filter_domain: str | None = None) -> None:
        """Print captured exchanges as a table, newest first."""
        if not exchanges:
            self.console.print("[dim]No HTTP requests captured.[/dim]")
            return

        title = "Captured Exchanges"
        if filter_domain:
            title += f" ({filter_domain})"

        table = Table(title=title, box=ROUNDED, show_lines=False)
        table.add_column("Time", style="dim", no_wrap=True)
        table.add_column("Method", style="bright_green", no_wrap=True)
        table.add_column("Status", justify="center", no_wrap=True)
        table.add_column("URL", overflow="fold")
        table.add_column("Tags")
        table.add_column("Score", justify="right")

        for exchange in exchanges:
            status = exchange.status_code
            if status:
                status_text = Text(str(status), style=STATUS_COLORS.get(status // 100, "white"))
            else:
                status_text = Text("...", style="dim")

            table.add_row(
                datetime.fromtimestamp(exchange.timestamp).strftime("%H:%M:%S"),
                exchange.method or "GET",
                status_text,
                exchange.url,
                " ".join(sorted(exchange.tags)),
                Text(str(exchange.score), style=score_style(exchange.score)),
            )

        self.console.print(table)

    def print_rate_limits(self, keys: list[dict]) -> None:
        """Print endpoints with 429 responses inside the window."""
        if not keys:
            return

        table = Table(title="Rate-Limited Endpoints", box=ROUNDED)
        table.add_column("Host", style="cyan")
        table.add_column("Path")
        table.add_column("429s", justify="right", style="yellow")

        for key in sorted(keys, key=lambda k: k["count"], reverse=True):
            table.add_row(key["host"] or "-", key["path"], str(key["count"]))

        self.console.print(table)


# =============================================================================
# Singleton Instance
# =============================================================================

_console: AnalyzerConsole | None = None


def get_console() -> AnalyzerConsole:
    """Get the singleton console instance."""
    global _console
    if _console is None:
        _console = AnalyzerConsole()
    return _console
