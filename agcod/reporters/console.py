"""Console reporter using Rich library for formatted CLI output.

Shows issued claim codes and failures. In verbose mode it also prints
the (redacted) headers of each signed request and the response status.
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from agcod.reporters.base import Reporter
from agcod.models import AvailableFunds, CancelResponse, ExchangeRecord, ExchangeStatus


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        verbose: If True, print request headers and response status codes
        console: Console to print to (defaults to a new stdout console)
    """

    def __init__(self, verbose: bool = False, console: Optional[Console] = None):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = console or Console(legacy_windows=True)
        self.verbose = verbose

    def on_request(self, operation: str, url: str, headers: dict[str, str]) -> None:
        if not self.verbose:
            return

        self.console.print()
        self.console.print(
            Rule(f"[bold cyan]{operation}[/bold cyan] {url}", style="cyan", characters="-")
        )

        table = Table(
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )
        table.add_column("Header", style="cyan", no_wrap=True)
        table.add_column("Value", overflow="fold")
        for name, value in headers.items():
            table.add_row(escape(name), escape(value))
        self.console.print(table)

    def on_response(self, operation: str, status_code: int, body: bytes) -> None:
        if not self.verbose:
            return

        style = "green" if 200 <= status_code < 300 else "red"
        self.console.print(f"  [{style}]HTTP {status_code}[/{style}] ({len(body)} bytes)")

    def on_exchange_complete(self, record: ExchangeRecord) -> None:
        if record.status == ExchangeStatus.ERROR:
            self.console.print(f"[red][ERROR][/red] {record.operation}: {escape(record.error_message or '')}")
        elif self.verbose:
            self.console.print(f"[green][OK][/green] {record.operation}")

    def show_claim_codes(self, codes: list[str]) -> None:
        """Print issued claim codes, one per line."""
        if not codes:
            self.console.print("[yellow]No claim codes issued.[/yellow]")
            return
        for code in codes:
            self.console.print(f"[bold green]{code}[/bold green]", highlight=False)

    def show_cancel(self, response: CancelResponse) -> None:
        self.console.print(
            f"{response.gc_id or '-'}: [bold]{response.status}[/bold]", highlight=False
        )

    def show_funds(self, funds: AvailableFunds) -> None:
        self.console.print(
            f"Available funds: [bold]{funds.amount} {funds.currency_code or ''}[/bold]".rstrip(),
            highlight=False,
        )
