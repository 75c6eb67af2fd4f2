"""Rich terminal rendering for comparison results.

Color scheme
------------
- green     : ok
- red       : size / sha512 mismatch
- yellow    : missing from reference
- dim       : ignored
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from reprocheck.models.reports import ComparisonOutcome, VerificationResult

_OUTCOME_LABELS: dict[ComparisonOutcome, str] = {
    ComparisonOutcome.OK: "[green]ok[/green]",
    ComparisonOutcome.SIZE_MISMATCH: "[bold red]size[/bold red]",
    ComparisonOutcome.HASH_MISMATCH: "[bold red]sha512[/bold red]",
    ComparisonOutcome.MISSING_FROM_REFERENCE: "[yellow]missing[/yellow]",
    ComparisonOutcome.IGNORED: "[dim]ignored[/dim]",
}


class ResultRenderer:
    """Renders ``VerificationResult`` objects as Rich panels.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render(self, result: VerificationResult) -> Panel:
        report = result.report
        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("File", style="cyan", no_wrap=True)
        table.add_column("Outcome", justify="center")
        table.add_column("Investigate with", style="dim")
        for comparison in report.comparisons:
            table.add_row(
                escape(comparison.filename),
                _OUTCOME_LABELS[comparison.outcome],
                escape(comparison.remediation or ""),
            )

        summary_parts = [
            f"[bold]ok:[/bold] {report.ok}",
            f"[bold]ko:[/bold] {report.ko}",
            f"[bold]ignored:[/bold] {report.ignored}",
        ]
        if report.missing:
            summary_parts.append(f"[yellow][bold]missing:[/bold] {report.missing}[/yellow]")
        if result.reference.not_found:
            summary_parts.append(
                f"[yellow][bold]not in reference repo:[/bold] "
                f"{len(result.reference.not_found)}[/yellow]"
            )
        status = (
            "[bold red]DIFFERS[/bold red]" if report.differs else "[green]reproducible[/green]"
        )
        summary_parts.append(f"[bold]Status:[/bold] {status}")

        body: list[object] = [table, Text(""), Text.from_markup("  |  ".join(summary_parts))]
        for note in report.drift:
            body.append(Text.from_markup(f"[magenta]environment drift:[/magenta] {escape(note)}"))

        border = "red" if report.differs else "green"
        return Panel(
            Group(*body),
            title=f"[bold]{result.record_path.name}[/bold] v{report.version}",
            subtitle=f"report: {result.report_path}",
            border_style=border,
        )

    def print_result(self, result: VerificationResult) -> None:
        self.console.print(self.render(result))
