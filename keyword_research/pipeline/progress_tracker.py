"""
Rich-based progress tracking
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from keyword_research.analyzer.models import SummaryReport
from keyword_research.pipeline.models import KeywordResult


class ProgressTracker:
    """Progress bar for one research run, with live ok/failed counts"""

    def __init__(self, run_key: str, console: Console | None = None):
        self.console = console or Console()
        self.run_key = run_key
        self.success_count = 0
        self.failure_count = 0

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description:<30}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("[green]{task.fields[ok]} ok[/] [red]{task.fields[failed]} failed[/]"),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            console=self.console,
        )

        self.task_id = None

    def start(self, total: int, completed: int = 0, failed: int = 0):
        """Initialize the bar; a resumed run passes what its checkpoint already holds"""
        self.success_count = completed - failed
        self.failure_count = failed
        self.task_id = self.progress.add_task(
            self.run_key,
            total=total,
            completed=completed,
            ok=self.success_count,
            failed=self.failure_count,
        )

    def update(self, result: KeywordResult):
        """Advance by one scored keyword"""
        if self.task_id is None:
            raise RuntimeError("ProgressTracker not started. Call start() first.")

        if result.succeeded:
            self.success_count += 1
        else:
            self.failure_count += 1
        self.progress.update(
            self.task_id,
            advance=1,
            description=result.keyword[:30],
            ok=self.success_count,
            failed=self.failure_count,
        )

    def notify(self, analyzed: int, total: int, failed: int):
        """Periodic progress line printed above the bar"""
        failed_note = f" ({failed} failed)" if failed else ""
        self.console.log(f"Analyzed {analyzed}/{total} keywords...{failed_note} (saved)")

    def show_completion_summary(self, summary: SummaryReport):
        """Tier breakdown of the finished run"""
        table = Table(title=f"Keyword Research: {self.run_key}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="magenta", justify="right")

        table.add_row("Total Keywords", str(summary.total))
        table.add_row("Successfully Analyzed", str(summary.analyzed))
        table.add_row("Failed", str(summary.failed))
        table.add_section()
        table.add_row("Top Opportunities", str(summary.top_opportunities))
        table.add_row("  excellent", str(summary.excellent))
        table.add_row("  good", str(summary.good))
        table.add_row("Worth Considering", str(summary.consider))
        table.add_row("Challenging", str(summary.challenging))
        table.add_row("Avoid", str(summary.avoid))

        if summary.total > 0:
            table.add_section()
            table.add_row("Success Rate", f"{summary.analyzed / summary.total * 100:.1f}%")

        self.console.print(table)
