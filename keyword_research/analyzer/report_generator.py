"""
Report generator for keyword research results
"""

from rich.console import Console
from rich.table import Table

from keyword_research.analyzer.models import ReportContext
from keyword_research.analyzer.summary import SummaryAggregator
from keyword_research.pipeline.models import KeywordResult, Recommendation

TIER_STYLES = {
    Recommendation.EXCELLENT: "bold green",
    Recommendation.GOOD: "green",
    Recommendation.CONSIDER: "yellow",
    Recommendation.CHALLENGING: "magenta",
    Recommendation.AVOID: "red",
    Recommendation.ANALYSIS_FAILED: "dim",
}


class ReportGenerator:
    """Generates text and console reports"""

    def __init__(
        self,
        results: list[KeywordResult],
        context: ReportContext,
        aggregator: SummaryAggregator | None = None,
    ):
        self.results = results
        self.context = context
        self.aggregator = aggregator or SummaryAggregator()

    def generate_text_report(self) -> str:
        """Text report (summary.txt)"""
        return self.aggregator.render(self.results, self.context)

    def build_console_table(self, limit: int = 20) -> Table:
        """Rich table of the best-scoring keywords"""
        ranked = sorted(
            (r for r in self.results if r.succeeded),
            key=lambda r: r.opportunity,
            reverse=True,
        )

        table = Table(title=f"Keyword Opportunities: {self.context.app_title}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Keyword", style="cyan")
        table.add_column("Traffic", justify="right")
        table.add_column("Difficulty", justify="right")
        table.add_column("Opportunity", justify="right", style="bold")
        table.add_column("Tier")

        for i, r in enumerate(ranked[:limit], 1):
            table.add_row(
                str(i),
                r.keyword,
                str(r.traffic),
                str(r.difficulty),
                str(r.opportunity),
                f"[{TIER_STYLES[r.recommendation]}]{r.recommendation.value}[/]",
            )
        return table

    def print_console_summary(self, console: Console | None = None, limit: int = 20) -> None:
        console = console or Console()
        console.print(self.build_console_table(limit))

        summary = self.aggregator.summarize(self.results)
        if summary.failed:
            console.print(
                f"[yellow]{summary.failed} keyword(s) could not be analyzed "
                f"(see summary report)[/yellow]"
            )
