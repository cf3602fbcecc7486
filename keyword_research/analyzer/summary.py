"""
Summary aggregation and text report rendering
"""

from collections import Counter

from keyword_research.analyzer.models import ReportContext, SummaryReport
from keyword_research.pipeline.models import KeywordResult, Recommendation

MEDALS = ("🥇", "🥈", "🥉")
TOP_LIMIT = 20
CONSIDER_LIMIT = 15
CHALLENGING_LIMIT = 5
FAILED_LIMIT = 10


class SummaryAggregator:
    """Derives tier counts and the human-readable report from results"""

    def summarize(self, results: list[KeywordResult]) -> SummaryReport:
        """Count results per tier; failed results only count as failed"""
        tiers = Counter(r.recommendation for r in results if r.succeeded)
        analyzed = sum(tiers.values())
        return SummaryReport(
            total=len(results),
            analyzed=analyzed,
            failed=len(results) - analyzed,
            excellent=tiers[Recommendation.EXCELLENT],
            good=tiers[Recommendation.GOOD],
            consider=tiers[Recommendation.CONSIDER],
            challenging=tiers[Recommendation.CHALLENGING],
            avoid=tiers[Recommendation.AVOID],
        )

    def render(self, results: list[KeywordResult], context: ReportContext) -> str:
        """Render the text report; output depends only on the arguments"""
        summary = self.summarize(results)
        successful = self._by_opportunity([r for r in results if r.succeeded])
        failed = [r for r in results if not r.succeeded]

        top = [
            r
            for r in successful
            if r.recommendation in (Recommendation.EXCELLENT, Recommendation.GOOD)
        ]
        consider = self._tier(successful, Recommendation.CONSIDER)
        challenging = self._tier(successful, Recommendation.CHALLENGING)

        sep = "=" * 80
        sub_sep = "-" * 50
        lines: list[str] = [sep, "🏆 APP STORE KEYWORD ANALYSIS REPORT", sep, ""]

        lines.append(f"📱 App: {context.app_title}")
        lines.append(f"📊 Analysis Date: {context.report_date}")
        if context.in_progress:
            lines.append(
                f"📈 Progress: {len(results)}/{context.total_keywords} keywords analyzed"
            )
        else:
            if context.competitors_analyzed is not None:
                lines.append(f"🔍 Competitors Analyzed: {context.competitors_analyzed}")
            lines.append(f"🏷️  Total Keywords Found: {context.total_keywords}")
        lines.append("")

        lines.append("📊 ANALYSIS SUMMARY")
        lines.append(sub_sep)
        lines.append(f"Total Keywords: {summary.total}")
        lines.append(f"Successfully Analyzed: {summary.analyzed}")
        if summary.failed:
            lines.append(f"⚠️  Failed to Analyze: {summary.failed}")
        lines.append(f"🌟 Top Opportunities: {summary.top_opportunities}")
        lines.append(f"📋 Worth Considering: {summary.consider}")
        lines.append(f"⚠️  Challenging: {summary.challenging}")
        lines.append(f"❌ Avoid: {summary.avoid}")
        lines.append("")

        if top:
            lines.append("🌟 TOP KEYWORD OPPORTUNITIES")
            lines.append(sub_sep)
            for i, r in enumerate(top[:TOP_LIMIT]):
                medal = MEDALS[i] if i < len(MEDALS) else "  "
                lines.append(
                    f"{medal} {self._scores(r)} | Opportunity: {r.opportunity} "
                    f"| {r.recommendation.value.upper()}"
                )
            lines.extend(self._more(len(top), TOP_LIMIT))
            lines.append("")

        if consider:
            lines.append("📋 WORTH CONSIDERING")
            lines.append(sub_sep)
            for r in consider[:CONSIDER_LIMIT]:
                lines.append(f"   {self._scores(r)} | Opportunity: {r.opportunity}")
            lines.extend(self._more(len(consider), CONSIDER_LIMIT))
            lines.append("")

        if challenging:
            lines.append("⚠️  CHALLENGING (high competition)")
            lines.append(sub_sep)
            for r in challenging[:CHALLENGING_LIMIT]:
                lines.append(f"   {self._scores(r)}")
            lines.extend(self._more(len(challenging), CHALLENGING_LIMIT))
            lines.append("")

        if summary.avoid:
            lines.append("❌ AVOID (not worth the effort)")
            lines.append(sub_sep)
            lines.append(f"   {summary.avoid} keywords with low traffic and high difficulty")
            lines.append("")

        if failed:
            lines.append("🔧 FAILED ANALYSES (need retry)")
            lines.append(sub_sep)
            lines.append(f"{len(failed)} keywords could not be analyzed. These should be retried.")
            for r in failed[:FAILED_LIMIT]:
                lines.append(f"   - {r.keyword}")
            lines.extend(self._more(len(failed), FAILED_LIMIT))
            lines.append("")

        if context.keyword_sources:
            lines.append("🔍 KEYWORD SOURCES")
            lines.append(sub_sep)
            for source, count in context.keyword_sources.items():
                lines.append(f"{source}: {count}")
            lines.append("")

        if context.in_progress:
            lines.append("📈 ANALYSIS IN PROGRESS")
            lines.append(sub_sep)
            lines.append(f"Progress: {len(results)}/{context.total_keywords} keywords analyzed")
            if context.last_updated:
                lines.append(f"Last updated: {context.last_updated}")
        else:
            lines.append("🎯 NEXT STEPS")
            lines.append(sub_sep)
            if top:
                lines.append("✅ PRIORITIZE: Focus ASO efforts on the top opportunities above")
            else:
                lines.append('📊 CONSIDER: Review "worth considering" keywords for potential')
            lines.append("   1. Test top keywords in app title and description")
            lines.append("   2. Monitor ranking improvements over 2-4 weeks")
            lines.append("   3. Re-run analysis quarterly as market changes")

        return "\n".join(lines).rstrip() + "\n"

    def _by_opportunity(self, results: list[KeywordResult]) -> list[KeywordResult]:
        return sorted(results, key=lambda r: r.opportunity, reverse=True)

    def _tier(self, results: list[KeywordResult], tier: Recommendation) -> list[KeywordResult]:
        return [r for r in results if r.recommendation is tier]

    def _scores(self, r: KeywordResult) -> str:
        return f"{r.keyword:<30} | Traffic: {r.traffic:>3} | Difficulty: {r.difficulty:>3}"

    def _more(self, count: int, limit: int) -> list[str]:
        if count > limit:
            return [f"   ... and {count - limit} more"]
        return []
