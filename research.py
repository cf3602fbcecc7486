"""
App Store Keyword Research

Collects candidate keywords for an app, scores them for traffic and
difficulty, and ranks them by opportunity. Progress is checkpointed after
every keyword; re-running the same command resumes an interrupted run.
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console

from keyword_research.analyzer.models import ReportContext
from keyword_research.analyzer.report_generator import ReportGenerator
from keyword_research.pipeline.batch_runner import BatchRunner
from keyword_research.pipeline.checkpoint_store import (
    CheckpointStore,
    LoadStatus,
    make_run_key,
    validate_run_key,
)
from keyword_research.pipeline.collector import (
    CollectedKeywords,
    KeywordCollector,
    parse_app_id,
)
from keyword_research.pipeline.config import load_pipeline_config
from keyword_research.pipeline.dedupe import dedupe
from keyword_research.pipeline.exceptions import InputValidation, KeywordResearchError
from keyword_research.pipeline.logging_setup import setup_logging
from keyword_research.pipeline.progress_tracker import ProgressTracker
from keyword_research.pipeline.scorer import KeywordScorer
from llm import KeywordGenerationError, KeywordGenerator, create_random_llm_wrapper
from provider.core.exceptions import ProviderError
from provider.core.types import AppSnapshot
from provider.providers.itunes import ITunesMetricsProvider

logger = logging.getLogger("keyword_research.cli")
console = Console()


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="App Store keyword research")
    parser.add_argument("--config", default="config.json", help="Config file path")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Also log to the console"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    app_parser = subparsers.add_parser(
        "app", help="Collect keywords for an App Store app and score them"
    )
    app_parser.add_argument("app_id", help="Numeric App Store app ID")

    kw_parser = subparsers.add_parser("keywords", help="Score a supplied keyword list")
    kw_parser.add_argument("run_key", help="Name for this run (letters, digits, _ or -)")
    kw_parser.add_argument("keywords", nargs="*", help="Keywords to score")
    kw_parser.add_argument("-f", "--file", help="File with keywords (one per line)")

    return parser.parse_args()


def read_keyword_file(path: str) -> list[str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return [line for line in f if line.strip() and not line.startswith("#")]
    except FileNotFoundError:
        raise InputValidation(f"keyword file not found: {path}") from None


async def prepare_app_run(
    args, store: CheckpointStore, config, provider: ITunesMetricsProvider
) -> tuple[str, dict, list[str], CollectedKeywords | None]:
    """Resolve run key, app snapshot and keywords for the ``app`` command"""
    app = await provider.client.lookup(parse_app_id(args.app_id))

    run_key = make_run_key(app.title)
    loaded = store.load(run_key)
    if loaded.status is LoadStatus.RESUMED:
        # Reuse the stored keyword list so a resumed run does not regenerate it
        console.print(f"[cyan]Found checkpoint for '{run_key}', resuming[/cyan]")
        return run_key, loaded.checkpoint.app_snapshot, loaded.checkpoint.keywords, None

    wrapper = create_random_llm_wrapper(args.config)
    if wrapper is None:
        raise InputValidation("no LLM configured; add an 'llm' section to the config file")

    async with wrapper:
        collector = KeywordCollector(
            provider.client,
            KeywordGenerator(wrapper),
            max_competitors=config.max_competitors,
            suggestion_seeds=config.suggestion_seeds,
        )
        collected = await collector.collect(app.app_id)

    return run_key, collected.app.to_dict(), collected.keywords, collected


async def main():
    """Main entry point"""
    args = parse_args()
    config = load_pipeline_config(args.config)
    store = CheckpointStore(config.results_dir)
    provider = ITunesMetricsProvider.from_config(args.config)

    try:
        collected = None
        if args.command == "app":
            run_key, app_snapshot, keywords, collected = await prepare_app_run(
                args, store, config, provider
            )
        else:
            validate_run_key(args.run_key)
            raw = list(args.keywords)
            if args.file:
                raw.extend(read_keyword_file(args.file))
            keywords = dedupe(raw)
            run_key = args.run_key
            app_snapshot = AppSnapshot(app_id=0, title=run_key).to_dict()

        progress = ProgressTracker(run_key, console=console)
        runner = BatchRunner(KeywordScorer(provider), store, config=config, progress=progress)
        # Nothing is written under the run directory for unusable input
        runner.validate(run_key, keywords)

        setup_logging(store.run_dir(run_key) / "research.log", args.verbose, console)
        logger.info(f"Starting keyword research '{run_key}' with {len(keywords)} keywords")

        if collected is not None:
            runner.keyword_sources = collected.source_counts()
            runner.competitors_analyzed = len(collected.competitors)

        with progress.progress:
            artifact = await runner.run(run_key, app_snapshot, keywords)

        progress.show_completion_summary(artifact.summary)
        context = ReportContext(
            app_title=artifact.app_snapshot.get("title", run_key),
            report_date=artifact.completed_at,
            total_keywords=artifact.total_keywords,
        )
        ReportGenerator(artifact.results, context).print_console_summary(console)
        console.print(f"\nResults saved to: {store.run_dir(run_key)}")

    except KeyboardInterrupt:
        logger.info("Research interrupted by user")
        console.print("\n[yellow]Interrupted. Run the same command again to resume.[/yellow]")
        sys.exit(130)

    except (KeywordResearchError, ProviderError, KeywordGenerationError) as e:
        logger.error(f"Research failed: {e}", exc_info=True)
        console.print(f"\n[red]Research failed: {e}[/red]")
        sys.exit(1)

    finally:
        await provider.close()


if __name__ == "__main__":
    asyncio.run(main())
