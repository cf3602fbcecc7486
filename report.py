"""
Keyword Research Report

Re-renders the text report of a stored run, from the final results when the
run has completed or from the live checkpoint while it is still going.
"""

import argparse
import sys

from rich.console import Console

from keyword_research.analyzer.report_generator import ReportGenerator
from keyword_research.analyzer.result_loader import ResultLoader
from keyword_research.pipeline.checkpoint_store import CheckpointStore
from keyword_research.pipeline.config import load_pipeline_config
from keyword_research.pipeline.exceptions import KeywordResearchError

console = Console()


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Keyword research report")

    parser.add_argument("run_key", help="Run key to report on")
    parser.add_argument("--config", default="config.json", help="Config file path")
    parser.add_argument(
        "--limit", type=int, default=20, help="Rows in the console table (default: 20)"
    )
    parser.add_argument(
        "--no-save", action="store_true", help="Print only, do not rewrite summary.txt"
    )

    return parser.parse_args()


def main():
    """Main entry point"""
    args = parse_args()
    config = load_pipeline_config(args.config)
    store = CheckpointStore(config.results_dir)

    try:
        run = ResultLoader(store).load_run(args.run_key)
    except (ValueError, KeywordResearchError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"Run: {run.run_key} (from {run.source})")
    console.print(f"Loaded {len(run.results)} keyword results")

    generator = ReportGenerator(run.results, run.context)
    text = generator.generate_text_report()
    print(text)

    if not args.no_save:
        try:
            path = store.save_summary(args.run_key, text)
        except KeywordResearchError as e:
            console.print(f"[red]Could not write summary: {e}[/red]")
            sys.exit(1)
        console.print(f"✓ Saved {path}")

    generator.print_console_summary(console, limit=args.limit)


if __name__ == "__main__":
    main()
