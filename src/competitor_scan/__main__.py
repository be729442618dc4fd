"""CLI entry point: run one competitor analysis from the terminal."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from competitor_scan.exceptions import PipelineError
from competitor_scan.logging import configure_structlog, get_logger
from competitor_scan.pipeline import run_analysis
from competitor_scan.rendering import export_filename

log = get_logger("competitor_scan.cli")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m competitor_scan",
        description="Generate a competitive analysis for a company name or URL.",
    )
    parser.add_argument("query", help="Company name or URL, e.g. 'Stripe' or 'shopify.com'")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Directory to write the markdown report into (default: print to stdout)",
    )
    parser.add_argument("--json", action="store_true", help="Print the structured analysis as JSON instead")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    configure_structlog(testing=True)
    args = _parse_args(argv)

    try:
        report = asyncio.run(run_analysis(args.query))
    except PipelineError as e:
        log.error("cli.analysis_failed", kind=e.kind.value, reason=e.reason, detail=e.detail)
        print(f"❌ {e.user_message}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report.analysis.model_dump(by_alias=True), indent=2))
        return 0

    if args.output is None:
        print(report.markdown, end="")
        return 0

    try:
        args.output.mkdir(parents=True, exist_ok=True)
        report_file = args.output / export_filename(report.query)
        report_file.write_text(report.markdown, encoding="utf-8")
    except OSError as e:
        log.error("cli.output_failed", error=str(e), path=str(args.output))
        print(f"❌ Failed to save report: {e}", file=sys.stderr)
        return 1

    log.info("cli.report_saved", path=str(report_file))
    print(f"✅ Report saved to: {report_file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
