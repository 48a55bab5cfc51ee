"""Command-line argument parsing for the GitHub AI utilization PR report."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .labels import LabelPolicy


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Options left unset fall back to environment variables (see ``load_config``).

    Returns:
        Parsed CLI arguments; ``command`` is ``fetch`` or ``analyze``.
    """
    parser = argparse.ArgumentParser(
        prog="ai-pr-report",
        description=(
            "Export GitHub pull requests with AI utilization labels and lead "
            "times to CSV, and analyze the exported report."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Fetch pull requests and write the CSV report.",
    )
    fetch_parser.add_argument(
        "--repos",
        help='Comma-separated repositories, e.g. "owner1/repo1,owner2/repo2" (GITHUB_REPOSITORIES).',
    )
    fetch_parser.add_argument(
        "--start-date",
        help="Start date YYYY-MM-DD; the window opens at noon the day before (START_DATE).",
    )
    fetch_parser.add_argument(
        "--end-date",
        help="End date YYYY-MM-DD; the window closes at 11:59:59 that day (END_DATE).",
    )
    fetch_parser.add_argument(
        "--output",
        help="Output CSV path (OUTPUT_PATH; default derived from the date range).",
    )
    fetch_parser.add_argument(
        "--timezone",
        help="Reference timezone for the noon cutoff (REPORT_TIMEZONE; default Asia/Tokyo).",
    )
    fetch_parser.add_argument(
        "--ai-rate-policy",
        choices=[policy.value for policy in LabelPolicy],
        help="Handling of AI labels above 100%% (AI_RATE_POLICY; default passthrough).",
    )
    fetch_parser.add_argument(
        "--max-pages",
        type=_positive_int,
        help="Maximum pages fetched per repository (MAX_PAGES; default 100).",
    )
    fetch_parser.add_argument(
        "--max-retries",
        type=_positive_int,
        help="Attempts per API request; 1 disables retrying (MAX_RETRIES; default 5).",
    )

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Print AI utilization and lead-time statistics for a CSV report.",
    )
    analyze_parser.add_argument(
        "csv_path",
        nargs="?",
        help="CSV report to analyze (default: OUTPUT_PATH).",
    )

    for subparser in (fetch_parser, analyze_parser):
        subparser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Enable debug logging.",
        )

    return parser.parse_args(argv)
