"""Main entry point for the GitHub AI utilization PR report."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from .analysis import generate_analysis_report, load_report_rows
from .cli import parse_args
from .config import Config, load_config
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    DataValidationError,
    OutputError,
)
from .export import format_datetime, write_csv
from .fetcher import fetch_all_pull_requests
from .github_client import GitHubClient
from .stats import generate_run_summary, summarize_pull_requests

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_OUTPUT = 5
EXIT_DATA = 6


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_fetch(config: Config) -> int:
    """Fetch all configured repositories, print the summary and write the CSV."""
    tz = config.tz
    print(f"Repositories: {', '.join(repo.full_name for repo in config.repositories)}")
    print(
        f"Period: {format_datetime(config.date_range.start, tz)} - "
        f"{format_datetime(config.date_range.end, tz)} ({config.timezone})"
    )

    client = GitHubClient(config=config)
    records = fetch_all_pull_requests(
        client,
        config.repositories,
        config.date_range,
        tz=tz,
        label_policy=config.label_policy,
        max_pages=config.max_pages,
        delay_seconds=config.api_delay_seconds,
    )

    print(generate_run_summary(summarize_pull_requests(records)))

    rows = write_csv(config.output_path, records, tz)
    print(f"Wrote {rows} pull requests to {config.output_path}")
    return EXIT_OK


def run_analyze(args: argparse.Namespace) -> int:
    """Load a CSV report and print the analysis."""
    csv_path = args.csv_path or os.getenv("OUTPUT_PATH", "").strip()
    if not csv_path:
        raise ConfigurationError(
            "No CSV report given. Pass a path or set the 'OUTPUT_PATH' environment variable."
        )

    print(generate_analysis_report(load_report_rows(csv_path)))
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the requested command and map failures to exit codes."""
    try:
        args = parse_args(argv)
        configure_logging(args.verbose)
        load_dotenv()

        if args.command == "analyze":
            return run_analyze(args)

        config = load_config(
            os.environ,
            repositories=args.repos,
            start_date=args.start_date,
            end_date=args.end_date,
            output_path=args.output,
            timezone=args.timezone,
            label_policy=args.ai_rate_policy,
            max_pages=args.max_pages,
            max_retries=args.max_retries,
        )
        return run_fetch(config)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        print(
            "Required: GITHUB_TOKEN, GITHUB_REPOSITORIES. "
            "Optional: START_DATE and END_DATE (both or neither), OUTPUT_PATH, "
            "REPORT_TIMEZONE, AI_RATE_POLICY. A .env file is also read.",
            file=sys.stderr,
        )
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        return EXIT_AUTHENTICATION
    except ApiError as exc:
        logger.error("GitHub API error: %s", exc)
        return EXIT_API
    except OutputError as exc:
        logger.error("Output error: %s", exc)
        return EXIT_OUTPUT
    except DataValidationError as exc:
        logger.error("Data validation error: %s", exc)
        return EXIT_DATA
    except Exception:
        logger.exception("Unexpected error while generating the report")
        return EXIT_UNEXPECTED


if __name__ == "__main__":
    raise SystemExit(main())
