"""CSV export of collected pull request records."""

from __future__ import annotations

import csv
import logging
import os
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional

from .errors import OutputError
from .models import PullRequestRecord

logger = logging.getLogger(__name__)

CSV_FIELDNAMES = [
    "Number",
    "Title",
    "Body",
    "Author",
    "Repository",
    "State",
    "Created At",
    "Updated At",
    "Merged At",
    "Closed At",
    "Lead Time (Days)",
    "AI Utilization Rate (%)",
    "Labels",
    "URL",
]

LABEL_SEPARATOR = "; "


def format_datetime(value: Optional[datetime], tz: tzinfo) -> str:
    """Format an instant as ``YYYY-MM-DD HH:MM:SS`` local time in ``tz``."""
    if value is None:
        return ""
    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


def sanitize_body_text(body: str) -> str:
    """Flatten line breaks so each pull request stays on a single CSV line."""
    if not body:
        return ""
    return body.replace("\r\n", " ").replace("\n", " ").replace("\r", " ").strip()


def _optional(value: Optional[object]) -> str:
    return "" if value is None else str(value)


def record_to_row(record: PullRequestRecord, tz: tzinfo) -> Dict[str, str]:
    """Convert one record into a CSV row keyed by ``CSV_FIELDNAMES``."""
    return {
        "Number": str(record.number),
        "Title": record.title,
        "Body": sanitize_body_text(record.body),
        "Author": record.author,
        "Repository": record.repository,
        "State": record.state.value,
        "Created At": format_datetime(record.created_at, tz),
        "Updated At": format_datetime(record.updated_at, tz),
        "Merged At": format_datetime(record.merged_at, tz),
        "Closed At": format_datetime(record.closed_at, tz),
        "Lead Time (Days)": _optional(record.lead_time_days),
        "AI Utilization Rate (%)": _optional(record.ai_utilization_rate),
        "Labels": LABEL_SEPARATOR.join(record.labels),
        "URL": record.url,
    }


def write_csv(output_path: str, records: Iterable[PullRequestRecord], tz: tzinfo) -> int:
    """Write records to ``output_path``, creating parent directories as needed.

    A header row is always written, even when there are no records.

    Returns:
        Number of data rows written.

    Raises:
        OutputError: If the directory or file cannot be written.
    """
    rows: List[Dict[str, str]] = [record_to_row(record, tz) for record in records]

    try:
        directory = os.path.dirname(output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(output_path, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=CSV_FIELDNAMES)
            writer.writeheader()
            writer.writerows(rows)
    except OSError as exc:
        raise OutputError(f"Failed to write CSV report to '{output_path}': {exc}") from exc

    logger.info("Wrote CSV report", extra={"output_path": output_path, "rows": len(rows)})
    return len(rows)
