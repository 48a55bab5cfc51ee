"""Analysis of an exported pull request CSV report.

Groups AI-labeled pull requests into utilization bands, buckets lead times and
compares lead time between high and low AI utilization.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import DataValidationError
from .export import CSV_FIELDNAMES
from .stats import SampleStatistics, compute_statistics, format_days

logger = logging.getLogger(__name__)

HIGH_AI_UTILIZATION_THRESHOLD = 50
NO_CORRELATION_THRESHOLD_DAYS = 1.0

# (label, inclusive lower bound); a row belongs to the first band it reaches.
AI_UTILIZATION_BANDS: Tuple[Tuple[str, int], ...] = (
    ("High (75%-100%)", 75),
    ("Medium-high (50%-74%)", 50),
    ("Medium-low (25%-49%)", 25),
    ("Low (0%-24%)", 0),
)

# (label, lower bound, upper bound), both bounds inclusive.
LEAD_TIME_CATEGORIES: Tuple[Tuple[str, float, float], ...] = (
    ("Fast (<= 1 day)", 0.0, 1.0),
    ("Quick (1-3 days)", 1.0, 3.0),
    ("Standard (3-7 days)", 3.0, 7.0),
    ("Long (> 7 days)", 7.0, float("inf")),
)

MAX_LISTED_PER_CATEGORY = 5


@dataclass(frozen=True)
class ReportRow:
    """One CSV row with the numeric columns cast leniently."""

    number: int
    title: str
    body: str
    repository: str
    ai_rate: Optional[int]
    lead_time_days: Optional[float]


def try_int(value: Optional[str]) -> Optional[int]:
    """Cast to ``int``, returning ``None`` for empty or invalid values."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def try_float(value: Optional[str]) -> Optional[float]:
    """Cast to ``float``, returning ``None`` for empty or invalid values."""
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def load_report_rows(csv_path: str) -> List[ReportRow]:
    """Read a report CSV written by :func:`ai_pr_report.export.write_csv`.

    Raises:
        DataValidationError: If the file cannot be read or lacks report columns.
    """
    try:
        with open(csv_path, "r", newline="", encoding="utf-8") as csvfile:
            reader = csv.DictReader(csvfile)
            missing = [name for name in CSV_FIELDNAMES if name not in (reader.fieldnames or [])]
            if missing:
                raise DataValidationError(
                    f"CSV report '{csv_path}' is missing columns: {', '.join(missing)}"
                )
            rows = [
                ReportRow(
                    number=try_int(row["Number"]) or 0,
                    title=row["Title"] or "",
                    body=row["Body"] or "",
                    repository=row["Repository"] or "",
                    ai_rate=try_int(row["AI Utilization Rate (%)"]),
                    lead_time_days=try_float(row["Lead Time (Days)"]),
                )
                for row in reader
            ]
    except OSError as exc:
        raise DataValidationError(f"Failed to read CSV report '{csv_path}': {exc}") from exc

    logger.info("Loaded CSV report", extra={"csv_path": csv_path, "rows": len(rows)})
    return rows


def summarize_body(body: str, limit: int = 100) -> str:
    """Return a one-line excerpt of a pull request description."""
    clean_body = " ".join(body.split())
    if not clean_body:
        return "(no description)"
    if len(clean_body) <= limit:
        return clean_body

    for index, char in enumerate(clean_body):
        if char in ".!?":
            if index + 1 <= limit + limit // 2:
                return clean_body[: index + 1]
            break

    return clean_body[:limit] + "..."


def group_by_ai_utilization(rows: Sequence[ReportRow]) -> Dict[str, List[ReportRow]]:
    """Group AI-labeled rows into utilization bands.

    Every band is present in the result, in ``AI_UTILIZATION_BANDS`` order.
    Rows are ordered by rate descending, then repository and number.
    """
    grouped: Dict[str, List[ReportRow]] = {label: [] for label, _ in AI_UTILIZATION_BANDS}
    labeled = sorted(
        (row for row in rows if row.ai_rate is not None),
        key=lambda row: (-row.ai_rate, row.repository, row.number),
    )

    for row in labeled:
        for label, lower_bound in AI_UTILIZATION_BANDS:
            if row.ai_rate >= lower_bound:
                grouped[label].append(row)
                break

    return grouped


def categorize_lead_times(rows: Sequence[ReportRow]) -> Dict[str, List[ReportRow]]:
    """Bucket rows with a lead time into ``LEAD_TIME_CATEGORIES``.

    Rows are ordered by lead time descending; boundary values land in the
    first matching category.
    """
    categorized: Dict[str, List[ReportRow]] = {label: [] for label, _, _ in LEAD_TIME_CATEGORIES}
    with_lead_time = sorted(
        (row for row in rows if row.lead_time_days is not None),
        key=lambda row: (-row.lead_time_days, row.repository, row.number),
    )

    for row in with_lead_time:
        for label, lower_bound, upper_bound in LEAD_TIME_CATEGORIES:
            if lower_bound <= row.lead_time_days <= upper_bound:
                categorized[label].append(row)
                break

    return categorized


def summarize_lead_time_by_repository(rows: Sequence[ReportRow]) -> Dict[str, SampleStatistics]:
    """Compute lead-time statistics per repository."""
    samples: Dict[str, List[float]] = {}
    for row in rows:
        if row.lead_time_days is not None:
            samples.setdefault(row.repository, []).append(row.lead_time_days)
    return {repository: compute_statistics(values) for repository, values in sorted(samples.items())}


@dataclass(frozen=True)
class LeadTimeComparison:
    """Lead-time statistics for high vs low AI utilization."""

    high: SampleStatistics
    low: SampleStatistics

    @property
    def mean_difference(self) -> Optional[float]:
        if self.high.mean is None or self.low.mean is None:
            return None
        return self.high.mean - self.low.mean

    @property
    def median_difference(self) -> Optional[float]:
        if self.high.median is None or self.low.median is None:
            return None
        return self.high.median - self.low.median

    def conclusion(self) -> str:
        difference = self.mean_difference
        if difference is None:
            if self.high.count:
                return "Only high AI utilization data; comparison not possible."
            if self.low.count:
                return "Only low AI utilization data; comparison not possible."
            return "No AI-labeled merged pull requests; comparison not possible."
        if abs(difference) < NO_CORRELATION_THRESHOLD_DAYS:
            return "No notable correlation between AI utilization and lead time."
        if difference > 0:
            return f"High AI utilization tends to take longer ({difference:.1f} days)."
        return f"High AI utilization tends to be faster ({abs(difference):.1f} days shorter)."


def compare_ai_vs_lead_time(rows: Sequence[ReportRow]) -> LeadTimeComparison:
    """Split rows with both metrics at ``HIGH_AI_UTILIZATION_THRESHOLD`` and compare lead times."""
    complete = [row for row in rows if row.ai_rate is not None and row.lead_time_days is not None]
    return LeadTimeComparison(
        high=compute_statistics(
            row.lead_time_days for row in complete if row.ai_rate >= HIGH_AI_UTILIZATION_THRESHOLD
        ),
        low=compute_statistics(
            row.lead_time_days for row in complete if row.ai_rate < HIGH_AI_UTILIZATION_THRESHOLD
        ),
    )


def _format_signed(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return f"{value:+.1f}d"


def _format_group(name: str, stats: SampleStatistics) -> List[str]:
    lines = [f"   {name}: {stats.count}"]
    if stats.count:
        lines.extend(
            [
                f"      Mean: {format_days(stats.mean)}",
                f"      Median: {format_days(stats.median)}",
                f"      Range: {format_days(stats.minimum)} - {format_days(stats.maximum)}",
            ]
        )
    return lines


def generate_analysis_report(rows: Sequence[ReportRow]) -> str:
    """Render AI utilization bands, lead-time categories and the comparison."""
    lines = ["AI utilization groups"]
    for label, band_rows in group_by_ai_utilization(rows).items():
        lines.append(f"   {label}: {len(band_rows)}")
        for row in band_rows:
            lines.append(f"      PR #{row.number} (AI{row.ai_rate}%) - {row.repository}: {row.title}")
            lines.append(f"         {summarize_body(row.body)}")

    lines.extend(["", "Lead time categories (merged, AI-labeled)"])
    for label, category_rows in categorize_lead_times(rows).items():
        lines.append(f"   {label}: {len(category_rows)}")
        for row in category_rows[:MAX_LISTED_PER_CATEGORY]:
            lines.append(
                f"      PR #{row.number} ({format_days(row.lead_time_days)}) - {row.repository}: {row.title}"
            )
        if len(category_rows) > MAX_LISTED_PER_CATEGORY:
            lines.append(f"      ... {len(category_rows) - MAX_LISTED_PER_CATEGORY} more")

    lines.extend(["", "Lead time by repository"])
    for repository, stats in summarize_lead_time_by_repository(rows).items():
        lines.append(
            f"   {repository}: mean {format_days(stats.mean)} "
            f"({format_days(stats.minimum)} - {format_days(stats.maximum)}, {stats.count} PRs)"
        )

    comparison = compare_ai_vs_lead_time(rows)
    lines.extend(["", "AI utilization vs lead time"])
    lines.extend(_format_group(f"High (>= {HIGH_AI_UTILIZATION_THRESHOLD}%)", comparison.high))
    lines.extend(_format_group(f"Low (< {HIGH_AI_UTILIZATION_THRESHOLD}%)", comparison.low))
    lines.append(f"   Mean difference: {_format_signed(comparison.mean_difference)}")
    lines.append(f"   Median difference: {_format_signed(comparison.median_difference)}")
    lines.append(f"   {comparison.conclusion()}")

    return "\n".join(lines)
