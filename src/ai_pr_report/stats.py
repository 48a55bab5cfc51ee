"""Statistics and formatting helpers for pull request reporting.

This module provides utilities for:
- Computing linear-interpolation percentiles from pre-sorted samples.
- Aggregating lead-time summary statistics (mean, P50, P75, P90, count).
- Summarizing a collection run by repository, state and AI utilization.
- Building the human-readable run summary printed after fetching.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .models import PullRequestRecord


def calculate_percentile(sorted_values: Sequence[float], p: float) -> Optional[float]:
    """Calculate a percentile using linear interpolation.

    The input sequence is expected to already be sorted in ascending order.
    - Empty input returns ``None``.
    - ``p <= 0`` returns the first value.
    - ``p >= 100`` returns the last value.
    - Otherwise, the percentile is interpolated between adjacent ranks.

    Raises:
        ValueError: If ``p`` is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentile 'p' must be in the range [0, 100].")

    if not sorted_values:
        return None

    if p <= 0:
        return sorted_values[0]

    if p >= 100:
        return sorted_values[-1]

    position = (len(sorted_values) - 1) * (p / 100.0)
    lower_index = math.floor(position)
    upper_index = math.ceil(position)

    if lower_index == upper_index:
        return sorted_values[int(position)]

    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    return lower_value + (upper_value - lower_value) * (position - lower_index)


@dataclass(frozen=True)
class SampleStatistics:
    """Descriptive statistics for a list of numeric samples."""

    count: int
    mean: Optional[float]
    median: Optional[float]
    p75: Optional[float]
    p90: Optional[float]
    minimum: Optional[float]
    maximum: Optional[float]


EMPTY_STATISTICS = SampleStatistics(0, None, None, None, None, None, None)


def compute_statistics(samples: Iterable[Optional[float]]) -> SampleStatistics:
    """Compute count, mean, percentiles and range for numeric samples.

    ``None`` and NaN values are ignored.
    """
    clean_samples = sorted(
        sample for sample in samples if sample is not None and not math.isnan(sample)
    )

    if not clean_samples:
        return EMPTY_STATISTICS

    return SampleStatistics(
        count=len(clean_samples),
        mean=sum(clean_samples) / len(clean_samples),
        median=calculate_percentile(clean_samples, 50),
        p75=calculate_percentile(clean_samples, 75),
        p90=calculate_percentile(clean_samples, 90),
        minimum=clean_samples[0],
        maximum=clean_samples[-1],
    )


def format_days(days: Optional[float]) -> str:
    """Format a day count with one decimal, or ``n/a`` when absent."""
    if days is None:
        return "n/a"
    return f"{days:.1f}d"


@dataclass(frozen=True)
class RunSummary:
    """Aggregated view of one collection run."""

    total: int
    by_repository: Dict[str, int] = field(default_factory=dict)
    by_state: Dict[str, int] = field(default_factory=dict)
    ai_labeled: int = 0
    ai_rate_average: Optional[float] = None
    ai_rate_min: Optional[int] = None
    ai_rate_max: Optional[int] = None
    lead_time: SampleStatistics = EMPTY_STATISTICS


def summarize_pull_requests(records: Sequence[PullRequestRecord]) -> RunSummary:
    """Summarize records by repository, state, AI utilization and lead time."""
    ai_rates: List[int] = [
        record.ai_utilization_rate for record in records if record.ai_utilization_rate is not None
    ]

    return RunSummary(
        total=len(records),
        by_repository=dict(Counter(record.repository for record in records)),
        by_state=dict(Counter(record.state.value for record in records)),
        ai_labeled=len(ai_rates),
        ai_rate_average=sum(ai_rates) / len(ai_rates) if ai_rates else None,
        ai_rate_min=min(ai_rates) if ai_rates else None,
        ai_rate_max=max(ai_rates) if ai_rates else None,
        lead_time=compute_statistics(record.lead_time_days for record in records),
    )


def generate_run_summary(summary: RunSummary) -> str:
    """Render a run summary as a multi-line text report."""
    lines = [
        f"Pull requests collected: {summary.total}",
        "",
        "By repository:",
    ]
    lines.extend(f"   {repository}: {count}" for repository, count in sorted(summary.by_repository.items()))

    lines.extend(["", "By state:"])
    lines.extend(f"   {state}: {count}" for state, count in sorted(summary.by_state.items()))

    lines.extend(["", f"AI utilization labeled: {summary.ai_labeled}"])
    if summary.ai_rate_average is not None:
        lines.append(f"   Average: {summary.ai_rate_average:.1f}%")
        lines.append(f"   Range: {summary.ai_rate_min}% - {summary.ai_rate_max}%")

    lead_time = summary.lead_time
    lines.extend(
        [
            "",
            "Lead time (AI-labeled, merged)",
            f"   Samples: {lead_time.count}",
            f"   P50: {format_days(lead_time.median)}",
            f"   P75: {format_days(lead_time.p75)}",
            f"   P90: {format_days(lead_time.p90)}",
        ]
    )

    return "\n".join(lines)
