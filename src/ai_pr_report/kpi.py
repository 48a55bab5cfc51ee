"""Lead-time KPI for AI-labeled pull requests.

Lead time is only reported for merged pull requests that carry an AI
utilization label; every other pull request gets ``None``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60
_ONE_DECIMAL = Decimal("0.1")


def round_half_away_from_zero(value: float, places: Decimal = _ONE_DECIMAL) -> float:
    """Round using half-away-from-zero instead of Python's banker's rounding."""
    return float(Decimal(str(value)).quantize(places, rounding=ROUND_HALF_UP))


def compute_lead_time_days(
    created_at: datetime,
    merged_at: Optional[datetime],
    has_ai_label: bool,
) -> Optional[float]:
    """Compute PR lead time (creation to merge) in days.

    Business logic:
    - Only merged pull requests are eligible (``merged_at`` must be present).
    - Only AI-labeled pull requests are eligible.
    - Duration is ``merged_at - created_at`` in days, rounded to one decimal.

    Returns ``None`` for unmerged or unlabeled pull requests.
    """
    if merged_at is None or not has_ai_label:
        return None

    duration_days = (merged_at - created_at).total_seconds() / SECONDS_PER_DAY
    return round_half_away_from_zero(duration_days)
