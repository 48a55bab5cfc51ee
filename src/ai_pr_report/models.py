"""Domain models for GitHub pull request AI utilization reporting.

These dataclasses model only the subset of API payload fields that end up in
the CSV report. All instances are immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from .errors import DataValidationError


@dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Identifies a GitHub repository as ``owner/name``."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive window of absolute, timezone-aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise DataValidationError("DateRange bounds must be timezone-aware datetimes.")
        if self.start > self.end:
            raise DataValidationError(
                f"DateRange start {self.start.isoformat()} is after end {self.end.isoformat()}."
            )

    def contains(self, instant: datetime) -> bool:
        """Return ``True`` when ``instant`` lies within the range, bounds included."""
        return self.start <= instant <= self.end


class PullRequestState(str, Enum):
    """Derived pull request state."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


@dataclass(frozen=True, slots=True)
class PullRequestRecord:
    """Normalized pull request row as written to the CSV report."""

    number: int
    title: str
    body: str
    author: str
    repository: str
    state: PullRequestState
    created_at: datetime
    updated_at: datetime
    merged_at: Optional[datetime]
    closed_at: Optional[datetime]
    ai_utilization_rate: Optional[int]
    lead_time_days: Optional[float]
    labels: Tuple[str, ...]
    url: str
