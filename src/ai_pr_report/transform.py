"""Mapping of raw GitHub pull request payloads into report records."""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional

from .errors import DataValidationError
from .kpi import compute_lead_time_days
from .labels import LabelPolicy, extract_ai_utilization_rate
from .models import PullRequestRecord, PullRequestState, RepositoryRef


def parse_github_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse GitHub ISO8601 timestamps into timezone-aware datetimes."""
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO8601 string, got {type(value).__name__}")

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    parsed = datetime.fromisoformat(normalized)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def determine_pr_state(raw: Dict[str, Any]) -> PullRequestState:
    """Derive the report state; a merge timestamp always means ``merged``."""
    if raw.get("merged_at"):
        return PullRequestState.MERGED
    if raw.get("state") == "open":
        return PullRequestState.OPEN
    return PullRequestState.CLOSED


def _localize(value: Optional[datetime], tz: tzinfo) -> Optional[datetime]:
    return value.astimezone(tz) if value is not None else None


def transform_pull_request(
    raw: Dict[str, Any],
    repository: RepositoryRef,
    tz: tzinfo,
    label_policy: LabelPolicy = LabelPolicy.PASSTHROUGH,
) -> PullRequestRecord:
    """Build a ``PullRequestRecord`` from one entry of the pulls listing.

    Timestamps are converted to ``tz`` for later formatting; they remain
    aware datetimes, so comparisons are between absolute instants.

    Raises:
        DataValidationError: If ``number`` or ``created_at`` is missing or malformed,
            or ``user`` is not an object.
    """
    number = raw.get("number")
    try:
        created_at = parse_github_datetime(raw.get("created_at"))
        updated_at = parse_github_datetime(raw.get("updated_at"))
        merged_at = parse_github_datetime(raw.get("merged_at"))
        closed_at = parse_github_datetime(raw.get("closed_at"))
    except ValueError as exc:
        raise DataValidationError(
            f"GitHub pull request payload has a malformed timestamp: "
            f"repository={repository.full_name}, number={number}"
        ) from exc

    if number is None or created_at is None:
        raise DataValidationError(
            "GitHub pull request payload is missing required fields: "
            f"repository={repository.full_name}, payload={raw}"
        )

    try:
        number = int(number)
    except (TypeError, ValueError) as exc:
        raise DataValidationError(
            f"GitHub pull request payload has a malformed number: "
            f"repository={repository.full_name}, number={number!r}"
        ) from exc

    user = raw.get("user") or {}
    if not isinstance(user, dict):
        raise DataValidationError(
            f"GitHub pull request payload has a malformed user: "
            f"repository={repository.full_name}, number={number}"
        )

    labels = tuple(
        label["name"]
        for label in raw.get("labels") or []
        if isinstance(label, dict) and isinstance(label.get("name"), str)
    )
    ai_utilization_rate = extract_ai_utilization_rate(labels, policy=label_policy)

    return PullRequestRecord(
        number=number,
        title=raw.get("title") or "",
        body=raw.get("body") or "",
        author=user.get("login") or "",
        repository=repository.full_name,
        state=determine_pr_state(raw),
        created_at=created_at.astimezone(tz),
        updated_at=_localize(updated_at or created_at, tz),
        merged_at=_localize(merged_at, tz),
        closed_at=_localize(closed_at, tz),
        ai_utilization_rate=ai_utilization_rate,
        lead_time_days=compute_lead_time_days(
            created_at,
            merged_at,
            has_ai_label=ai_utilization_rate is not None,
        ),
        labels=labels,
        url=raw.get("html_url") or "",
    )
