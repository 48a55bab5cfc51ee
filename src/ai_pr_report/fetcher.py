"""Pull request collection across one or more GitHub repositories.

Pages are requested newest first by creation time, so a repository listing
can stop as soon as it reaches pull requests created before the reporting
window. Repositories and pages are processed strictly one at a time.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from .config import DEFAULT_API_DELAY_SECONDS, DEFAULT_MAX_PAGES
from .errors import DataValidationError, PaginationLimitError, ReportGeneratorError
from .labels import LabelPolicy
from .models import DateRange, PullRequestRecord, RepositoryRef
from .transform import parse_github_datetime, transform_pull_request

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class PullRequestSource(Protocol):
    """Anything able to return one page of the pulls listing."""

    def list_pull_requests_page(
        self,
        repository: RepositoryRef,
        page: int,
        per_page: int = ...,
    ) -> List[Dict[str, Any]]:
        ...


def _created_at(raw: Dict[str, Any]) -> Optional[datetime]:
    try:
        return parse_github_datetime(raw.get("created_at"))
    except ValueError as exc:
        raise DataValidationError(
            f"GitHub pull request payload has a malformed created_at: number={raw.get('number')}"
        ) from exc


def _sort_newest_first(records: Sequence[PullRequestRecord]) -> List[PullRequestRecord]:
    # Localized datetimes sharing one tzinfo compare by wall clock, which is
    # ambiguous in a repeated DST hour.
    return sorted(records, key=lambda record: record.created_at.timestamp(), reverse=True)


def fetch_pull_requests(
    client: PullRequestSource,
    repository: RepositoryRef,
    date_range: DateRange,
    *,
    tz: tzinfo,
    label_policy: LabelPolicy = LabelPolicy.PASSTHROUGH,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[PullRequestRecord]:
    """Collect the pull requests of one repository created within ``date_range``.

    Business logic:
    - Stop on an empty page.
    - Stop before filtering when the newest entry on a page predates the window.
    - Keep entries with ``start <= created_at <= end``.
    - Stop after filtering when the oldest entry on a page predates the window.

    Any page failure propagates, discarding what was collected so far.

    Raises:
        PaginationLimitError: If more than ``max_pages`` pages would be requested.
    """
    records: List[PullRequestRecord] = []
    page = 1

    while True:
        if page > max_pages:
            raise PaginationLimitError(
                f"Exceeded page ceiling of {max_pages} while listing pull requests "
                f"for {repository.full_name}."
            )

        items = client.list_pull_requests_page(repository, page=page, per_page=PAGE_SIZE)
        if not items:
            logger.debug(
                "Reached end of pull request listing",
                extra={"repository": repository.full_name, "page": page},
            )
            break

        newest_created_at = _created_at(items[0])
        if newest_created_at is not None and newest_created_at < date_range.start:
            logger.debug(
                "Page starts before the reporting window",
                extra={"repository": repository.full_name, "page": page},
            )
            break

        for item in items:
            created_at = _created_at(item)
            if created_at is not None and date_range.contains(created_at):
                records.append(
                    transform_pull_request(item, repository, tz, label_policy=label_policy)
                )

        oldest_created_at = _created_at(items[-1])
        if oldest_created_at is not None and oldest_created_at < date_range.start:
            logger.debug(
                "Page crosses the start of the reporting window",
                extra={"repository": repository.full_name, "page": page},
            )
            break

        page += 1

    return _sort_newest_first(records)


def fetch_all_pull_requests(
    client: PullRequestSource,
    repositories: Sequence[RepositoryRef],
    date_range: DateRange,
    *,
    tz: tzinfo,
    label_policy: LabelPolicy = LabelPolicy.PASSTHROUGH,
    max_pages: int = DEFAULT_MAX_PAGES,
    delay_seconds: float = DEFAULT_API_DELAY_SECONDS,
    sleep: Optional[Callable[[float], None]] = None,
) -> Tuple[PullRequestRecord, ...]:
    """Collect pull requests for every repository, newest first.

    A repository whose fetch fails for any reason is logged and skipped; it
    is not retried.
    ``delay_seconds`` is waited between consecutive repositories.
    """
    sleep = sleep or time.sleep
    collected: List[PullRequestRecord] = []
    failed = 0

    logger.info(
        "Fetching pull requests",
        extra={
            "repositories": len(repositories),
            "start": date_range.start.isoformat(),
            "end": date_range.end.isoformat(),
        },
    )

    for index, repository in enumerate(repositories):
        if index > 0 and delay_seconds > 0:
            sleep(delay_seconds)

        try:
            records = fetch_pull_requests(
                client,
                repository,
                date_range,
                tz=tz,
                label_policy=label_policy,
                max_pages=max_pages,
            )
        except ReportGeneratorError as exc:
            failed += 1
            logger.error(
                "Failed to fetch pull requests for %s: %s",
                repository.full_name,
                exc,
                extra={"repository": repository.full_name},
            )
            continue
        except Exception:
            failed += 1
            logger.exception(
                "Unexpected error while fetching pull requests for %s",
                repository.full_name,
                extra={"repository": repository.full_name},
            )
            continue

        collected.extend(records)
        logger.info(
            "Fetched %d pull requests from %s",
            len(records),
            repository.full_name,
            extra={"repository": repository.full_name, "prs_total": len(records)},
        )

    logger.info(
        "Collected pull requests",
        extra={"prs_total": len(collected), "repositories_failed": failed},
    )

    return tuple(_sort_newest_first(collected))
