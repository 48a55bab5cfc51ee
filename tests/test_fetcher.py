"""Tests for paginated pull request collection and multi-repository orchestration."""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import Mock
from zoneinfo import ZoneInfo

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ai_pr_report.date_range import create_absolute_date_range
from ai_pr_report.errors import ApiError, DataValidationError, PaginationLimitError
from ai_pr_report.fetcher import PAGE_SIZE, fetch_all_pull_requests, fetch_pull_requests
from ai_pr_report.models import RepositoryRef

TOKYO = ZoneInfo("Asia/Tokyo")
# 2026-02-10 12:00:00 JST .. 2026-02-17 11:59:59 JST
DATE_RANGE = create_absolute_date_range(date(2026, 2, 11), date(2026, 2, 17), TOKYO)
START_UTC = "2026-02-10T03:00:00Z"
END_UTC = "2026-02-17T02:59:59Z"

REPO_A = RepositoryRef(owner="acme", name="alpha")
REPO_B = RepositoryRef(owner="acme", name="beta")
REPO_C = RepositoryRef(owner="acme", name="gamma")


def _pr(number: int, created_at: str) -> dict:
    return {
        "number": number,
        "title": f"PR {number}",
        "body": "",
        "user": {"login": "dev"},
        "state": "open",
        "created_at": created_at,
        "updated_at": created_at,
        "merged_at": None,
        "closed_at": None,
        "labels": [],
        "html_url": f"https://github.com/acme/repo/pull/{number}",
    }


class FakeClient:
    """Serves fixed pages per repository and records every request."""

    def __init__(self, pages_by_repo, errors_by_repo=None):
        self._pages_by_repo = pages_by_repo
        self._errors_by_repo = errors_by_repo or {}
        self.calls = []

    def list_pull_requests_page(self, repository, page, per_page=100):
        self.calls.append((repository.full_name, page, per_page))
        error = self._errors_by_repo.get(repository.full_name)
        if error is not None and (error[0] is None or error[0] == page):
            raise error[1]
        pages = self._pages_by_repo.get(repository.full_name, [])
        return pages[page - 1] if page <= len(pages) else []


def test_fetch_pull_requests_stops_when_page_crosses_window_start():
    """Verify a page whose oldest entry predates the window ends pagination without requesting more."""
    pages = [
        [_pr(10, "2026-02-16T00:00:00Z"), _pr(9, "2026-02-15T00:00:00Z")],
        [_pr(8, "2026-02-12T00:00:00Z"), _pr(7, "2026-02-09T00:00:00Z")],
        [_pr(6, "2026-02-08T00:00:00Z")],
    ]
    client = FakeClient({REPO_A.full_name: pages})

    records = fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO)

    assert [record.number for record in records] == [10, 9, 8]
    assert [call[1] for call in client.calls] == [1, 2]
    assert all(call[2] == PAGE_SIZE for call in client.calls)


def test_fetch_pull_requests_stops_when_newest_entry_predates_window():
    """Verify a page that starts before the window is discarded and ends pagination."""
    pages = [
        [_pr(10, "2026-02-18T00:00:00Z"), _pr(9, "2026-02-17T05:00:00Z")],
        [_pr(8, "2026-02-09T00:00:00Z"), _pr(7, "2026-02-08T00:00:00Z")],
        [_pr(6, "2026-02-07T00:00:00Z")],
    ]
    client = FakeClient({REPO_A.full_name: pages})

    records = fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO)

    assert records == []
    assert [call[1] for call in client.calls] == [1, 2]


def test_fetch_pull_requests_stops_on_empty_page():
    """Verify an empty page terminates pagination."""
    pages = [[_pr(3, "2026-02-16T00:00:00Z"), _pr(2, "2026-02-15T00:00:00Z")]]
    client = FakeClient({REPO_A.full_name: pages})

    records = fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO)

    assert [record.number for record in records] == [3, 2]
    assert [call[1] for call in client.calls] == [1, 2]


def test_fetch_pull_requests_boundaries_are_inclusive():
    """Verify entries exactly on either bound are kept and one microsecond outside is dropped."""
    pages = [
        [
            _pr(4, "2026-02-17T02:59:59.000001Z"),
            _pr(3, END_UTC),
            _pr(2, START_UTC),
            _pr(1, "2026-02-10T02:59:59.999999Z"),
        ]
    ]
    client = FakeClient({REPO_A.full_name: pages})

    records = fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO)

    assert [record.number for record in records] == [3, 2]
    assert records[0].created_at == DATE_RANGE.end
    assert records[1].created_at == DATE_RANGE.start
    assert len(client.calls) == 1


def test_fetch_pull_requests_returns_newest_first():
    """Verify results are sorted by descending creation time."""
    pages = [[_pr(1, "2026-02-11T00:00:00Z"), _pr(2, "2026-02-14T00:00:00Z"), _pr(3, "2026-02-12T00:00:00Z")]]
    client = FakeClient({REPO_A.full_name: pages})

    records = fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO)

    assert [record.number for record in records] == [2, 3, 1]


def test_fetch_pull_requests_page_failure_discards_partial_results():
    """Verify a failing page propagates instead of returning a partial repository result."""
    pages = [[_pr(2, "2026-02-16T00:00:00Z")], [_pr(1, "2026-02-15T00:00:00Z")]]
    client = FakeClient(
        {REPO_A.full_name: pages},
        errors_by_repo={REPO_A.full_name: (2, ApiError("boom"))},
    )

    with pytest.raises(ApiError):
        fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO)


def test_fetch_pull_requests_page_ceiling_raises_pagination_limit_error():
    """Verify a listing that never reaches the window start hits the page ceiling."""
    client = Mock()
    client.list_pull_requests_page.return_value = [_pr(1, "2026-02-16T00:00:00Z")]

    with pytest.raises(PaginationLimitError):
        fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO, max_pages=3)

    assert client.list_pull_requests_page.call_count == 3


def test_fetch_pull_requests_malformed_created_at_raises_data_validation_error():
    """Verify malformed creation timestamps surface as DataValidationError."""
    client = FakeClient({REPO_A.full_name: [[_pr(1, "not-a-date")]]})

    with pytest.raises(DataValidationError):
        fetch_pull_requests(client, REPO_A, DATE_RANGE, tz=TOKYO)


def test_fetch_all_pull_requests_skips_failing_repository():
    """Verify a failing repository is excluded while the others are merged newest first."""
    client = FakeClient(
        {
            REPO_A.full_name: [[_pr(11, "2026-02-15T00:00:00Z"), _pr(12, "2026-02-11T00:00:00Z")]],
            REPO_B.full_name: [[_pr(21, "2026-02-16T00:00:00Z")]],
            REPO_C.full_name: [[_pr(31, "2026-02-16T12:00:00Z"), _pr(32, "2026-02-13T00:00:00Z")]],
        },
        errors_by_repo={REPO_B.full_name: (None, ApiError("401 Unauthorized"))},
    )
    sleep = Mock()

    records = fetch_all_pull_requests(
        client,
        [REPO_A, REPO_B, REPO_C],
        DATE_RANGE,
        tz=TOKYO,
        sleep=sleep,
    )

    assert isinstance(records, tuple)
    assert [(record.repository, record.number) for record in records] == [
        ("acme/gamma", 31),
        ("acme/alpha", 11),
        ("acme/gamma", 32),
        ("acme/alpha", 12),
    ]
    assert [call[0] for call in client.calls if call[1] == 1] == ["acme/alpha", "acme/beta", "acme/gamma"]


def test_fetch_all_pull_requests_paces_between_repositories():
    """Verify the fixed delay is waited between consecutive repositories only."""
    client = FakeClient({})
    sleep = Mock()

    fetch_all_pull_requests(
        client,
        [REPO_A, REPO_B, REPO_C],
        DATE_RANGE,
        tz=TOKYO,
        delay_seconds=1.0,
        sleep=sleep,
    )

    assert sleep.call_count == 2
    sleep.assert_called_with(1.0)


def test_fetch_all_pull_requests_recovers_from_page_ceiling():
    """Verify a repository exceeding the page ceiling is treated as a per-repository failure."""
    client = Mock()
    client.list_pull_requests_page.return_value = [_pr(1, "2026-02-16T00:00:00Z")]

    records = fetch_all_pull_requests(
        client,
        [REPO_A],
        DATE_RANGE,
        tz=TOKYO,
        max_pages=2,
        sleep=Mock(),
    )

    assert records == ()


@pytest.mark.parametrize(
    "failure",
    [
        {"error": RuntimeError("boom")},
        {"pages": [[_pr(21, "2026-02-16T00:00:00Z") | {"user": "ghost"}]]},
        {"pages": [[_pr(21, "2026-02-16T00:00:00Z") | {"number": "abc"}]]},
    ],
    ids=["unexpected-exception", "string-user", "non-numeric-number"],
)
def test_fetch_all_pull_requests_isolates_any_repository_failure(failure):
    """Verify unexpected errors and malformed payloads in one repository do not abort the run."""
    pages_by_repo = {
        REPO_A.full_name: [[_pr(11, "2026-02-15T00:00:00Z")]],
        REPO_B.full_name: failure.get("pages", []),
        REPO_C.full_name: [[_pr(31, "2026-02-14T00:00:00Z")]],
    }
    errors_by_repo = {REPO_B.full_name: (None, failure["error"])} if "error" in failure else {}
    client = FakeClient(pages_by_repo, errors_by_repo=errors_by_repo)

    records = fetch_all_pull_requests(
        client,
        [REPO_A, REPO_B, REPO_C],
        DATE_RANGE,
        tz=TOKYO,
        sleep=Mock(),
    )

    assert [(record.repository, record.number) for record in records] == [
        ("acme/alpha", 11),
        ("acme/gamma", 31),
    ]


def test_fetch_pull_requests_orders_repeated_dst_hour_by_instant():
    """Verify newest-first ordering follows absolute time when local wall-clock times repeat."""
    new_york = ZoneInfo("America/New_York")
    date_range = create_absolute_date_range(date(2025, 11, 2), date(2025, 11, 3), new_york)
    # 01:10 EST is after 01:30 EDT on the night clocks fall back.
    pages = [[_pr(2, "2025-11-02T06:10:00Z"), _pr(1, "2025-11-02T05:30:00Z")]]
    client = FakeClient({REPO_A.full_name: pages})

    records = fetch_pull_requests(client, REPO_A, date_range, tz=new_york)

    assert [record.number for record in records] == [2, 1]


def test_fetch_all_pull_requests_orders_repeated_dst_hour_by_instant():
    """Verify merged results across repositories are ordered by absolute creation time."""
    new_york = ZoneInfo("America/New_York")
    date_range = create_absolute_date_range(date(2025, 11, 2), date(2025, 11, 3), new_york)
    client = FakeClient(
        {
            REPO_A.full_name: [[_pr(1, "2025-11-02T05:30:00Z")]],
            REPO_B.full_name: [[_pr(2, "2025-11-02T06:10:00Z")]],
        }
    )

    records = fetch_all_pull_requests(client, [REPO_A, REPO_B], date_range, tz=new_york, sleep=Mock())

    assert [record.number for record in records] == [2, 1]
