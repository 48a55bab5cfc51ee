"""GitHub REST API client for pull request listing."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError
from .models import RepositoryRef

logger = logging.getLogger(__name__)


class GitHubClient:
    """Small, typed client for the GitHub pulls listing API."""

    _BASE_URL = "https://api.github.com"
    _API_VERSION = "2022-11-28"
    PULL_REQUEST_PAGE_SIZE = 100
    _MAX_BACKOFF_SECONDS = 60

    def __init__(self, config: Config) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including the access token,
                retry budget and per-request timeout.
        """
        self._config = config
        self._timeout_seconds = config.timeout_seconds
        self._max_retries = max(1, config.max_retries)

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {config.github_token}",
                "X-GitHub-Api-Version": self._API_VERSION,
            }
        )

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below the API root."""
        return f"{self._BASE_URL}/{path.lstrip('/')}"

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring rate-limit hints when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        if response.headers.get("X-RateLimit-Remaining") == "0":
            reset_header = response.headers.get("X-RateLimit-Reset")
            if reset_header and reset_header.isdigit():
                wait_seconds = int(reset_header) - int(time.time()) + 1
                return min(self._MAX_BACKOFF_SECONDS, max(1, wait_seconds))

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _is_retryable(self, response: requests.Response) -> bool:
        status_code = response.status_code
        if status_code == 429 or 500 <= status_code <= 599:
            return True
        # GitHub reports exhausted primary rate limits as 403.
        return status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a GET request with retry logic for rate limits and 5xx responses.

        Raises:
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return valid JSON.
        """
        url = self._build_url(path)
        query = dict(params or {})

        last_error: Optional[Exception] = None

        for attempt in range(1, self._max_retries + 1):
            try:
                response = self._session.get(url, params=query, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._max_retries:
                    raise ApiError(f"GitHub request failed after retries: GET {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code

            if self._is_retryable(response) and attempt < self._max_retries:
                backoff_seconds = self._extract_backoff_seconds(response, attempt)
                logger.warning(
                    "Retrying GitHub request",
                    extra={
                        "url": url,
                        "status_code": status_code,
                        "attempt": attempt,
                        "backoff_seconds": backoff_seconds,
                    },
                )
                time.sleep(backoff_seconds)
                continue

            if status_code >= 400:
                raise ApiError(
                    "GitHub API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                return response.json()
            except ValueError as exc:
                raise ApiError(f"GitHub API returned invalid JSON: GET {url}") from exc

        raise ApiError(f"GitHub request failed after retries: GET {url}") from last_error

    def list_pull_requests_page(
        self,
        repository: RepositoryRef,
        page: int,
        per_page: int = PULL_REQUEST_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Fetch one page of pull requests, newest first by creation time.

        Always queries with ``state=all``, ``sort=created`` and
        ``direction=desc``. Pagination is driven by the caller.

        Raises:
            ApiError: If the request fails or the payload is not a JSON list.
        """
        payload = self._get_json(
            f"repos/{repository.owner}/{repository.name}/pulls",
            params={
                "state": "all",
                "sort": "created",
                "direction": "desc",
                "per_page": per_page,
                "page": page,
            },
        )

        if not isinstance(payload, list):
            raise ApiError(
                "GitHub API returned unexpected payload shape: "
                f"repository={repository.full_name}, page={page}"
            )

        return payload
