"""Configuration parsing and validation for the GitHub AI utilization PR report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Mapping, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .date_range import (
    DEFAULT_TIMEZONE,
    generate_default_output_path,
    parse_calendar_date,
    resolve_date_range,
)
from .errors import AuthenticationError, ConfigurationError
from .labels import LabelPolicy
from .models import DateRange, RepositoryRef

DEFAULT_API_DELAY_SECONDS = 1.0
DEFAULT_MAX_PAGES = 100
DEFAULT_MAX_RETRIES = 5
DEFAULT_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the report generator."""

    github_token: str
    repositories: Tuple[RepositoryRef, ...]
    date_range: DateRange
    output_path: str
    timezone: str = DEFAULT_TIMEZONE
    label_policy: LabelPolicy = LabelPolicy.PASSTHROUGH
    api_delay_seconds: float = DEFAULT_API_DELAY_SECONDS
    max_pages: int = DEFAULT_MAX_PAGES
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def parse_repositories(value: str) -> List[RepositoryRef]:
    """Parse ``owner1/repo1,owner2/repo2`` into repository references.

    Blank entries and entries without a ``/`` are ignored.
    """
    repositories: List[RepositoryRef] = []
    for entry in value.split(","):
        entry = entry.strip()
        if "/" not in entry:
            continue
        owner, name = entry.split("/", 1)
        owner, name = owner.strip(), name.strip()
        if owner and name:
            repositories.append(RepositoryRef(owner=owner, name=name))
    return repositories


def load_timezone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name.

    Raises:
        ConfigurationError: If the zone is unknown.
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone '{name}'.") from exc


def _positive_int(name: str, value: Union[str, int]) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value for '{name}': expected an integer.") from exc
    if parsed <= 0:
        raise ConfigurationError(f"Invalid value for '{name}': expected an integer greater than 0.")
    return parsed


def _resolve_limit(key: str, explicit: Optional[int], env: Mapping[str, str], default: int) -> int:
    """Validate an explicit value, else the environment variable ``key``, else ``default``."""
    if explicit is not None:
        return _positive_int(key, explicit)
    env_value = env.get(key, "").strip()
    return _positive_int(key, env_value) if env_value else default


def _pick(cli_value: Optional[str], env: Mapping[str, str], key: str) -> str:
    if cli_value is not None:
        return cli_value.strip()
    return env.get(key, "").strip()


def load_config(
    env: Mapping[str, str],
    *,
    repositories: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    output_path: Optional[str] = None,
    timezone: Optional[str] = None,
    label_policy: Optional[str] = None,
    max_pages: Optional[int] = None,
    max_retries: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Config:
    """Build and validate application configuration.

    Explicit keyword values (from the command line) take precedence over the
    corresponding environment variables.

    Args:
        env: Environment mapping, normally ``os.environ`` after ``.env`` loading.
        repositories: Comma-separated ``owner/name`` list (``GITHUB_REPOSITORIES``).
        start_date: ``YYYY-MM-DD`` start date (``START_DATE``).
        end_date: ``YYYY-MM-DD`` end date (``END_DATE``).
        output_path: CSV destination (``OUTPUT_PATH``).
        timezone: IANA reference timezone (``REPORT_TIMEZONE``).
        label_policy: AI label range policy (``AI_RATE_POLICY``).
        max_pages: Page ceiling per repository (``MAX_PAGES``).
        max_retries: Attempts per API request (``MAX_RETRIES``).
        now: Anchor instant for the relative date window.

    Returns:
        A validated ``Config`` instance.

    Raises:
        AuthenticationError: If ``GITHUB_TOKEN`` is not configured.
        ConfigurationError: If repositories are missing, only one of the two
            dates is set, or any value is malformed.
    """
    github_token = env.get("GITHUB_TOKEN", "").strip()
    if not github_token:
        raise AuthenticationError(
            "Missing required GitHub access token. "
            "Set the 'GITHUB_TOKEN' environment variable before running the report."
        )

    parsed_repositories = parse_repositories(_pick(repositories, env, "GITHUB_REPOSITORIES"))
    if not parsed_repositories:
        raise ConfigurationError(
            "No repositories configured. Set 'GITHUB_REPOSITORIES' "
            '(for example "owner1/repo1,owner2/repo2").'
        )

    start_value = _pick(start_date, env, "START_DATE")
    end_value = _pick(end_date, env, "END_DATE")
    if start_value and not end_value:
        raise ConfigurationError("END_DATE is required when START_DATE is set.")
    if end_value and not start_value:
        raise ConfigurationError("START_DATE is required when END_DATE is set.")

    timezone_name = _pick(timezone, env, "REPORT_TIMEZONE") or DEFAULT_TIMEZONE
    tz = load_timezone(timezone_name)

    date_range = resolve_date_range(
        tz,
        start_date=parse_calendar_date(start_value) if start_value else None,
        end_date=parse_calendar_date(end_value) if end_value else None,
        now=now,
    )

    policy_value = _pick(label_policy, env, "AI_RATE_POLICY")
    policy = LabelPolicy.parse(policy_value) if policy_value else LabelPolicy.PASSTHROUGH

    max_pages = _resolve_limit("MAX_PAGES", max_pages, env, DEFAULT_MAX_PAGES)
    max_retries = _resolve_limit("MAX_RETRIES", max_retries, env, DEFAULT_MAX_RETRIES)

    return Config(
        github_token=github_token,
        repositories=tuple(parsed_repositories),
        date_range=date_range,
        output_path=_pick(output_path, env, "OUTPUT_PATH") or generate_default_output_path(date_range, tz),
        timezone=timezone_name,
        label_policy=policy,
        max_pages=max_pages,
        max_retries=max_retries,
    )
