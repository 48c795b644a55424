'''
Run configuration, read from the environment.

Inside a GitHub Actions workflow the `with:` inputs arrive as INPUT_* vars;
elsewhere the FRIENDLINKS_* names can be used. CLI flags override both.
'''

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from friendlinks.dates import DEFAULT_DATE_FORMAT
from friendlinks.errors import ConfigError
from friendlinks.scheduler.bounded import DEFAULT_CONCURRENCY
from friendlinks.tracker.github import GITHUB_API

DEFAULT_RETRIES = 3
DEFAULT_POSTS_COUNT = 2
DEFAULT_DATA_PATH = 'data/friends.json'


def _env(*names: str) -> str | None:
    '''First non-empty value among names.'''
    for name in names:
        value = os.environ.get(name, '').strip()
        if value:
            return value
    return None


def _positive_int(raw: str | int | None, default: int, name: str) -> int:
    '''Parse a positive int; absent, non-numeric or < 1 falls back to default.'''
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        structlog.get_logger().warning('ignoring non-numeric setting', setting=name, value=raw, default=default)
        return default
    if value < 1:
        structlog.get_logger().warning('ignoring non-positive setting', setting=name, value=value, default=default)
        return default
    return value


def _concurrency(raw: str | int | None) -> int:
    '''Like _positive_int, except a numeric ceiling below 1 is rejected outright.'''
    if raw is None or raw == '':
        return DEFAULT_CONCURRENCY
    try:
        value = int(raw)
    except (TypeError, ValueError):
        structlog.get_logger().warning(
            'ignoring non-numeric setting', setting='concurrency', value=raw, default=DEFAULT_CONCURRENCY
        )
        return DEFAULT_CONCURRENCY
    if value < 1:
        raise ConfigError(f'concurrency must be >= 1, got {value}')
    return value


def _labels(raw: str | list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
    if not raw:
        return ()
    items = raw.split(',') if isinstance(raw, str) else raw
    return tuple(s.strip() for s in items if s and s.strip())


def resolve_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f'Unknown timezone: {name}') from e


@dataclass
class Settings:
    '''Settings for one run.'''

    retries: int = DEFAULT_RETRIES
    posts_count: int = DEFAULT_POSTS_COUNT
    data_path: str = DEFAULT_DATA_PATH
    date_format: str = DEFAULT_DATE_FORMAT
    concurrency: int = DEFAULT_CONCURRENCY
    exclude_labels: tuple[str, ...] = field(default_factory=tuple)
    timezone: str = 'UTC'
    repository: str | None = None  # owner/name
    token: str | None = None
    api_url: str = GITHUB_API

    @property
    def tz(self) -> tzinfo:
        return resolve_timezone(self.timezone)

    @classmethod
    def from_env(
        cls,
        retries: str | int | None = None,
        posts_count: str | int | None = None,
        data_path: str | None = None,
        date_format: str | None = None,
        concurrency: str | int | None = None,
        exclude_labels: str | list[str] | tuple[str, ...] | None = None,
        timezone: str | None = None,
        repository: str | None = None,
    ) -> Settings:
        '''Build settings from env vars. Explicit arguments win over env.'''
        def pick(value, *names):
            return value if value not in (None, '') else _env(*names)

        tz_name = pick(timezone, 'INPUT_TIMEZONE', 'FRIENDLINKS_TIMEZONE') or 'UTC'
        resolve_timezone(tz_name)
        return cls(
            retries=_positive_int(
                pick(retries, 'INPUT_RETRY_TIMES', 'FRIENDLINKS_RETRIES'), DEFAULT_RETRIES, 'retries'
            ),
            posts_count=_positive_int(
                pick(posts_count, 'INPUT_POSTS_COUNT', 'FRIENDLINKS_POSTS_COUNT'),
                DEFAULT_POSTS_COUNT,
                'posts_count',
            ),
            data_path=pick(data_path, 'INPUT_DATA_PATH', 'FRIENDLINKS_DATA_PATH') or DEFAULT_DATA_PATH,
            date_format=pick(date_format, 'INPUT_DATE_FORMAT', 'FRIENDLINKS_DATE_FORMAT') or DEFAULT_DATE_FORMAT,
            concurrency=_concurrency(pick(concurrency, 'INPUT_CONCURRENCY', 'FRIENDLINKS_CONCURRENCY')),
            exclude_labels=_labels(pick(exclude_labels, 'INPUT_EXCLUDE_LABELS', 'FRIENDLINKS_EXCLUDE_LABELS')),
            timezone=tz_name,
            repository=pick(repository, 'GITHUB_REPOSITORY'),
            token=_env('GITHUB_TOKEN'),
            api_url=_env('GITHUB_API_URL') or GITHUB_API,
        )
