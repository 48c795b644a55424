'''GitHub issues as the tracker, via the REST API and httpx.'''

from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from friendlinks.errors import ConfigError, TrackerError
from friendlinks.models import TrackerEntry
from friendlinks.tracker.base import Tracker, filter_by_labels

GITHUB_API = 'https://api.github.com'
PER_PAGE = 100

logger = structlog.get_logger()


def _label_name(label: Any) -> str:
    return label.get('name', '') if isinstance(label, dict) else str(label)


def _to_entry(item: dict[str, Any]) -> TrackerEntry:
    return TrackerEntry(
        number=item['number'],
        body=item.get('body'),
        labels=tuple(_label_name(lb) for lb in item.get('labels') or []),
        title=item.get('title') or '',
    )


class GitHubTracker(Tracker):
    '''
    Open issues of one repository. Authenticates with a bearer token when given.

    Use as an async context manager so the underlying client is closed:

        async with GitHubTracker('owner/repo', token) as tracker:
            entries = await tracker.list_open_entries()
    '''

    def __init__(
        self,
        repository: str,
        token: str | None = None,
        api_url: str = GITHUB_API,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        owner, _, name = repository.partition('/')
        if not owner or not name:
            raise ConfigError(f'repository must look like owner/name, got {repository!r}')
        self.repository = repository
        headers = {
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28',
        }
        if token:
            headers['Authorization'] = f'Bearer {token}'
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip('/'),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> 'GitHubTracker':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_open_entries(self, exclude_labels: Sequence[str] | None = None) -> list[TrackerEntry]:
        '''
        Page through open issues (newest first), following Link rel="next".
        Pull requests share the issues endpoint and are skipped.
        '''
        url: str | None = f'/repos/{self.repository}/issues'
        params: dict[str, Any] | None = {
            'state': 'open',
            'per_page': PER_PAGE,
            'sort': 'created',
            'direction': 'desc',
        }
        entries: list[TrackerEntry] = []
        try:
            while url:
                resp = await self._client.get(url, params=params)
                resp.raise_for_status()
                for item in resp.json():
                    if 'pull_request' in item:
                        continue
                    entries.append(_to_entry(item))
                url = resp.links.get('next', {}).get('url')
                params = None  # the next link carries its own query
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise TrackerError(f'Failed to list issues for {self.repository}: {e}') from e

        logger.info('listed open issues', count=len(entries), numbers=[e.number for e in entries])
        filtered = filter_by_labels(entries, exclude_labels)
        if exclude_labels:
            logger.info('filtered by labels', exclude_labels=list(exclude_labels), remaining=len(filtered))
        return filtered

    async def update_entry_body(self, number: int, body: str) -> None:
        try:
            resp = await self._client.patch(f'/repos/{self.repository}/issues/{number}', json={'body': body})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise TrackerError(f'Failed to update issue #{number}: {e}') from e
        logger.info('updated issue body', entry=number)
