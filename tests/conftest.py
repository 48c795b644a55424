'''Shared fixtures: scripted fetchers and an in-memory tracker. No network.'''

import asyncio

import pytest

from friendlinks.errors import TrackerError
from friendlinks.fetchers.protocol import FeedFetcher
from friendlinks.models import Post, TrackerEntry
from friendlinks.tracker.base import Tracker, filter_by_labels

ENV_NAMES = [
    'INPUT_RETRY_TIMES', 'FRIENDLINKS_RETRIES',
    'INPUT_POSTS_COUNT', 'FRIENDLINKS_POSTS_COUNT',
    'INPUT_DATA_PATH', 'FRIENDLINKS_DATA_PATH',
    'INPUT_DATE_FORMAT', 'FRIENDLINKS_DATE_FORMAT',
    'INPUT_CONCURRENCY', 'FRIENDLINKS_CONCURRENCY',
    'INPUT_EXCLUDE_LABELS', 'FRIENDLINKS_EXCLUDE_LABELS',
    'INPUT_TIMEZONE', 'FRIENDLINKS_TIMEZONE',
    'GITHUB_REPOSITORY', 'GITHUB_TOKEN', 'GITHUB_API_URL',
    'REPORT_LOCK_TIMEOUT',
]

RSS_ONE_ITEM = b'''<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0">
  <channel>
    <title>Example</title>
    <link>https://x/</link>
    <item><title>Hello</title><link>https://x/1</link><pubDate>2024-01-01</pubDate></item>
  </channel>
</rss>
'''


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


class ScriptedFetcher(FeedFetcher):
    '''
    Fetcher whose attempts follow a per-URL script. Each step is a list of
    posts or an exception; the last step repeats. Tracks in-flight calls.
    '''

    retry_delay = 0

    def __init__(self, scripts=None, delay: float = 0.0):
        self.scripts = {url: list(steps) for url, steps in (scripts or {}).items()}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.peak = 0

    async def fetch(self, url: str) -> list[Post]:
        self.calls.append(url)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            steps = self.scripts.get(url, [[]])
            step = steps.pop(0) if len(steps) > 1 else steps[0]
            if isinstance(step, BaseException):
                raise step
            return list(step)
        finally:
            self.in_flight -= 1


class FakeTracker(Tracker):
    def __init__(self, entries=(), fail_list: bool = False, fail_updates=()):
        self.entries = list(entries)
        self.fail_list = fail_list
        self.fail_updates = set(fail_updates)
        self.updates: dict[int, str] = {}

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def list_open_entries(self, exclude_labels=None):
        if self.fail_list:
            raise TrackerError('listing failed')
        return filter_by_labels(list(self.entries), exclude_labels)

    async def update_entry_body(self, number, body):
        if number in self.fail_updates:
            raise TrackerError(f'update of #{number} failed')
        self.updates[number] = body


@pytest.fixture
def make_fetcher():
    return ScriptedFetcher


@pytest.fixture
def make_tracker():
    return FakeTracker


def entry_with_block(number: int, block: str, labels=()) -> TrackerEntry:
    return TrackerEntry(number=number, body=f'Friend link\n\n```json\n{block}\n```\n', labels=tuple(labels))


@pytest.fixture
def make_entry():
    return entry_with_block


@pytest.fixture
def rss_one_item():
    return RSS_ONE_ITEM
