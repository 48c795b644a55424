'''
Feed fetcher protocol: one fetch-and-parse attempt, plus a fixed retry policy.

Implementations only provide fetch(); fetch_with_retry() is shared so that
every fetcher retries the same way.
'''

import asyncio
from abc import ABC, abstractmethod
from datetime import timezone, tzinfo

import httpx
import structlog
from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt, wait_fixed

from friendlinks.dates import DEFAULT_DATE_FORMAT
from friendlinks.fetchers.http import fetch_http
from friendlinks.fetchers.rss import parse_feed
from friendlinks.models import Post


logger = structlog.get_logger()

FETCH_TIMEOUT = 5.0
RETRY_DELAY = 1.0


def _log_retry(url: str):
    def _before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            'feed fetch failed, retrying',
            url=url,
            attempt=retry_state.attempt_number,
            error=str(exc),
        )
    return _before_sleep


class FeedFetcher(ABC):
    '''Protocol for feed fetchers.'''

    retry_delay: float = RETRY_DELAY

    @abstractmethod
    async def fetch(self, url: str) -> list[Post]:
        '''
        Fetch a feed and extract its posts, as one atomic attempt.

        Args:
            url: feed URL

        Returns:
            Posts in feed order, capped by the fetcher's post limit
        '''

    async def fetch_with_retry(self, url: str, max_attempts: int) -> list[Post]:
        '''
        Call fetch() up to max_attempts times, sleeping retry_delay seconds
        between attempts. The first success wins; after the last failure its
        exception propagates.
        '''
        if max_attempts < 1:
            raise ValueError(f'max_attempts must be >= 1, got {max_attempts}')
        posts: list[Post] = []
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait_fixed(self.retry_delay),
            before_sleep=_log_retry(url),
            reraise=True,
        ):
            with attempt:
                posts = await self.fetch(url)
        return posts


class HttpFeedFetcher(FeedFetcher):
    '''
    Fetch feeds over HTTP with httpx and parse them with feedparser.
    '''

    def __init__(
        self,
        max_posts: int = 2,
        date_format: str = DEFAULT_DATE_FORMAT,
        tz: tzinfo = timezone.utc,
        timeout: float = FETCH_TIMEOUT,
        retry_delay: float = RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.max_posts = max_posts
        self.date_format = date_format
        self.tz = tz
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.transport = transport

    async def fetch(self, url: str) -> list[Post]:
        logger.info('fetching feed', url=url)
        resp = await fetch_http(url, timeout=self.timeout, transport=self.transport)
        # feedparser is sync; run in a thread to keep the loop free for other fetches
        posts = await asyncio.to_thread(
            parse_feed,
            resp.content,
            self.max_posts,
            self.date_format,
            self.tz,
            resp.headers.get('content-type'),
        )
        logger.info('feed parsed', url=url, posts=len(posts))
        return posts
