import asyncio

import httpx
import pytest

from friendlinks.errors import FeedParseError
from friendlinks.fetchers.protocol import HttpFeedFetcher
from friendlinks.models import Post

FEED_URL = 'https://example.com/rss'
HELLO = [Post(title='Hello', link='https://x/1', published='2024-01-01 00:00:00')]


def _fetcher(responses):
    '''HttpFeedFetcher over a MockTransport that serves responses in turn.'''
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        step = responses[min(len(calls), len(responses)) - 1]
        if isinstance(step, Exception):
            raise step
        return step

    fetcher = HttpFeedFetcher(retry_delay=0, transport=httpx.MockTransport(handler))
    return fetcher, calls


async def test_fetch_parses_feed(rss_one_item):
    fetcher, calls = _fetcher([httpx.Response(200, content=rss_one_item)])
    assert await fetcher.fetch(FEED_URL) == HELLO
    assert calls == [FEED_URL]


async def test_succeeds_on_last_attempt(rss_one_item):
    fetcher, calls = _fetcher([
        httpx.Response(500),
        httpx.ReadTimeout('timed out'),
        httpx.Response(200, content=rss_one_item),
    ])
    assert await fetcher.fetch_with_retry(FEED_URL, 3) == HELLO
    assert len(calls) == 3


async def test_success_short_circuits(rss_one_item):
    fetcher, calls = _fetcher([httpx.Response(200, content=rss_one_item)])
    assert await fetcher.fetch_with_retry(FEED_URL, 3) == HELLO
    assert len(calls) == 1


async def test_last_error_propagates_after_all_attempts():
    fetcher, calls = _fetcher([httpx.ConnectError('refused'), httpx.Response(503)])
    with pytest.raises(httpx.HTTPStatusError):
        await fetcher.fetch_with_retry(FEED_URL, 3)
    assert len(calls) == 3


async def test_parse_failure_is_retried(rss_one_item):
    fetcher, calls = _fetcher([
        httpx.Response(200, content=b'not a feed <<<'),
        httpx.Response(200, content=rss_one_item),
    ])
    assert await fetcher.fetch_with_retry(FEED_URL, 2) == HELLO
    assert len(calls) == 2


async def test_parse_failure_propagates_when_exhausted():
    fetcher, _ = _fetcher([httpx.Response(200, content=b'not a feed <<<')])
    with pytest.raises(FeedParseError):
        await fetcher.fetch_with_retry(FEED_URL, 1)


async def test_unrecognized_feed_is_not_retried():
    fetcher, calls = _fetcher([httpx.Response(200, content=b'<?xml version="1.0"?><html/>')])
    assert await fetcher.fetch_with_retry(FEED_URL, 3) == []
    assert len(calls) == 1


async def test_rejects_zero_attempts():
    fetcher, _ = _fetcher([httpx.Response(200)])
    with pytest.raises(ValueError):
        await fetcher.fetch_with_retry(FEED_URL, 0)


async def test_posts_limit_applied(rss_one_item):
    content = rss_one_item.replace(
        b'</channel>',
        b'<item><title>Second</title><link>https://x/2</link></item></channel>',
    )
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=content))
    fetcher = HttpFeedFetcher(max_posts=1, retry_delay=0, transport=transport)
    assert await fetcher.fetch(FEED_URL) == HELLO


async def test_slow_server_times_out():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200)

    fetcher = HttpFeedFetcher(timeout=0.05, retry_delay=0, transport=httpx.MockTransport(handler))
    with pytest.raises(asyncio.TimeoutError):
        await fetcher.fetch(FEED_URL)


async def test_slow_body_is_bounded_per_attempt(rss_one_item):
    async def trickle():
        yield rss_one_item[:10]
        await asyncio.sleep(1)
        yield rss_one_item[10:]

    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(200, content=trickle())

    fetcher = HttpFeedFetcher(timeout=0.05, retry_delay=0, transport=httpx.MockTransport(handler))
    with pytest.raises(asyncio.TimeoutError):
        await fetcher.fetch_with_retry(FEED_URL, 2)
    assert len(calls) == 2


async def test_html_page_that_does_not_parse_is_not_retried():
    fetcher, calls = _fetcher([
        httpx.Response(
            200,
            content=b'<html><body><p>moved<br></p></body>',
            headers={'Content-Type': 'text/html; charset=utf-8'},
        ),
    ])
    assert await fetcher.fetch_with_retry(FEED_URL, 3) == []
    assert len(calls) == 1
