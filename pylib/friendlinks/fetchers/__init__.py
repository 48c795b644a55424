'''Feed fetchers: HTTP transport, RSS/Atom parsing, retrying fetcher protocol.'''

from friendlinks.fetchers.http import fetch_http
from friendlinks.fetchers.protocol import FeedFetcher, HttpFeedFetcher
from friendlinks.fetchers.rss import FeedFormat, detect_format, parse_feed

__all__ = [
    'FeedFetcher',
    'FeedFormat',
    'HttpFeedFetcher',
    'detect_format',
    'fetch_http',
    'parse_feed',
]
