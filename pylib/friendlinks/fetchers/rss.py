'''RSS/Atom parsing using feedparser.'''

import io
import xml.sax
from datetime import tzinfo
from enum import Enum
from xml.etree import ElementTree as ET

import feedparser
import structlog

from friendlinks.dates import format_date, parse_date
from friendlinks.errors import FeedParseError
from friendlinks.models import Post

logger = structlog.get_logger()


class FeedFormat(str, Enum):
    '''Decided once per feed body; extraction dispatches on it.'''

    ATOM = 'atom'
    RSS = 'rss'
    UNRECOGNIZED = 'unrecognized'


def detect_format(parsed: feedparser.FeedParserDict) -> FeedFormat:
    '''
    Map feedparser's version string to a FeedFormat.
    RSS 1.0 (RDF) keeps its items outside <channel>, so it is not treated as RSS here.
    '''
    version = parsed.get('version') or ''
    if version.startswith('atom'):
        return FeedFormat.ATOM
    if version.startswith('rss') and version != 'rss10':
        return FeedFormat.RSS
    return FeedFormat.UNRECOGNIZED


def _local(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _atom_link(entry: ET.Element) -> str:
    links = [child for child in entry if _local(child.tag) == 'link']
    for link in links:
        if link.get('rel') == 'alternate' and link.get('href'):
            return link.get('href').strip()
    if links:
        return (links[0].get('href') or '').strip()
    return ''


def _rss_link(item: ET.Element) -> str:
    # Only the item's own <link>; a permalink <guid> is not a link here
    link = item.find('link')
    return (link.text or '').strip() if link is not None else ''


def raw_links(content: bytes, fmt: FeedFormat) -> list[str] | None:
    '''
    Links of each item in document order, read from the elements themselves.

    feedparser marks an Atom <link> without rel as alternate and fills an RSS
    item's link from its <guid>, so neither can be told apart afterwards.
    Returns None when the document is not well-formed XML.
    '''
    try:
        root = ET.fromstring(content)
    except ET.ParseError:
        return None
    if fmt is FeedFormat.ATOM:
        return [_atom_link(child) for child in root if _local(child.tag) == 'entry']
    channel = root.find('channel')
    if channel is None:
        return []
    return [_rss_link(item) for item in channel.findall('item')]


def _entry_link(entry: feedparser.FeedParserDict, fmt: FeedFormat) -> str:
    '''Fallback for documents only feedparser's lenient parser could read.'''
    if fmt is FeedFormat.RSS:
        if entry.get('guidislink'):
            return ''
        return (entry.get('link') or '').strip()
    links = entry.get('links') or []
    for link in links:
        if link.get('rel') == 'alternate' and link.get('href'):
            return link['href'].strip()
    if links:
        return (links[0].get('href') or '').strip()
    return ''


def _is_html(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.split(';', 1)[0].strip().lower() in ('text/html', 'application/xhtml+xml')


def _entry_published(entry: feedparser.FeedParserDict, date_format: str, tz: tzinfo) -> str:
    # RSS pubDate and Atom <published> both land in 'published'
    raw = entry.get('published')
    if not raw:
        return ''
    if parse_date(raw) is not None:
        return format_date(raw, date_format, tz)
    # feedparser knows a few more date dialects than dateutil
    return format_date(entry.get('published_parsed'), date_format, tz)


def parse_feed(
    content: bytes,
    max_posts: int,
    date_format: str,
    tz: tzinfo,
    content_type: str | None = None,
) -> list[Post]:
    '''
    Extract at most max_posts posts from a feed document.

    Unrecognized documents yield []. Markup that cannot be parsed at all raises
    FeedParseError, unless it was served as HTML: a landing page where a feed
    used to be is just unrecognized, and retrying it would not help.
    Items missing a title or link are dropped.
    '''
    parsed = feedparser.parse(io.BytesIO(content))
    exc = parsed.get('bozo_exception')
    if parsed.get('bozo') and not parsed.entries and isinstance(exc, xml.sax.SAXException):
        if _is_html(content_type):
            logger.debug('malformed html page, no feed', content_type=content_type)
            return []
        raise FeedParseError(f'Malformed feed markup: {exc}')

    fmt = detect_format(parsed)
    logger.debug('feed format detected', format=fmt.value, items=len(parsed.entries))
    if fmt is FeedFormat.UNRECOGNIZED:
        return []

    links = raw_links(content, fmt)
    if links is not None and len(links) != len(parsed.entries):
        links = None

    posts: list[Post] = []
    for i, entry in enumerate(parsed.entries[:max_posts]):
        title = (entry.get('title') or '').strip()
        link = links[i] if links is not None else _entry_link(entry, fmt)
        published = _entry_published(entry, date_format, tz)
        if title and link:
            posts.append(Post(title=title, link=link, published=published))
        else:
            logger.debug('dropping item without title or link', title=title, link=link)
    return posts
