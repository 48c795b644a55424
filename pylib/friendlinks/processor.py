'''
Entry processor: turn one tracker entry into an EntryResult.

An entry body declares its feed in a fenced block:

```json
{"feed": "https://example.com/atom.xml", "author": "Someone", "avatar": "https://..."}
```

Every failure is reported through EntryResult.failure; nothing raises out of
process_entry().
'''

import json
import re

import structlog

from friendlinks.fetchers.protocol import FeedFetcher
from friendlinks.models import EntryResult, EntryStatus, FailureKind, TrackerEntry

FENCED_JSON_PATTERN = re.compile(r'```json\s*\{[\s\S]*?\}\s*```', re.MULTILINE)
JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}', re.MULTILINE)


def locate_block(body: str) -> str | None:
    '''Return the JSON object text of the first fenced json block, or None.'''
    fenced = FENCED_JSON_PATTERN.search(body)
    if not fenced:
        return None
    obj = JSON_OBJECT_PATTERN.search(fenced.group(0))
    return obj.group(0) if obj else None


def canonical_json(data: dict) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


async def _process(entry: TrackerEntry, fetcher: FeedFetcher, retries: int) -> EntryResult:
    log = structlog.get_logger().bind(entry=entry.number)
    if not entry.body:
        log.warning('entry has no body, skipping')
        return EntryResult.failed(entry.number, FailureKind.NO_BODY)

    block = locate_block(entry.body)
    if block is None:
        log.warning('no json block found in entry')
        return EntryResult.failed(entry.number, FailureKind.NO_BLOCK)

    try:
        data = json.loads(block)
    except ValueError as e:
        log.warning('malformed json block', error=str(e))
        return EntryResult.failed(entry.number, FailureKind.MALFORMED_BLOCK)
    if not isinstance(data, dict):
        log.warning('json block is not an object')
        return EntryResult.failed(entry.number, FailureKind.MALFORMED_BLOCK)

    feed_url = data.get('feed') or None
    posts = []
    failure: FailureKind | None = None
    if not feed_url:
        log.warning('json block has no feed')
        failure = FailureKind.NO_FEED
    else:
        try:
            posts = await fetcher.fetch_with_retry(feed_url, retries)
        except Exception as e:
            log.warning('feed fetch exhausted retries', url=feed_url, error=str(e))
            failure = FailureKind.FETCH_FAILED
        else:
            if not posts:
                failure = FailureKind.NO_POSTS

    status = EntryStatus.ACTIVE if failure is None else EntryStatus.ERROR
    log.info('entry processed', posts=len(posts), status=status.value)
    return EntryResult(
        number=entry.number,
        status=status,
        posts=posts,
        rewritten_body=entry.body.replace(block, canonical_json(data), 1),
        author=data.get('author') or '',
        avatar=data.get('avatar') or '',
        feed_url=feed_url,
        data=data,
        failure=failure,
    )


async def process_entry(entry: TrackerEntry, fetcher: FeedFetcher, *, retries: int = 3) -> EntryResult:
    '''
    Parse the entry's structured block, fetch its feed with retries, and
    rewrite the body with the block pretty-printed.
    '''
    try:
        return await _process(entry, fetcher, retries)
    except Exception:
        structlog.get_logger().exception('unexpected error processing entry', entry=entry.number)
        return EntryResult.failed(entry.number, FailureKind.UNEXPECTED)
