'''
Fold per-entry outcomes into one AggregateReport.

Runs once, after every job has joined, so no locking is needed.

Two counts carry over from the deployed report format and look odd:
- active_num counts entries whose processing completed, whatever their
  feed status. error_num only counts jobs that raised.
- article_data comes from the `posts` array already stored in each entry's
  JSON block, not from the posts fetched during this run.
Downstream pages depend on both, so they stay as they are.
'''

from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo
from typing import Any

import structlog

from friendlinks.dates import format_date, parse_date
from friendlinks.models import AggregateReport, Article, EntryResult, Statistics
from friendlinks.scheduler.base import TaskOutcome

# Unparsable timestamps sort after every real one
EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def sort_key(created: str, tz: tzinfo) -> datetime:
    dt = parse_date(created)
    if dt is None:
        return EARLIEST
    try:
        return dt if dt.tzinfo else dt.replace(tzinfo=tz)
    except (ValueError, OverflowError):
        return EARLIEST


def _text(value: Any) -> str:
    return '' if value is None else str(value)


def articles_from(result: EntryResult) -> list[Article]:
    '''Flatten the posts array stored in an entry's structured block.'''
    data = result.data or {}
    posts = data.get('posts')
    if not isinstance(posts, list):
        return []
    author = _text(data.get('name') or data.get('author'))
    avatar = _text(data.get('avatar'))
    articles = []
    for post in posts:
        if not isinstance(post, dict):
            structlog.get_logger().warning('skipping non-object post', entry=result.number)
            continue
        articles.append(Article(
            title=_text(post.get('title')),
            created=_text(post.get('published')),
            link=_text(post.get('link')),
            author=author,
            avatar=avatar,
        ))
    return articles


def aggregate(
    outcomes: Iterable[TaskOutcome[EntryResult]],
    *,
    entries_total: int,
    date_format: str,
    tz: tzinfo = timezone.utc,
    now: datetime | None = None,
) -> AggregateReport:
    '''
    Build the report. entries_total is the number of entries submitted,
    which includes entries that produced nothing.
    '''
    active = errors = 0
    articles: list[Article] = []
    for outcome in outcomes:
        if not outcome.ok:
            errors += 1
            continue
        active += 1
        if outcome.value is not None:
            articles.extend(articles_from(outcome.value))

    # list.sort is stable, so ties and unparsable dates keep their entry order
    articles.sort(key=lambda a: sort_key(a.created, tz), reverse=True)
    now = now or datetime.now(timezone.utc)
    stats = Statistics(
        entries_total=entries_total,
        active_count=active,
        error_count=errors,
        post_count=len(articles),
        generated_at=format_date(now, date_format, tz),
    )
    structlog.get_logger().info(
        'aggregated',
        entries=entries_total,
        active=active,
        errors=errors,
        articles=len(articles),
    )
    return AggregateReport(statistics=stats, articles=tuple(articles))
