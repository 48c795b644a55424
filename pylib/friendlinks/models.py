'''Records passed between the pipeline stages.'''

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class TrackerEntry:
    '''An open issue as returned by the tracker.'''

    number: int
    body: str | None
    labels: tuple[str, ...] = ()
    title: str = ''


@dataclass
class Post:
    '''One post extracted from a feed. Only built when title and link are both present.'''

    title: str
    link: str
    published: str = ''  # formatted timestamp, or '' when absent/unparsable


class EntryStatus(str, Enum):
    ACTIVE = 'active'
    ERROR = 'error'


class FailureKind(str, Enum):
    '''Why an entry ended up with ERROR status.'''

    NO_BODY = 'no_body'
    NO_BLOCK = 'no_block'
    MALFORMED_BLOCK = 'malformed_block'
    NO_FEED = 'no_feed'
    FETCH_FAILED = 'fetch_failed'
    NO_POSTS = 'no_posts'
    UNEXPECTED = 'unexpected'


@dataclass
class EntryResult:
    '''
    Outcome of processing one tracker entry.

    status is ACTIVE iff the feed fetch succeeded and yielded at least one post.
    rewritten_body is None when the structured block could not be located or parsed;
    the tracker is then left untouched.
    '''

    number: int
    status: EntryStatus
    posts: list[Post] = field(default_factory=list)
    rewritten_body: str | None = None
    author: str = ''
    avatar: str = ''
    feed_url: str | None = None
    data: dict[str, Any] | None = None  # parsed structured block
    failure: FailureKind | None = None

    @classmethod
    def failed(cls, number: int, failure: FailureKind) -> EntryResult:
        return cls(number=number, status=EntryStatus.ERROR, failure=failure)


@dataclass(frozen=True)
class Article:
    '''One flattened post in the output report.'''

    title: str
    created: str
    link: str
    author: str = ''
    avatar: str = ''

    def to_dict(self) -> dict[str, str]:
        return {
            'title': self.title,
            'created': self.created,
            'link': self.link,
            'author': self.author,
            'avatar': self.avatar,
        }


@dataclass(frozen=True)
class Statistics:
    entries_total: int
    active_count: int
    error_count: int
    post_count: int
    generated_at: str


@dataclass(frozen=True)
class AggregateReport:
    '''
    The consolidated result of one run. Serialized with the field names the
    friend-link page already consumes (statistical_data / article_data).
    '''

    statistics: Statistics
    articles: tuple[Article, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        s = self.statistics
        return {
            'statistical_data': {
                'friends_num': s.entries_total,
                'active_num': s.active_count,
                'error_num': s.error_count,
                'article_num': s.post_count,
                'last_updated_time': s.generated_at,
            },
            'article_data': [a.to_dict() for a in self.articles],
        }
