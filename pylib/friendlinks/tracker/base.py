'''Issue tracker abstraction. The pipeline only lists open entries and rewrites bodies.'''

from abc import ABC, abstractmethod
from collections.abc import Sequence

from friendlinks.models import TrackerEntry


class Tracker(ABC):
    '''Abstract tracker. Implementations raise TrackerError on any failure.'''

    @abstractmethod
    async def list_open_entries(self, exclude_labels: Sequence[str] | None = None) -> list[TrackerEntry]:
        '''
        All open entries, newest first. Entries carrying any label in
        exclude_labels are left out.
        '''

    @abstractmethod
    async def update_entry_body(self, number: int, body: str) -> None:
        '''Replace an entry's body.'''


def filter_by_labels(entries: list[TrackerEntry], exclude_labels: Sequence[str] | None) -> list[TrackerEntry]:
    '''Drop entries carrying any of exclude_labels.'''
    if not exclude_labels:
        return entries
    excluded = set(exclude_labels)
    return [e for e in entries if not excluded.intersection(e.labels)]
