'''Scheduler abstraction: run a batch of independent async jobs to completion.'''

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar('T')

Job = Callable[[], Awaitable[T]]


@dataclass
class TaskOutcome(Generic[T]):
    '''Result of one job: either a value or the exception it raised.'''

    index: int  # submission position
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Scheduler(ABC):
    '''Abstract scheduler. Implementations decide how jobs are admitted.'''

    @abstractmethod
    async def run(self, jobs: Sequence[Job[Any]]) -> list[TaskOutcome[Any]]:
        '''
        Run every job exactly once and return outcomes in submission order.
        Resolves only after all jobs have finished; a failing job never
        cancels the others.
        '''
