'''Admission-controlled asyncio scheduler: at most N jobs run at once.'''

import asyncio
from collections.abc import Sequence
from typing import Any

import structlog

from friendlinks.scheduler.base import Job, Scheduler, TaskOutcome

DEFAULT_CONCURRENCY = 10


class BoundedScheduler(Scheduler):
    '''
    Runs jobs under a counting semaphore. Waiting jobs are admitted in
    submission order as slots free up (asyncio.Semaphore wakes waiters FIFO).
    '''

    def __init__(self, concurrency: int = DEFAULT_CONCURRENCY) -> None:
        '''
        concurrency: ceiling on jobs running at once. Must be >= 1; a ceiling
        of 0 would never admit anything.
        '''
        if concurrency < 1:
            raise ValueError(f'concurrency must be >= 1, got {concurrency}')
        self.concurrency = concurrency
        self.running = 0
        self.peak = 0

    async def _admit(self, sem: asyncio.Semaphore, index: int, job: Job[Any]) -> TaskOutcome[Any]:
        async with sem:
            self.running += 1
            self.peak = max(self.peak, self.running)
            try:
                return TaskOutcome(index=index, value=await job())
            except Exception as e:
                structlog.get_logger().exception('job failed', index=index)
                return TaskOutcome(index=index, error=e)
            finally:
                self.running -= 1

    async def run(self, jobs: Sequence[Job[Any]]) -> list[TaskOutcome[Any]]:
        sem = asyncio.Semaphore(self.concurrency)
        self.peak = 0
        # Tasks are created in submission order, so they queue on the semaphore in that order
        outcomes = await asyncio.gather(*(self._admit(sem, i, job) for i, job in enumerate(jobs)))
        return list(outcomes)
