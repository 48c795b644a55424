'''Job schedulers. BoundedScheduler is the one the pipeline uses.'''

from friendlinks.scheduler.base import Job, Scheduler, TaskOutcome
from friendlinks.scheduler.bounded import DEFAULT_CONCURRENCY, BoundedScheduler

__all__ = ['DEFAULT_CONCURRENCY', 'BoundedScheduler', 'Job', 'Scheduler', 'TaskOutcome']
