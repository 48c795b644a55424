'''
Main runner: list tracker entries, process each under the concurrency
ceiling, rewrite their bodies, aggregate, and write the report.
'''

from pathlib import Path

import structlog

from friendlinks.aggregator import aggregate
from friendlinks.config import Settings
from friendlinks.errors import TrackerError
from friendlinks.fetchers.protocol import FeedFetcher
from friendlinks.models import AggregateReport, EntryResult, TrackerEntry
from friendlinks.processor import process_entry
from friendlinks.scheduler import BoundedScheduler, Scheduler
from friendlinks.sink import write_report
from friendlinks.tracker.base import Tracker


def _entry_job(entry: TrackerEntry, tracker: Tracker, fetcher: FeedFetcher, retries: int):
    async def job() -> EntryResult:
        log = structlog.get_logger().bind(entry=entry.number)
        result = await process_entry(entry, fetcher, retries=retries)
        if result.rewritten_body is None:
            log.info('no rewritten body, leaving entry untouched')
            return result
        try:
            await tracker.update_entry_body(entry.number, result.rewritten_body)
        except TrackerError as e:
            log.warning('entry update failed', error=str(e))
        return result
    return job


async def run_once(
    settings: Settings,
    tracker: Tracker,
    fetcher: FeedFetcher,
    *,
    scheduler: Scheduler | None = None,
) -> AggregateReport:
    '''
    One full run. A TrackerError from listing propagates and nothing is
    written; every per-entry failure is absorbed into the report.
    '''
    log = structlog.get_logger()
    scheduler = scheduler or BoundedScheduler(settings.concurrency)

    entries = await tracker.list_open_entries(settings.exclude_labels)
    log.info('run started', entries=len(entries), concurrency=settings.concurrency)

    jobs = [_entry_job(entry, tracker, fetcher, settings.retries) for entry in entries]
    outcomes = await scheduler.run(jobs)

    report = aggregate(
        outcomes,
        entries_total=len(entries),
        date_format=settings.date_format,
        tz=settings.tz,
    )
    write_report(report, Path(settings.data_path))
    stats = report.statistics
    log.info('run finished', active=stats.active_count, errors=stats.error_count, articles=stats.post_count)
    return report
