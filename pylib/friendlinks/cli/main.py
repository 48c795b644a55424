'''CLI for the friend-link feed aggregator.'''

import asyncio
import sys
from pathlib import Path

import fire
import structlog
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from friendlinks.config import DEFAULT_DATA_PATH, Settings
from friendlinks.errors import ConfigError, TrackerError
from friendlinks.fetchers.protocol import HttpFeedFetcher
from friendlinks.models import AggregateReport
from friendlinks.runner import run_once
from friendlinks.sink import read_report
from friendlinks.tracker.github import GitHubTracker


def _configure_plain_tracebacks() -> None:
    '''Use standard Python tracebacks instead of Rich's fancy format.'''
    from structlog.contextvars import merge_contextvars
    from structlog.dev import ConsoleRenderer, plain_traceback, set_exc_info
    from structlog.processors import StackInfoRenderer, TimeStamper, add_log_level

    structlog.configure(
        processors=[
            merge_contextvars,
            add_log_level,
            StackInfoRenderer(),
            set_exc_info,
            TimeStamper(fmt='%Y-%m-%d %H:%M:%S', utc=False),
            ConsoleRenderer(exception_formatter=plain_traceback),
        ],
    )


def main() -> None:
    '''friendlinks: aggregate friend-link feeds declared in GitHub issues.'''
    _configure_plain_tracebacks()
    load_dotenv()
    fire.Fire({
        'run': run,
        'show': show,
    })


async def _run(settings: Settings) -> AggregateReport:
    fetcher = HttpFeedFetcher(
        max_posts=settings.posts_count,
        date_format=settings.date_format,
        tz=settings.tz,
    )
    async with GitHubTracker(settings.repository or '', settings.token, settings.api_url) as tracker:
        return await run_once(settings, tracker, fetcher)


def run(
    retries: int | None = None,
    posts_count: int | None = None,
    data_path: str = '',
    date_format: str = '',
    concurrency: int | None = None,
    exclude_labels: str = '',
    timezone: str = '',
    repository: str = '',
) -> None:
    '''
    Run once: fetch every declared feed, rewrite issue bodies, write the report.
    retries: attempts per feed (default 3, or INPUT_RETRY_TIMES)
    posts_count: posts kept per feed (default 2, or INPUT_POSTS_COUNT)
    data_path: where to write the JSON report (default data/friends.json)
    date_format: day.js-style format (default YYYY-MM-DD HH:mm:ss)
    concurrency: feeds processed at once (default 10)
    exclude_labels: comma-separated issue labels to skip
    timezone: zone timestamps are rendered in (default UTC)
    repository: owner/name. Default from GITHUB_REPOSITORY env.
    Exits 1 if the issues cannot be listed, 2 on invalid configuration.
    '''
    log = structlog.get_logger()
    console = Console()
    try:
        settings = Settings.from_env(
            retries=retries,
            posts_count=posts_count,
            data_path=data_path,
            date_format=date_format,
            concurrency=concurrency,
            exclude_labels=exclude_labels,
            timezone=timezone,
            repository=repository,
        )
        if not settings.repository:
            raise ConfigError('No repository: set GITHUB_REPOSITORY or pass --repository owner/name')
        report = asyncio.run(_run(settings))
    except ConfigError as e:
        log.error('invalid configuration', error=str(e))
        sys.exit(2)
    except TrackerError:
        log.exception('could not list tracker entries, nothing written')
        sys.exit(1)

    stats = report.statistics
    console.print(Panel(
        f'entries: {stats.entries_total}  active: {stats.active_count}  '
        f'errors: {stats.error_count}  articles: {stats.post_count}\n'
        f'written to {settings.data_path} at {stats.generated_at}',
        title='friendlinks',
    ))


def show(data_path: str = DEFAULT_DATA_PATH, limit: int = 20) -> None:
    '''
    Print the statistics and newest articles of a previously written report.
    '''
    console = Console()
    data = read_report(Path(data_path))
    if data is None:
        console.print(f'No report at {data_path}')
        sys.exit(1)
    stats = data.get('statistical_data', {})
    console.print(Panel(
        '  '.join(f'{k}: {v}' for k, v in stats.items()),
        title=data_path,
    ))
    table = Table('created', 'author', 'title', 'link')
    for article in data.get('article_data', [])[:limit]:
        table.add_row(
            article.get('created', ''),
            article.get('author', ''),
            article.get('title', ''),
            article.get('link', ''),
        )
    console.print(table)
