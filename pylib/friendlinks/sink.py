'''Write the aggregate report. Overwrites in full; never appends or merges.
Uses file locking so overlapping runs cannot interleave writes.'''

import json
import os
from pathlib import Path

import structlog
from filelock import FileLock, Timeout

from friendlinks.errors import ReportLockError
from friendlinks.models import AggregateReport


def _lock_path(report_path: Path) -> Path:
    '''Path for the lock file (beside the report).'''
    return report_path.with_suffix(report_path.suffix + '.lock')


def _lock_timeout() -> float:
    '''Lock timeout in seconds (REPORT_LOCK_TIMEOUT env, default 30).'''
    try:
        return float(os.environ.get('REPORT_LOCK_TIMEOUT', '30'))
    except ValueError:
        return 30.0


def write_report(report: AggregateReport, report_path: Path) -> None:
    '''
    Serialize report as JSON to report_path, creating parent directories.
    Raises ReportLockError if the lock cannot be acquired within
    REPORT_LOCK_TIMEOUT seconds.
    '''
    report_path = Path(report_path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = _lock_path(report_path)
    lock = FileLock(lock_path, timeout=_lock_timeout())
    try:
        with lock:
            text = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
            report_path.write_text(text, encoding='utf-8')
    except Timeout as e:
        raise ReportLockError(
            f'Could not acquire report lock within {_lock_timeout():.0f}s. '
            f'Another run may be writing {report_path}. Investigate stale lock at {lock_path}'
        ) from e
    structlog.get_logger().info('report written', path=str(report_path))


def read_report(report_path: Path) -> dict | None:
    '''Load a previously written report, or None if there is none.'''
    report_path = Path(report_path)
    if not report_path.exists():
        return None
    return json.loads(report_path.read_text(encoding='utf-8'))
