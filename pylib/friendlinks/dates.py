'''
Timestamp parsing and formatting.

Format strings use day.js-style tokens (YYYY-MM-DD HH:mm:ss), which is what
existing friend-link deployments put in their workflow config. Text inside
square brackets is emitted literally.
'''

import calendar
import re
import time
from datetime import datetime, timezone, tzinfo

from dateutil import parser as date_parser

DEFAULT_DATE_FORMAT = 'YYYY-MM-DD HH:mm:ss'

TOKEN_PATTERN = re.compile(
    r'\[([^\]]*)\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd|dd|d|HH|H|hh|h|mm|m|ss|s|SSS|ZZ|Z|A|a'
)


def _offset(dt: datetime, sep: str) -> str:
    delta = dt.utcoffset()
    minutes = int(delta.total_seconds() // 60) if delta is not None else 0
    sign = '-' if minutes < 0 else '+'
    hours, mins = divmod(abs(minutes), 60)
    return f'{sign}{hours:02d}{sep}{mins:02d}'


def _render_token(dt: datetime, token: str) -> str:
    hour12 = dt.hour % 12 or 12
    table = {
        'YYYY': f'{dt.year:04d}',
        'YY': f'{dt.year % 100:02d}',
        'MMMM': calendar.month_name[dt.month],
        'MMM': calendar.month_abbr[dt.month],
        'MM': f'{dt.month:02d}',
        'M': str(dt.month),
        'DD': f'{dt.day:02d}',
        'D': str(dt.day),
        'dddd': calendar.day_name[dt.weekday()],
        'ddd': calendar.day_abbr[dt.weekday()],
        'dd': calendar.day_abbr[dt.weekday()][:2],
        'd': str((dt.weekday() + 1) % 7),  # Sunday is 0
        'HH': f'{dt.hour:02d}',
        'H': str(dt.hour),
        'hh': f'{hour12:02d}',
        'h': str(hour12),
        'mm': f'{dt.minute:02d}',
        'm': str(dt.minute),
        'ss': f'{dt.second:02d}',
        's': str(dt.second),
        'SSS': f'{dt.microsecond // 1000:03d}',
        'ZZ': _offset(dt, ''),
        'Z': _offset(dt, ':'),
        'A': 'AM' if dt.hour < 12 else 'PM',
        'a': 'am' if dt.hour < 12 else 'pm',
    }
    return table[token]


def render(dt: datetime, fmt: str) -> str:
    '''Render dt with a day.js-style format string.'''
    def _sub(m: re.Match) -> str:
        if m.group(1) is not None:
            return m.group(1)
        return _render_token(dt, m.group(0))
    return TOKEN_PATTERN.sub(_sub, fmt)


def parse_date(raw: str | None) -> datetime | None:
    '''
    Parse a free-form date string. Returns None for empty or unparsable input.
    The result may be naive; callers decide which zone a naive value lives in.
    '''
    if not raw or not raw.strip():
        return None
    try:
        return date_parser.parse(raw.strip())
    except (ValueError, OverflowError):
        return None


def format_date(value: str | datetime | time.struct_time | None, fmt: str, tz: tzinfo) -> str:
    '''
    Format value in zone tz. Strings are parsed first; struct_time values are
    taken as UTC (that is how feedparser reports them). Aware datetimes are
    converted to tz, naive ones are assumed to already be in tz.

    Returns '' when value is missing or cannot be parsed. Never raises.
    '''
    if value is None:
        return ''
    if isinstance(value, time.struct_time):
        try:
            dt = datetime(*value[:6], tzinfo=timezone.utc)
        except ValueError:
            return ''
    elif isinstance(value, datetime):
        dt = value
    else:
        dt = parse_date(value)
        if dt is None:
            return ''
    try:
        dt = dt.astimezone(tz) if dt.tzinfo else dt.replace(tzinfo=tz)
    except (ValueError, OverflowError):
        return ''
    return render(dt, fmt)
