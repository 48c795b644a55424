'''Exception types. Entry-local failures never surface as these; see EntryResult.'''


class FriendlinksError(Exception):
    '''Base for all friendlinks errors.'''


class ConfigError(FriendlinksError):
    '''Rejected configuration (e.g. a concurrency ceiling below 1).'''


class TrackerError(FriendlinksError):
    '''The issue tracker could not be listed or updated.'''


class FeedParseError(FriendlinksError):
    '''Feed markup could not be parsed at all.'''


class ReportLockError(FriendlinksError):
    '''Raised when the report lock cannot be acquired within the timeout.'''
