'''Issue tracker collaborators.'''

from friendlinks.tracker.base import Tracker, filter_by_labels
from friendlinks.tracker.github import GITHUB_API, GitHubTracker

__all__ = ['GITHUB_API', 'GitHubTracker', 'Tracker', 'filter_by_labels']
