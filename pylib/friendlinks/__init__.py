'''
friendlinks: aggregate friend-link feeds declared in GitHub issues.

Each open issue carries a fenced JSON block naming a feed. Feeds are fetched
concurrently under a fixed ceiling, issue bodies are normalized, and a single
JSON report is written for the site that renders the friend list.
'''

__version__ = '0.1.0'
