import json

import httpx
import pytest

from friendlinks.errors import ConfigError, TrackerError
from friendlinks.tracker.github import GitHubTracker

API = 'https://api.github.test'
NEXT = f'{API}/repositories/1/issues?state=open&page=2'


def _issue(number, labels=(), body='body', pr=False):
    item = {'number': number, 'title': f'#{number}', 'body': body, 'labels': [{'name': lb} for lb in labels]}
    if pr:
        item['pull_request'] = {'url': 'x'}
    return item


def _tracker(handler) -> GitHubTracker:
    return GitHubTracker('owner/repo', token='secret', api_url=API, transport=httpx.MockTransport(handler))


async def test_lists_all_pages_and_skips_pull_requests():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.params.get('page') == '2':
            return httpx.Response(200, json=[_issue(1)])
        return httpx.Response(
            200,
            json=[_issue(3), _issue(9, pr=True), _issue(2, body=None)],
            headers={'Link': f'<{NEXT}>; rel="next"'},
        )

    async with _tracker(handler) as tracker:
        entries = await tracker.list_open_entries()

    assert [e.number for e in entries] == [3, 2, 1]
    assert entries[1].body is None
    first = requests[0]
    assert first.url.path == '/repos/owner/repo/issues'
    assert first.url.params['state'] == 'open'
    assert first.url.params['sort'] == 'created'
    assert first.url.params['direction'] == 'desc'
    assert first.url.params['per_page'] == '100'
    assert first.headers['Authorization'] == 'Bearer secret'
    assert str(requests[1].url) == NEXT


async def test_excludes_labelled_entries():
    def handler(request):
        return httpx.Response(200, json=[_issue(1, labels=['friend']), _issue(2, labels=['friend', 'dead']), _issue(3)])

    async with _tracker(handler) as tracker:
        entries = await tracker.list_open_entries(exclude_labels=['dead'])
    assert [e.number for e in entries] == [1, 3]
    assert entries[0].labels == ('friend',)


async def test_listing_failure_raises_tracker_error():
    async with _tracker(lambda request: httpx.Response(500)) as tracker:
        with pytest.raises(TrackerError):
            await tracker.list_open_entries()


async def test_listing_network_error_raises_tracker_error():
    def handler(request):
        raise httpx.ConnectError('refused')

    async with _tracker(handler) as tracker:
        with pytest.raises(TrackerError):
            await tracker.list_open_entries()


async def test_update_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['method'] = request.method
        seen['path'] = request.url.path
        seen['json'] = json.loads(request.content)
        return httpx.Response(200, json={})

    async with _tracker(handler) as tracker:
        await tracker.update_entry_body(7, 'new body')
    assert seen == {'method': 'PATCH', 'path': '/repos/owner/repo/issues/7', 'json': {'body': 'new body'}}


async def test_update_failure_raises_tracker_error():
    async with _tracker(lambda request: httpx.Response(403)) as tracker:
        with pytest.raises(TrackerError):
            await tracker.update_entry_body(7, 'new body')


def test_rejects_malformed_repository():
    with pytest.raises(ConfigError):
        GitHubTracker('just-a-name')
