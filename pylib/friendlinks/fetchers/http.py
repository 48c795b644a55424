'''HTTP fetcher using httpx.'''

import asyncio

import httpx

USER_AGENT = 'friendlinks/0.1 (+https://github.com)'


async def fetch_http(
    url: str,
    timeout: float = 5.0,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.Response:
    '''
    Fetch URL and return the response with its body read. Raises
    httpx.HTTPError on network failure or an error status, and
    asyncio.TimeoutError when the whole request (redirects and body
    included) takes longer than timeout seconds.
    '''
    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={'User-Agent': USER_AGENT, **(headers or {})},
        transport=transport,
    ) as client:
        # httpx timeouts are per network operation; bound the whole request
        resp = await asyncio.wait_for(client.get(url), timeout)
        resp.raise_for_status()
        return resp
