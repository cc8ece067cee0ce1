"""HTTP client factory shared by every outbound call.

All provider requests go through :func:`create_http_client` so timeouts and
redirect handling stay consistent, and tests can swap in a fake client by
patching this one name.
"""

import httpx

DEFAULT_TIMEOUT = 30.0


def create_http_client() -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` with the package defaults.

    Use it as an async context manager so the connection pool is closed::

        async with create_http_client() as client:
            resp = await client.get(url)
    """
    return httpx.AsyncClient(follow_redirects=True, timeout=httpx.Timeout(DEFAULT_TIMEOUT))
