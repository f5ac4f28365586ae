import logging
from typing import Dict, Optional

import httpx

from unisaver.core.config import settings
from unisaver.core.errors import ExtractionError

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'Cache-Control': 'no-cache',
    'Pragma': 'no-cache',
}


def client(**kwargs) -> httpx.AsyncClient:
    kwargs.setdefault("follow_redirects", True)
    kwargs.setdefault("timeout", settings.HTTP_TIMEOUT)
    return httpx.AsyncClient(**kwargs)


def page_headers(referer: Optional[str] = None, user_agent: Optional[str] = None,
                 cookie: Optional[str] = None) -> Dict[str, str]:
    headers = {'User-Agent': user_agent or settings.USER_AGENT, **BROWSER_HEADERS}
    if referer:
        headers['Referer'] = referer
    if cookie:
        headers['Cookie'] = cookie
    return headers


async def fetch_page(url: str, referer: Optional[str] = None, user_agent: Optional[str] = None,
                     cookie: Optional[str] = None) -> str:
    """GET a page with browser-like headers and return its text."""
    async with client() as http:
        resp = await http.get(url, headers=page_headers(referer, user_agent, cookie))
    if resp.status_code >= 400:
        raise ExtractionError(f"page fetch {resp.status_code}")
    return resp.text


async def fetch_json(method: str, url: str, **kwargs):
    async with client() as http:
        resp = await http.request(method, url, **kwargs)
    if resp.status_code >= 400:
        raise ExtractionError(f"{url} responded with {resp.status_code}")
    try:
        return resp.json()
    except ValueError as e:
        raise ExtractionError(f"{url} returned invalid JSON") from e
