"""Page fetching with abuse-prevention guards.

A single GET with an overall timeout, a redirect cap (redirects are followed
by hand so they can be counted) and a body size cap enforced while streaming.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urljoin

import httpx

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; AEOAnalyzerBot/1.0)'
DEFAULT_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
}

TIMEOUT = 'TIMEOUT'
TOO_LARGE = 'TOO_LARGE'
TOO_MANY_REDIRECTS = 'TOO_MANY_REDIRECTS'
NETWORK_ERROR = 'NETWORK_ERROR'


class FetchError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass
class FetchResult:
    url: str
    status_code: int
    headers: Dict[str, str]
    body: bytes
    encoding: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    truncated: bool = False

    @property
    def html(self) -> str:
        try:
            return self.body.decode(self.encoding or 'utf-8', errors='replace')
        except LookupError:
            # unknown charset label in Content-Type
            return self.body.decode('utf-8', errors='replace')


async def _read_capped(response: httpx.Response, max_bytes: int, url: str):
    chunks: List[bytes] = []
    total = 0
    async for chunk in response.aiter_bytes():
        if total + len(chunk) > max_bytes:
            chunks.append(chunk[:max_bytes - total])
            logger.info("HTML truncated for %s at %d bytes", url, max_bytes)
            return b''.join(chunks), True
        chunks.append(chunk)
        total += len(chunk)
    return b''.join(chunks), False


async def _fetch(client: httpx.AsyncClient, url: str, settings: Settings) -> FetchResult:
    redirects = 0
    current = url
    while True:
        request = client.build_request('GET', current, headers=DEFAULT_HEADERS)
        response = await client.send(request, stream=True, follow_redirects=False)
        try:
            if 300 <= response.status_code < 400 and response.headers.get('location'):
                redirects += 1
                if redirects > settings.MAX_REDIRECTS:
                    raise FetchError(TOO_MANY_REDIRECTS, f"Too many redirects (>{settings.MAX_REDIRECTS})")
                current = urljoin(current, response.headers['location'])
                continue

            length = response.headers.get('content-length')
            if length and length.isdigit() and int(length) > settings.MAX_HTML_BYTES:
                raise FetchError(
                    TOO_LARGE,
                    f"Response too large: {length} bytes (max: {settings.MAX_HTML_BYTES})",
                )

            body, truncated = await _read_capped(response, settings.MAX_HTML_BYTES, current)
            warnings = []
            if truncated:
                warnings.append(
                    f"HTML truncated at {settings.MAX_HTML_BYTES} bytes; some content may be missing."
                )
            return FetchResult(
                url=current,
                status_code=response.status_code,
                headers={k.lower(): v for k, v in response.headers.items()},
                body=body,
                encoding=response.charset_encoding,
                warnings=warnings,
                truncated=truncated,
            )
        finally:
            await response.aclose()


async def fetch_page(url: str, client: Optional[httpx.AsyncClient] = None,
                     settings: Optional[Settings] = None) -> FetchResult:
    settings = settings or get_settings()
    timeout_s = settings.FETCH_TIMEOUT_MS / 1000
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=timeout_s)
    try:
        return await asyncio.wait_for(_fetch(client, url, settings), timeout=timeout_s)
    except FetchError:
        raise
    except (asyncio.TimeoutError, httpx.TimeoutException):
        raise FetchError(TIMEOUT, f"Request timed out after {settings.FETCH_TIMEOUT_MS}ms")
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(NETWORK_ERROR, str(e) or e.__class__.__name__)
    finally:
        if owns_client:
            await client.aclose()


class PageFetcher:
    """Callable fetcher bound to one settings object; the app injects it per request."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.client = client

    async def __call__(self, url: str) -> FetchResult:
        return await fetch_page(url, client=self.client, settings=self.settings)
