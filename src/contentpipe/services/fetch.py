"""Asset fetch primitive: a Protocol plus a requests-backed implementation with bounded retries"""

from __future__ import annotations

import logging
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from contentpipe.core.errors import DownloadError


logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": "contentpipe-asset-fetcher/0.1"}


class Fetcher(Protocol):
    """Anything that can turn a URL into bytes or raise DownloadError."""

    def fetch(self, url: str) -> bytes:
        ...


def build_session(tries: int = 2) -> requests.Session:
    """Session that retries idempotent requests tries-1 times on connection and 5xx failures."""
    s = requests.Session()
    retry = Retry(
        total=max(tries - 1, 0),
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods={"GET", "HEAD"},
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    s.headers.update(DEFAULT_HEADERS)
    return s


class HttpFetcher:
    """Fetcher over a shared requests.Session; follows redirects, short timeout."""

    def __init__(self, timeout: float = 10, tries: int = 2, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or build_session(tries)

    def fetch(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise DownloadError(url, str(e)) from e
        if response.status_code >= 400:
            raise DownloadError(url, f"HTTP {response.status_code}")
        return response.content

    def close(self) -> None:
        self.session.close()
