"""Root test configuration: fake collaborators and session-level cleanup of runtime artifacts"""

import shutil
from pathlib import Path

import pytest

from contentpipe.core.errors import DownloadError, ExternalServiceError


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["contentpipe.db", "test.db"]
_CLEANUP_DIRS = ["content"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files and content directories created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if p.exists():
            shutil.rmtree(p)


# --- fakes ---

class FakeRewriter:
    """Echoes the content part of the prompt unless given a response (str or callable) or told to fail."""

    def __init__(self, response=None, fail: bool = False):
        self.response = response
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    def rewrite(self, text: str, system: str) -> str:
        self.calls.append((text, system))
        if self.fail:
            raise ExternalServiceError("rewriter unavailable")
        body = text.split("\n\n", 1)[1] if "\n\n" in text else text
        if callable(self.response):
            return self.response(body)
        if self.response is not None:
            return self.response
        return body


class FakeFetcher:
    """Serves bytes from a dict; unknown URLs raise DownloadError."""

    def __init__(self, files: dict[str, bytes] = None):
        self.files = dict(files or {})
        self.requested: list[str] = []

    def fetch(self, url: str) -> bytes:
        self.requested.append(url)
        if url not in self.files:
            raise DownloadError(url, "HTTP 404")
        return self.files[url]


@pytest.fixture(name="make_rewriter")
def make_rewriter_fixture():
    return FakeRewriter


@pytest.fixture(name="make_fetcher")
def make_fetcher_fixture():
    return FakeFetcher
