"""Typed error hierarchy raised by the import pipeline stages"""


class ContentPipeError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class ValidationError(ContentPipeError):
    """Input rejected before any mutation: placeholders, asset paths, languages, content types."""

    def __init__(self, message: str, items: list[str] = None):
        super().__init__(message)
        self.items = list(items or [])


class ExternalServiceError(ContentPipeError):
    """The content rewriter failed or returned something unusable."""


class ExtractionError(ContentPipeError):
    """Archive could not be unpacked or has no entry document. Fatal for the import."""


class DownloadError(ContentPipeError):
    """A single asset could not be fetched. Logged and skipped by the localizer."""

    def __init__(self, url: str, reason: str = ""):
        super().__init__(f"Download failed for {url}" + (f": {reason}" if reason else ""))
        self.url = url
