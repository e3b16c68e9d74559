"""Intermediate data models passed between pipeline stages"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel


TokenMap = dict[str, str]


class ContentType(str, Enum):
    """Artifact families the importer knows how to build"""
    package = "package"
    email = "email"
    raw_html = "raw_html"
    video = "video"


class PlaceholderPolicy(str, Enum):
    """Rule table selected for a placeholder pass"""
    email = "email"
    education = "education"
    landing = "landing"


class PlaceholderCategory(str, Enum):
    ignore = "ignore"
    strip = "strip"
    replace = "replace"
    reject = "reject"


class Difficulty(str, Enum):
    """Ordinal phish detection difficulty"""
    least = "least"
    moderately = "moderately"
    very = "very"


# Upload type names accepted by the importer, mapped to (artifact type, subtype).
UPLOAD_TYPES: dict[str, tuple[ContentType, str]] = {
    "scorm":    (ContentType.package, "scorm"),
    "html":     (ContentType.package, "html"),
    "email":    (ContentType.email, "email"),
    "direct":   (ContentType.email, "email"),
    "training": (ContentType.raw_html, "training"),
    "landing":  (ContentType.raw_html, "landing"),
    "video":    (ContentType.video, "video"),
}


class ProcessedPlaceholders(BaseModel):
    ignored:  list[str] = []
    stripped: list[str] = []
    replaced: list[str] = []


class PlaceholderResult(BaseModel):
    """Outcome of one placeholder policy pass; html is untouched when success is False."""
    success:   bool
    html:      str
    rejected:  list[str] = []
    processed: ProcessedPlaceholders = ProcessedPlaceholders()
    error:     Optional[str] = None


@dataclass(frozen=True)
class HtmlChunk:
    """A contiguous slice of a larger document, cut after a closing tag."""
    position: int
    start:    int
    content:  str

    @property
    def end(self) -> int:
        return self.start + len(self.content)


@dataclass(frozen=True)
class AssetReference:
    """An external reference found in HTML or CSS and where it lands locally."""
    original:     str    # reference text exactly as found, query string included
    path:         str    # path component without query string
    download_url: str
    local_path:   str    # relative to the content root
    new_url:      str
    kind:         str = "legacy"   # legacy | cdn


@dataclass
class EmailAnalysis:
    """Phish cue analysis of an email body."""
    html:       str
    cues:       list[str] = field(default_factory=list)
    difficulty: Difficulty = Difficulty.moderately


class ImportResult(BaseModel):
    """What an import produced, as reported back to the caller."""
    content_id:   str
    content_type: ContentType
    subtype:      str
    content_url:  str
    entry_path:   Optional[str] = None
    scorable:     bool = False
    tags:         list[str] = []
    cues:         list[str] = []
    difficulty:   Optional[Difficulty] = None
    preview_html: Optional[str] = None
    storage:      str = "local"
