"""RecordTest scoring-callback detection and call-site normalization in extracted packages"""

import logging
import re
from pathlib import Path


logger = logging.getLogger(__name__)

CALLBACK = "RecordTest"
SCAN_EXTENSIONS = (".js", ".html", ".htm", ".php")
NORMALIZE_EXTENSIONS = (".js", ".html", ".htm")
WINDOW = 50

_OCCURRENCE_RE = re.compile(CALLBACK, re.IGNORECASE)
_CALL_RE = re.compile(r"RecordTest\s*\(", re.IGNORECASE)
_EXCLUDE_RES = (
    re.compile(r"window\.RecordTest\s*=", re.IGNORECASE),
    re.compile(r"function\s+RecordTest\s*\(", re.IGNORECASE),
    re.compile(r"typeof\s+RecordTest", re.IGNORECASE),
)
_PARENT_CALLS = (
    "window.parent.RecordTest(",
    "Window.parent.RecordTest(",
    "parent.RecordTest(",
    "Parent.RecordTest(",
)


def _iter_files(root: Path, extensions: tuple[str, ...]):
    for path in sorted(root.rglob("*")):
        if path.is_file() and path.suffix.lower() in extensions:
            yield path


def has_record_test_call(text: str) -> bool:
    """True if some RecordTest occurrence is a call rather than a definition or type check.

    Each occurrence is judged on a small window around it so minified files never
    see a whole-file regex.
    """
    for m in _OCCURRENCE_RE.finditer(text):
        start = max(m.start() - WINDOW, 0)
        context = text[start:m.end() + WINDOW]
        local = text[m.start():m.end() + WINDOW]
        offset = m.start() - start
        if any(
            e.start() <= offset < e.end()
            for p in _EXCLUDE_RES for e in p.finditer(context)
        ):
            continue
        if _CALL_RE.match(local):
            return True
    return False


def detect_scorable(root: Path | str) -> bool:
    """Scan script/HTML/PHP files under root for a RecordTest call."""
    for path in _iter_files(Path(root), SCAN_EXTENSIONS):
        text = path.read_text(encoding="utf-8", errors="ignore")
        if CALLBACK.lower() not in text.lower():
            continue
        if has_record_test_call(text):
            logger.info("Scorable: RecordTest call found in %s", path.name)
            return True
    return False


def normalize_record_test_calls(root: Path | str) -> int:
    """Rewrite parent-frame RecordTest calls to bare calls; returns the number of files changed."""
    modified = 0
    for path in _iter_files(Path(root), NORMALIZE_EXTENSIONS):
        text = path.read_text(encoding="utf-8", errors="ignore")
        updated = text
        for call in _PARENT_CALLS:
            updated = updated.replace(call, "RecordTest(")
        if updated != text:
            path.write_text(updated, encoding="utf-8")
            modified += 1
    if modified:
        logger.info("Normalized RecordTest calls in %d file(s)", modified)
    return modified
