"""Unpack uploaded archives entry by entry and locate the entry document"""

import logging
import re
import zipfile
from pathlib import Path

from contentpipe.core.assets.paths import is_within
from contentpipe.core.errors import ExtractionError


logger = logging.getLogger(__name__)

ENTRY_NAMES = (
    "index.html",
    "index_scorm.html",
    "index_lms.html",
    "launch.html",
    "player.html",
    "scormcontent/index.html",
    "story.html",
    "presentation.html",
)
FALLBACK_ENTRY_NAMES = ("index.html", "index_scorm.html")

_DRIVE_RE = re.compile(r"^[a-zA-Z]:")


def normalize_member_name(name: str) -> str:
    """Archive member name with Windows separators turned into forward slashes."""
    return name.replace("\\", "/")


def _is_unsafe(name: str) -> bool:
    return (
        name.startswith("/")
        or bool(_DRIVE_RE.match(name))
        or "\x00" in name
        or ".." in name.split("/")
    )


def extract_archive(
    archive_path: Path | str,
    dest_dir: Path | str,
    max_files: int = 0,
    max_bytes: int = 0,
    ) -> Path:
    """Extract archive_path into dest_dir and return the entry document path.

    Members are written one at a time so backslash-separated names become real
    directories. Unsafe names are skipped. max_files/max_bytes of 0 disable the
    corresponding limit.
    """
    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    written = 0

    try:
        with zipfile.ZipFile(archive_path) as archive:
            members = archive.infolist()
            if max_files and len(members) > max_files:
                raise ExtractionError(f"Archive has {len(members)} entries, limit is {max_files}")
            total = sum(m.file_size for m in members)
            if max_bytes and total > max_bytes:
                raise ExtractionError(f"Archive expands to {total} bytes, limit is {max_bytes}")

            for member in members:
                name = normalize_member_name(member.filename)
                if name.endswith("/"):
                    continue
                target = dest / name
                if _is_unsafe(name) or not is_within(target.parent, dest):
                    logger.warning("Skipping unsafe archive member: %r", member.filename)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(archive.read(member))
                written += 1
    except zipfile.BadZipFile as e:
        raise ExtractionError(f"Corrupt archive {archive_path}: {e}") from e

    logger.info("Extracted %d file(s) from %s into %s", written, archive_path, dest)
    entry = find_entry_file(dest)
    if entry is None:
        raise ExtractionError("index.html not found in ZIP")
    return entry


def find_entry_file(root: Path | str) -> Path | None:
    """First conventional entry name at the root, else the shallowest index.html/index_scorm.html."""
    root = Path(root)
    for name in ENTRY_NAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate

    wanted = {n.lower() for n in FALLBACK_ENTRY_NAMES}
    matches = [p for p in root.rglob("*") if p.is_file() and p.name.lower() in wanted]
    if not matches:
        return None
    return min(matches, key=lambda p: (len(p.relative_to(root).parts), p.as_posix()))
