"""Path safety checks for asset references that are written under a content root"""

import logging
import re
from pathlib import Path


logger = logging.getLogger(__name__)

LEGACY_PREFIXES = ("/system/", "/images/")
_SAFE_PATH_RE = re.compile(r"^/(system|images)/[a-zA-Z0-9/_.\-\s%()]+$")


def split_query(reference: str) -> str:
    """Drop any query string or fragment from a reference."""
    return re.split(r"[?#]", reference, maxsplit=1)[0]


def is_within(path: Path, root: Path) -> bool:
    """True if path is inside root once symlinks and .. segments are resolved; neither has to exist."""
    return path.resolve().is_relative_to(root.resolve())


def is_valid_path(path: str, content_root: Path | str) -> bool:
    """Layered check that a legacy /system/ or /images/ path stays inside content_root."""
    if not path.startswith(LEGACY_PREFIXES):
        return False
    if ".." in path:
        return False
    root = Path(content_root)
    if not is_within(root / path.lstrip("/"), root):
        logger.warning("Asset path escapes content root: %s", path)
        return False
    return bool(_SAFE_PATH_RE.match(path))
