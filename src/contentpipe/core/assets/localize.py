"""Download legacy-origin and CDN assets into the content tree and repoint references at them"""

import logging
import re
from pathlib import Path
from urllib.parse import urlsplit

from contentpipe.core.assets.paths import LEGACY_PREFIXES, is_valid_path, is_within, split_query
from contentpipe.core.errors import DownloadError
from contentpipe.core.models import AssetReference
from contentpipe.services.fetch import Fetcher


logger = logging.getLogger(__name__)


def _legacy_patterns(prefix: str) -> list[re.Pattern]:
    p = re.escape(prefix)
    return [
        re.compile(rf"""src=["']?({p}[^"'\s>]+)["'\s>]""", re.IGNORECASE),
        re.compile(rf"""href=["']?({p}[^"'\s>]+)["'\s>]""", re.IGNORECASE),
        re.compile(rf"""url\(["']?({p}[^"')]+)["')]""", re.IGNORECASE),
    ]


LEGACY_PATTERNS = [pattern for prefix in LEGACY_PREFIXES for pattern in _legacy_patterns(prefix)]
CDN_PATTERNS = [
    re.compile(r"""src=["'](//[^"'\s>]+)["'\s>]""", re.IGNORECASE),
    re.compile(r"""href=["'](//[^"'\s>]+)["'\s>]""", re.IGNORECASE),
    re.compile(r"""url\(["']?(//[^"')]+)["')]""", re.IGNORECASE),
]
NESTED_CSS_PATTERNS = [
    re.compile(rf"""url\(\s*["']?({re.escape(prefix)}[^"')\s]+)["']?\s*\)""", re.IGNORECASE)
    for prefix in LEGACY_PREFIXES
]
_CSS_PREFIX_RE = re.compile(r"(?<![\w./-])/(system|images)/")
_CSS_FILE_RE = re.compile(r"\.css$", re.IGNORECASE)


def discover_references(
    html: str,
    content_root: Path,
    public_prefix: str,
    legacy_origin: str,
    ) -> dict[str, AssetReference]:
    """Find legacy and protocol-relative CDN references; unsafe paths are dropped."""
    refs: dict[str, AssetReference] = {}

    for pattern in LEGACY_PATTERNS:
        for original in pattern.findall(html):
            if original in refs:
                continue
            path = split_query(original)
            if not is_valid_path(path, content_root):
                logger.warning("Rejected unsafe asset path: %s", path)
                continue
            refs[original] = AssetReference(
                original=original,
                path=path,
                download_url=legacy_origin.rstrip("/") + original,
                local_path=path.lstrip("/"),
                new_url=public_prefix + path,
            )

    for pattern in CDN_PATTERNS:
        for original in pattern.findall(html):
            if original in refs:
                continue
            parts = urlsplit("https:" + original)
            host, path = parts.hostname, parts.path or "/"
            if not host or path.endswith("/") or ".." in path:
                logger.debug("Skipping CDN reference without a file path: %s", original)
                continue
            local_path = f"cdn/{host}{path}"
            if not is_within(content_root / local_path, content_root):
                logger.warning("Rejected unsafe CDN asset path: %s", original)
                continue
            refs[original] = AssetReference(
                original=original,
                path=path,
                download_url="https:" + original,
                local_path=local_path,
                new_url=f"{public_prefix}/{local_path}",
                kind="cdn",
            )

    logger.debug("Discovered %d asset reference(s)", len(refs))
    return refs


def rewrite_references(html: str, refs: dict[str, AssetReference]) -> str:
    """Swap each reference in its seven quoted/unquoted attribute and url() forms."""
    for original, ref in refs.items():
        new = ref.new_url
        for template in ('src="{}"', "src='{}'", 'href="{}"', "href='{}'", "url({})", 'url("{}")', "url('{}')"):
            html = html.replace(template.format(original), template.format(new))
    return html


def prefix_css_paths(css: str, public_prefix: str) -> str:
    """Blanket repoint of /system/ and /images/ in CSS text to the content prefix."""
    return _CSS_PREFIX_RE.sub(lambda m: f"{public_prefix}/{m.group(1)}/", css)


class AssetLocalizer:
    """Fetches referenced assets into a content root and rewrites HTML to point at them."""

    def __init__(self, fetcher: Fetcher, public_prefix: str, legacy_origin: str):
        self.fetcher = fetcher
        self.public_prefix = public_prefix.rstrip("/")
        self.legacy_origin = legacy_origin

    def _download(self, url: str, dest: Path) -> bool:
        """Fetch url into dest; a DownloadError is logged and reported as False."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            data = self.fetcher.fetch(url)
        except DownloadError as e:
            logger.warning("%s", e)
            return False
        dest.write_bytes(data)
        logger.info("Downloaded %s (%d bytes) -> %s", url, len(data), dest)
        return True

    def localize(self, html: str, content_root: Path | str) -> str:
        """Download every discovered asset and rewrite the ones that landed."""
        root = Path(content_root)
        root.mkdir(parents=True, exist_ok=True)
        refs = discover_references(html, root, self.public_prefix, self.legacy_origin)

        landed: dict[str, AssetReference] = {}
        css_files: list[Path] = []
        for original, ref in refs.items():
            dest = root / ref.local_path
            if not self._download(ref.download_url, dest):
                continue
            landed[original] = ref
            if _CSS_FILE_RE.search(ref.local_path):
                css_files.append(dest)

        html = rewrite_references(html, landed)
        for css_file in css_files:
            self.localize_css(css_file, root)

        logger.info("Localized %d of %d asset reference(s)", len(landed), len(refs))
        return html

    def localize_css(self, css_file: Path, content_root: Path) -> None:
        """Fetch /system/ and /images/ assets a stylesheet references, then repoint its paths."""
        css = css_file.read_text(encoding="utf-8", errors="replace")

        nested: dict[str, str] = {}
        for pattern in NESTED_CSS_PATTERNS:
            for original in pattern.findall(css):
                path = split_query(original)
                if path not in nested and is_valid_path(path, content_root):
                    nested[path] = self.legacy_origin.rstrip("/") + path

        for path, url in nested.items():
            dest = content_root / path.lstrip("/")
            if dest.exists():
                logger.debug("Nested CSS asset already present: %s", dest)
                continue
            self._download(url, dest)

        updated = prefix_css_paths(css, self.public_prefix)
        if updated != css:
            css_file.write_text(updated, encoding="utf-8")
            logger.info("Repointed asset paths in %s", css_file)
