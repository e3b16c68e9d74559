"""Rewrite relative asset URLs to absolute ones for previews rendered outside the content tree"""

import re


_SKIP_PREFIXES = ("http://", "https://", "//", "data:", "#", "/", "javascript:", "mailto:", "tel:")

_SRC_RE = re.compile(r"""(\ssrc\s*=\s*)(["'])([^"']*)\2""", re.IGNORECASE)
_HREF_RE = re.compile(r"""(<(\w+)\b[^>]*?\shref\s*=\s*)(["'])([^"']*)\3""", re.IGNORECASE)
_BACKGROUND_RE = re.compile(r"""(\sbackground\s*=\s*)(["'])([^"']*)\2""", re.IGNORECASE)
_CSS_URL_RE = re.compile(r"""url\(\s*(["']?)([^"')]+)\1\s*\)""", re.IGNORECASE)


def is_relative_url(url: str) -> bool:
    """True for document-relative references; templates, absolute and special schemes are not."""
    url = url.strip()
    if not url:
        return False
    if url.startswith(("{", "%7B", "%7b")) or "{{{" in url or "}}}" in url:
        return False
    return not url.lower().startswith(_SKIP_PREFIXES)


def convert_relative_urls_to_absolute(html: str, base_url: str) -> str:
    """Prefix relative src, href (except on anchors), background and url() values with base_url."""
    base = base_url if base_url.endswith("/") else base_url + "/"

    def _abs(url: str) -> str:
        return base + url.lstrip() if is_relative_url(url) else url

    html = _SRC_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{_abs(m.group(3))}{m.group(2)}", html)
    html = _HREF_RE.sub(
        lambda m: m.group(0) if m.group(2).lower() == "a"
        else f"{m.group(1)}{m.group(3)}{_abs(m.group(4))}{m.group(3)}",
        html,
    )
    html = _BACKGROUND_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{_abs(m.group(3))}{m.group(2)}", html)
    html = _CSS_URL_RE.sub(lambda m: f"url({m.group(1)}{_abs(m.group(2))}{m.group(1)})", html)
    return html
