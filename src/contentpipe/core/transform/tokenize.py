"""Swap URL-bearing attribute values and CSS url() references for opaque tokens"""

import logging
import re

from contentpipe.core.models import TokenMap


logger = logging.getLogger(__name__)

ASSET_PREFIX = "__ASSET_REF_"

URL_ATTRIBUTES = ("src", "href", "srcset", "poster", "data-src", "data-href", "action", "background")
_PASSTHROUGH_SCHEMES = ("data:", "javascript:", "mailto:")

_ATTR_RES = [
    re.compile(rf"""\s{re.escape(attr)}\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
    for attr in URL_ATTRIBUTES
]
_STYLE_ATTR_RE = re.compile(r"""\sstyle\s*=\s*["']([^"']*url\([^)]+\)[^"']*)["']""", re.IGNORECASE)
_STYLE_BLOCK_RE = re.compile(r"<style[^>]*>(.*?)</style>", re.IGNORECASE | re.DOTALL)
_CSS_URL_RE = re.compile(r"""url\(\s*["']?([^"')]+)["']?\s*\)""", re.IGNORECASE)


class _Tokens:
    """Shared counter and map for one tokenize pass."""

    def __init__(self):
        self.refs: TokenMap = {}

    def take(self, value: str) -> str:
        token = f"{ASSET_PREFIX}{len(self.refs):04d}__"
        self.refs[token] = value
        return token


def _replace_group(m: re.Match, replacement: str) -> str:
    """Rebuild the full match with only group 1 swapped out."""
    text = m.group(0)
    start, end = m.start(1) - m.start(0), m.end(1) - m.start(0)
    return text[:start] + replacement + text[end:]


def _tokenize_css(css: str, tokens: _Tokens) -> str:
    """Tokenize url() references inside a CSS fragment."""
    def _sub(m: re.Match) -> str:
        value = m.group(1)
        if value.startswith(ASSET_PREFIX) or value.lower().startswith("data:"):
            return m.group(0)
        return _replace_group(m, tokens.take(value))
    return _CSS_URL_RE.sub(_sub, css)


def tokenize(html: str) -> tuple[str, TokenMap]:
    """Replace URL values with `__ASSET_REF_NNNN__` tokens; returns (html, token -> value)."""
    tokens = _Tokens()

    def _attr(m: re.Match) -> str:
        value = m.group(1)
        if value.startswith(ASSET_PREFIX) or value.lower().startswith(_PASSTHROUGH_SCHEMES):
            return m.group(0)
        return _replace_group(m, tokens.take(value))

    for pattern in _ATTR_RES:
        html = pattern.sub(_attr, html)

    html = _STYLE_ATTR_RE.sub(lambda m: _replace_group(m, _tokenize_css(m.group(1), tokens)), html)
    html = _STYLE_BLOCK_RE.sub(lambda m: _replace_group(m, _tokenize_css(m.group(1), tokens)), html)

    logger.debug("Tokenized %d reference(s)", len(tokens.refs))
    return html, tokens.refs


def detokenize(html: str, refs: TokenMap) -> str:
    """Literal substitution of every token back to its original value."""
    missing = [token for token in refs if token not in html]
    if missing:
        logger.warning("%d of %d reference token(s) missing from rewritten content", len(missing), len(refs))
    for token, value in refs.items():
        html = html.replace(token, value)
    return html
