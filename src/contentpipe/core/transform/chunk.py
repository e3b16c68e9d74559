"""Split oversized HTML after closing tags so each piece fits the rewriter's input limit"""

import logging
import re

from contentpipe.core.models import HtmlChunk


logger = logging.getLogger(__name__)

BLOCK_TAGS = (
    "div", "section", "form", "article", "main", "p", "li", "ul", "ol",
    "table", "tr", "td", "th", "header", "footer", "nav", "aside",
)
_BLOCK_CLOSE_RE = re.compile(rf"</({'|'.join(BLOCK_TAGS)})>", re.IGNORECASE)
_ANY_CLOSE_RE = re.compile(r"</[^>]+>")


def _last_end(pattern: re.Pattern, text: str) -> int | None:
    """End offset of the last match of pattern in text, or None."""
    last = None
    for last in pattern.finditer(text):
        pass
    return last.end() if last else None


def split_html(html: str, max_size: int) -> list[HtmlChunk]:
    """Cut html into ordered chunks of at most max_size chars; joining them gives html back."""
    if max_size < 1:
        raise ValueError(f"max_size must be >= 1, got {max_size}")
    if len(html) <= max_size:
        return [HtmlChunk(position=0, start=0, content=html)]

    chunks: list[HtmlChunk] = []
    offset = 0
    while offset < len(html):
        window = html[offset:offset + max_size]
        if offset + len(window) < len(html):
            cut = _last_end(_BLOCK_CLOSE_RE, window) or _last_end(_ANY_CLOSE_RE, window)
            if cut:
                window = window[:cut]
        chunks.append(HtmlChunk(position=len(chunks), start=offset, content=window))
        offset += len(window)

    logger.info("Split %d chars into %d chunk(s) of <= %d", len(html), len(chunks), max_size)
    return chunks


def join_chunks(chunks: list[HtmlChunk] | list[str]) -> str:
    """Concatenate chunks (or rewritten chunk strings) in order."""
    return "".join(c.content if isinstance(c, HtmlChunk) else c for c in chunks)
