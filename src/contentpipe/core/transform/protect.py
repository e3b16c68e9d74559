"""Swap <script> elements and <link> tags for comment tokens around an external rewrite"""

import logging
import re

from contentpipe.core.models import TokenMap


logger = logging.getLogger(__name__)

BLOCK_PREFIX = "__PROTECTED_BLOCK_"

_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_LINK_RE = re.compile(r"<link\b[^>]*?>", re.IGNORECASE)


def protect(html: str) -> tuple[str, TokenMap]:
    """Replace every script element, then every link tag, with `<!-- __PROTECTED_BLOCK_NNNN__ -->`."""
    blocks: TokenMap = {}

    def _stash(m: re.Match) -> str:
        token = f"<!-- {BLOCK_PREFIX}{len(blocks):04d}__ -->"
        blocks[token] = m.group(0)
        return token

    # Scripts first: a <link> spelled inside a script body is already hidden by then.
    protected = _SCRIPT_RE.sub(_stash, html)
    protected = _LINK_RE.sub(_stash, protected)
    logger.debug("Protected %d block(s)", len(blocks))
    return protected, blocks


def restore(html: str, blocks: TokenMap) -> str:
    """Put protected markup back; tokens lost by the rewriter stay missing and are logged."""
    missing = [token for token in blocks if token not in html]
    if missing:
        logger.warning(
            "%d of %d protected block(s) missing from rewritten content: %s",
            len(missing), len(blocks), ", ".join(missing),
        )
    for token, original in blocks.items():
        html = html.replace(token, original)
    return html
