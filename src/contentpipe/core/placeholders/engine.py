"""Two-pass placeholder policy: classify every placeholder span, then strip/replace all or nothing"""

import html as html_lib
import logging
import re
from dataclasses import dataclass
from typing import Optional

from contentpipe.core.errors import ValidationError
from contentpipe.core.models import (
    PlaceholderCategory,
    PlaceholderPolicy,
    PlaceholderResult,
    ProcessedPlaceholders,
)
from contentpipe.core.placeholders.rules import RuleTable, fold, get_table


logger = logging.getLogger(__name__)

_SPAN_RES = (
    re.compile(
        r"""<span[^>]*class=["'][^"']*placeholder[^"']*["'][^>]*data-basename=["']([^"']+)["'][^>]*>.*?</span>""",
        re.IGNORECASE | re.DOTALL,
    ),
    re.compile(
        r"""<span[^>]*data-basename=["']([^"']+)["'][^>]*class=["'][^"']*placeholder[^"']*["'][^>]*>.*?</span>""",
        re.IGNORECASE | re.DOTALL,
    ),
)
_TAG_RE = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)\b[^>]*?(/?)>")

VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})
# Never removed as a strip parent; the span alone goes instead.
ROOT_TAGS = frozenset({"html", "head", "body"})

ERROR_PREFIXES = {
    PlaceholderPolicy.email: "Email contains unsupported placeholders that require recipient data: ",
    PlaceholderPolicy.education: "Education content contains unsupported placeholders: ",
    PlaceholderPolicy.landing: "Landing page contains unsupported placeholders: ",
}


@dataclass(frozen=True)
class PlaceholderSpan:
    start:    int
    end:      int
    basename: str   # folded


def find_placeholders(html: str) -> list[PlaceholderSpan]:
    """All placeholder spans in document order, whichever attribute order they use."""
    found: dict[int, PlaceholderSpan] = {}
    for pattern in _SPAN_RES:
        for m in pattern.finditer(html):
            found.setdefault(m.start(), PlaceholderSpan(m.start(), m.end(), fold(m.group(1))))
    return [found[k] for k in sorted(found)]


def _enclosing_element(html: str, span: PlaceholderSpan) -> tuple[int, int] | None:
    """(start, end) of the innermost element wrapping span, or None if there is no safe one."""
    stack: list[tuple[str, int]] = []
    for m in _TAG_RE.finditer(html, 0, span.start):
        closing, name, self_closing = m.group(1), m.group(2).lower(), m.group(3)
        if closing:
            for i in range(len(stack) - 1, -1, -1):
                if stack[i][0] == name:
                    del stack[i:]
                    break
        elif not self_closing and name not in VOID_TAGS:
            stack.append((name, m.start()))
    if not stack:
        return None
    name, start = stack[-1]
    if name in ROOT_TAGS:
        return None

    depth = 0
    for m in _TAG_RE.finditer(html, span.end):
        if m.group(2).lower() != name or m.group(3):
            continue
        if not m.group(1):
            depth += 1
        elif depth:
            depth -= 1
        else:
            return start, m.end()
    return None


def _strip(html: str, span: PlaceholderSpan) -> str:
    bounds = _enclosing_element(html, span)
    if bounds is None:
        logger.debug("No enclosing element for %s; removing span only", span.basename)
        bounds = (span.start, span.end)
    return html[:bounds[0]] + html[bounds[1]:]


def _scan(html: str, table: RuleTable) -> tuple[dict[str, PlaceholderCategory], list[str]]:
    """Classify each distinct basename; returns (categories, rejected in first-seen order)."""
    seen: dict[str, PlaceholderCategory] = {}
    for span in find_placeholders(html):
        seen.setdefault(span.basename, table.classify(span.basename))
    rejected = [name for name, cat in seen.items() if cat == PlaceholderCategory.reject]
    return seen, rejected


def process_placeholders(
    html: str,
    policy: PlaceholderPolicy | str,
    context: Optional[dict[str, Optional[str]]] = None,
    rules_file: Optional[str] = None,
    ) -> PlaceholderResult:
    """Apply the policy's rule table to html; any rejected basename leaves html untouched."""
    policy = PlaceholderPolicy(policy)
    table = get_table(policy, rules_file)
    context = context or {}

    seen, rejected = _scan(html, table)
    if rejected:
        error = ERROR_PREFIXES[policy] + ", ".join(rejected)
        logger.warning("%s placeholder check failed: %s", policy.value, ", ".join(rejected))
        return PlaceholderResult(success=False, html=html, rejected=rejected, error=error)

    processed = ProcessedPlaceholders(
        ignored=[name for name, cat in seen.items() if cat == PlaceholderCategory.ignore],
    )
    actionable = {PlaceholderCategory.strip, PlaceholderCategory.replace}
    while True:
        span = next((s for s in find_placeholders(html) if seen.get(s.basename) in actionable), None)
        if span is None:
            break
        if seen[span.basename] == PlaceholderCategory.strip:
            html = _strip(html, span)
            bucket = processed.stripped
        else:
            value = context.get(table.replace_keys.get(span.basename, ""))
            if value:
                html = html[:span.start] + html_lib.escape(value) + html[span.end:]
                bucket = processed.replaced
            else:
                html = html[:span.start] + html[span.end:]
                bucket = processed.stripped
        if span.basename not in bucket:
            bucket.append(span.basename)

    logger.info(
        "%s placeholders: %d ignored, %d stripped, %d replaced",
        policy.value, len(processed.ignored), len(processed.stripped), len(processed.replaced),
    )
    return PlaceholderResult(success=True, html=html, processed=processed)


def require_placeholders(
    html: str,
    policy: PlaceholderPolicy | str,
    context: Optional[dict[str, Optional[str]]] = None,
    rules_file: Optional[str] = None,
    ) -> str:
    """Like process_placeholders but raise ValidationError listing rejected basenames."""
    result = process_placeholders(html, policy, context, rules_file)
    if not result.success:
        raise ValidationError(result.error, items=result.rejected)
    return result.html
