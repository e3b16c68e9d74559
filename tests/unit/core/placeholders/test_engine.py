"""Unit tests for core/placeholders/engine.py"""

import pytest

from contentpipe.core.errors import ValidationError
from contentpipe.core.models import PlaceholderPolicy
from contentpipe.core.placeholders.engine import (
    ERROR_PREFIXES, find_placeholders, process_placeholders, require_placeholders,
)


# --- helpers ---

def _ph(basename: str, text: str = "x", reverse: bool = False) -> str:
    """Placeholder span markup, class first unless reverse."""
    if reverse:
        return f'<span data-basename="{basename}" class="placeholder">{text}</span>'
    return f'<span class="placeholder" data-basename="{basename}">{text}</span>'


# --- find_placeholders ---

def test_find_placeholders_both_attribute_orders():
    """Spans are found whichever attribute comes first, in document order."""
    html = f"<p>{_ph('COMPANY_NAME')}</p><p>{_ph('current_year', reverse=True)}</p>"
    spans = find_placeholders(html)
    assert [s.basename for s in spans] == ["COMPANY_NAME", "CURRENT_YEAR"]
    assert spans[0].start < spans[1].start


def test_find_placeholders_ignores_other_spans():
    """Spans without the placeholder class are not placeholders."""
    html = '<span class="note" data-basename="NAME">n</span>'
    assert find_placeholders(html) == []


# --- process_placeholders ---

def test_reject_leaves_html_untouched():
    """Any rejected basename fails the pass with the policy's message."""
    html = f"<p>Hi {_ph('FIRST_NAME')}</p><div>{_ph('COMPANY_NAME')}</div>"
    result = process_placeholders(html, PlaceholderPolicy.email)
    assert not result.success
    assert result.html == html
    assert result.rejected == ["FIRST_NAME"]
    assert result.error == ERROR_PREFIXES[PlaceholderPolicy.email] + "FIRST_NAME"


def test_unknown_basename_rejected_for_landing():
    """Unlisted basenames are rejected."""
    result = process_placeholders(f"<p>{_ph('MYSTERY')}</p>", "landing")
    assert not result.success
    assert result.error.startswith("Landing page contains unsupported placeholders: ")


def test_strip_removes_enclosing_element():
    """A strip placeholder takes its innermost enclosing element with it."""
    html = f"<div><p>Keep</p><p>From {_ph('COMPANY_NAME')} team</p></div>"
    result = process_placeholders(html, PlaceholderPolicy.education)
    assert result.success
    assert result.html == "<div><p>Keep</p></div>"
    assert result.processed.stripped == ["COMPANY_NAME"]


def test_strip_skips_void_elements():
    """Void elements before the span are not treated as its parent."""
    html = f"<td>Line<br>{_ph('COMPANY_NAME')}</td><td>next</td>"
    result = process_placeholders(html, PlaceholderPolicy.landing)
    assert result.html == "<td>next</td>"


def test_strip_under_body_removes_span_only():
    """A span directly under body is removed on its own."""
    html = f"<html><body>Hello {_ph('COMPANY_NAME')} world</body></html>"
    result = process_placeholders(html, PlaceholderPolicy.landing)
    assert result.html == "<html><body>Hello  world</body></html>"


def test_strip_nested_same_tag():
    """Nested elements of the same name close at the right depth."""
    html = f"<div>outer<div>{_ph('COMPANY_NAME')}<div>inner</div></div>after</div>"
    result = process_placeholders(html, PlaceholderPolicy.education)
    assert result.html == "<div>outerafter</div>"


def test_ignore_left_in_place():
    """Ignored placeholders remain and are reported."""
    html = f"<p>{_ph('CURRENT_YEAR')}</p>"
    result = process_placeholders(html, PlaceholderPolicy.email)
    assert result.success
    assert result.html == html
    assert result.processed.ignored == ["CURRENT_YEAR"]


def test_replace_with_escaped_context_value():
    """FROM_FRIENDLY_NAME is replaced by the HTML-escaped sender name."""
    html = f"<p>From: {_ph('FROM_FRIENDLY_NAME')}</p>"
    result = process_placeholders(html, PlaceholderPolicy.email, {"from_name": "IT & Security"})
    assert result.html == "<p>From: IT &amp; Security</p>"
    assert result.processed.replaced == ["FROM_FRIENDLY_NAME"]


def test_replace_without_value_strips_span():
    """An empty or missing replacement removes just the span."""
    html = f"<p>From: {_ph('FROM_FRIENDLY_NAME')}</p>"
    result = process_placeholders(html, PlaceholderPolicy.email, {"from_name": ""})
    assert result.html == "<p>From: </p>"
    assert result.processed.stripped == ["FROM_FRIENDLY_NAME"]


def test_repeated_placeholders_all_processed():
    """Every occurrence is handled; names are reported once."""
    html = f"<p>{_ph('FROM_FRIENDLY_NAME')}</p><p>{_ph('from_friendly_name')}</p>"
    result = process_placeholders(html, PlaceholderPolicy.email, {"from_name": "Ann"})
    assert result.html == "<p>Ann</p><p>Ann</p>"
    assert result.processed.replaced == ["FROM_FRIENDLY_NAME"]


def test_no_placeholders_is_success():
    """HTML without placeholders passes unchanged."""
    result = process_placeholders("<p>plain</p>", PlaceholderPolicy.education)
    assert result.success
    assert result.html == "<p>plain</p>"


# --- require_placeholders ---

def test_require_placeholders_raises_with_items():
    """require_placeholders raises ValidationError listing rejected names."""
    html = f"{_ph('NAME')}{_ph('RECIPIENT_NAME')}"
    with pytest.raises(ValidationError) as exc:
        require_placeholders(html, PlaceholderPolicy.education)
    assert exc.value.items == ["NAME", "RECIPIENT_NAME"]
    assert "NAME, RECIPIENT_NAME" in str(exc.value)


def test_require_placeholders_returns_html():
    """On success the processed HTML is returned."""
    assert require_placeholders(f"<p>{_ph('COMPANY_NAME')}</p><p>ok</p>", "landing") == "<p>ok</p>"
