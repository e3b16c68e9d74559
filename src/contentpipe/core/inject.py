"""Delivery injection: <base href> for relocated content and the tracking script"""

import re


TRACKING_ID_VARIABLE = "{{tracking_id}}"

_HEAD_OPEN_RE = re.compile(r"<head>", re.IGNORECASE)
_HEAD_CLOSE_RE = re.compile(r"</head>", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body>", re.IGNORECASE)


def inject_base_tag(html: str, base_href: str) -> str:
    """Insert <base href> right after <head>, else before </head>; otherwise leave html alone."""
    tag = f'<base href="{base_href}">'
    if _HEAD_OPEN_RE.search(html):
        return _HEAD_OPEN_RE.sub(lambda m: f"{m.group(0)}\n{tag}", html, count=1)
    if _HEAD_CLOSE_RE.search(html):
        return _HEAD_CLOSE_RE.sub(lambda m: f"{tag}\n{m.group(0)}", html, count=1)
    return html


def tracking_script(base_path: str, url_parsing: bool) -> str:
    """Tracker markup; url_parsing reads the tracking id from the query string instead of a meta tag."""
    api_base = f"{base_path}/api"
    script_url = f"{base_path}/js/ocms-tracker.js"
    if url_parsing:
        return f'<script src="{script_url}" data-api-base="{api_base}"></script>'
    return (
        f'<meta name="ocms-tracking-id" content="{TRACKING_ID_VARIABLE}">\n'
        f'<meta name="ocms-api-base" content="{api_base}">\n'
        f'<script src="{script_url}"></script>'
    )


def inject_tracking(html: str, snippet: str) -> str:
    """Put snippet before each </body>, or append it when there is none."""
    if _BODY_CLOSE_RE.search(html):
        return _BODY_CLOSE_RE.sub(lambda m: f"{snippet}\n{m.group(0)}", html)
    return f"{html}\n{snippet}"
