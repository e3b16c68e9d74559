"""Unit tests for core/assets/absolutize.py"""

from contentpipe.core.assets.absolutize import convert_relative_urls_to_absolute, is_relative_url


BASE = "https://cdn.test/content/abc"


def test_is_relative_url():
    """Only document-relative references count as relative."""
    assert is_relative_url("img/a.png")
    assert is_relative_url("./a.css")
    for url in ("", "https://x.test/a", "//x.test/a", "/root.png", "#top", "data:image/png;base64,AA",
                "javascript:void(0)", "mailto:a@b.test", "tel:123", "{{asset}}", "%7Bx%7D"):
        assert not is_relative_url(url), url


def test_convert_src_and_background():
    """Relative src and background values gain the base URL."""
    html = '<img src="img/a.png"><td background="bg.gif"></td>'
    out = convert_relative_urls_to_absolute(html, BASE)
    assert f'src="{BASE}/img/a.png"' in out
    assert f'background="{BASE}/bg.gif"' in out


def test_convert_href_skips_anchors():
    """Anchor hrefs are left alone; stylesheet hrefs are converted."""
    html = '<a href="page2.html">next</a><link rel="stylesheet" href="css/site.css">'
    out = convert_relative_urls_to_absolute(html, BASE + "/")
    assert '<a href="page2.html">' in out
    assert f'href="{BASE}/css/site.css"' in out


def test_convert_css_urls():
    """url() values keep their quoting."""
    html = "<style>.a{background:url('img/x.png')} .b{background:url(/abs.png)}</style>"
    out = convert_relative_urls_to_absolute(html, BASE)
    assert f"url('{BASE}/img/x.png')" in out
    assert "url(/abs.png)" in out


def test_convert_leaves_absolute_untouched():
    """Already absolute references are unchanged."""
    html = '<img src="https://x.test/a.png"><script src="//cdn.test/j.js"></script>'
    assert convert_relative_urls_to_absolute(html, BASE) == html
