"""Unit tests for core/assets/paths.py"""

from contentpipe.core.assets.paths import is_valid_path, is_within, split_query


def test_split_query_drops_query_and_fragment():
    """Query strings and fragments are removed."""
    assert split_query("/system/a.css?v=2") == "/system/a.css"
    assert split_query("/images/b.png#top") == "/images/b.png"
    assert split_query("/images/c.png") == "/images/c.png"


def test_is_valid_path_accepts_legacy_paths(tmp_path):
    """Plain /system/ and /images/ paths under the root are accepted."""
    assert is_valid_path("/system/logo.png", tmp_path)
    assert is_valid_path("/images/Hero Banner (1).jpg", tmp_path)
    assert is_valid_path("/images/a%20b.png", tmp_path)


def test_is_valid_path_rejects_other_prefixes(tmp_path):
    """Only the legacy prefixes qualify."""
    assert not is_valid_path("/static/logo.png", tmp_path)
    assert not is_valid_path("system/logo.png", tmp_path)


def test_is_valid_path_rejects_traversal(tmp_path):
    """Any '..' segment is rejected."""
    assert not is_valid_path("/images/../../etc/passwd", tmp_path)


def test_is_valid_path_rejects_odd_characters(tmp_path):
    """Characters outside the safe set are rejected."""
    assert not is_valid_path("/images/a<b>.png", tmp_path)
    assert not is_valid_path("/system/x;rm.png", tmp_path)


def test_is_valid_path_rejects_symlink_escape(tmp_path):
    """A symlinked directory pointing outside the root is caught."""
    root = tmp_path / "root"
    outside = tmp_path / "outside"
    root.mkdir()
    outside.mkdir()
    (root / "images").symlink_to(outside, target_is_directory=True)
    assert not is_valid_path("/images/evil.png", root)


def test_is_within(tmp_path):
    """Paths under the root are within it; siblings are not."""
    assert is_within(tmp_path / "a" / "b.png", tmp_path)
    assert not is_within(tmp_path.parent / "elsewhere", tmp_path)


def test_is_valid_path_with_missing_root(tmp_path):
    """A content root that does not exist yet still accepts legacy paths."""
    root = tmp_path / "content" / "new-id"
    assert is_valid_path("/system/assets/logo.png", root)
    assert not root.exists()


def test_is_within_normalizes_dotdot_without_existing_paths(tmp_path):
    """'..' segments are resolved even when nothing on the path exists."""
    root = tmp_path / "missing"
    assert is_within(root / "a" / ".." / "b.png", root)
    assert not is_within(root / ".." / "escaped", root)
