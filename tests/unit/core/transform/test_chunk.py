"""Unit tests for core/transform/chunk.py"""

import pytest

from contentpipe.core.models import HtmlChunk
from contentpipe.core.transform.chunk import join_chunks, split_html


def test_split_small_document_single_chunk():
    """A document within max_size is a single chunk."""
    chunks = split_html("<p>hi</p>", 100)
    assert chunks == [HtmlChunk(position=0, start=0, content="<p>hi</p>")]


def test_split_cuts_after_block_close():
    """Cuts land after a closing block tag and every chunk fits."""
    html = "".join(f"<div>item {i}</div>" for i in range(20))
    chunks = split_html(html, 50)
    assert len(chunks) > 1
    assert all(len(c.content) <= 50 for c in chunks)
    assert all(c.content.endswith("</div>") for c in chunks)
    assert join_chunks(chunks) == html


def test_split_prefers_block_over_inline_close():
    """An inline close after the last block close does not move the cut."""
    html = "<p>one</p><b>two</b>" + "x" * 40
    chunks = split_html(html, 25)
    assert chunks[0].content == "<p>one</p>"


def test_split_falls_back_to_any_close_tag():
    """Without block closes the cut lands after any closing tag."""
    html = "<b>bold</b>" + "y" * 30
    chunks = split_html(html, 20)
    assert chunks[0].content == "<b>bold</b>"
    assert join_chunks(chunks) == html


def test_split_raw_window_without_tags():
    """Plain text is cut at the raw window size."""
    html = "z" * 25
    chunks = split_html(html, 10)
    assert [len(c.content) for c in chunks] == [10, 10, 5]


def test_split_positions_and_offsets():
    """Positions count up and start offsets are contiguous."""
    html = "".join(f"<li>{i}</li>" for i in range(30))
    chunks = split_html(html, 40)
    assert [c.position for c in chunks] == list(range(len(chunks)))
    for prev, nxt in zip(chunks, chunks[1:]):
        assert prev.end == nxt.start


def test_split_rejects_bad_size():
    """max_size below 1 is an error."""
    with pytest.raises(ValueError):
        split_html("<p>x</p>", 0)


def test_join_chunks_accepts_strings():
    """join_chunks concatenates rewritten strings in order."""
    assert join_chunks(["<p>a</p>", "<p>b</p>"]) == "<p>a</p><p>b</p>"


CHUNK_SAMPLE = (
    "<div><p>First paragraph</p><p>Second <b>bold</b> text</p></div>"
    "<ul><li>one</li><li>two</li></ul>plain tail without tags"
)


@pytest.mark.parametrize("max_size", range(1, len(CHUNK_SAMPLE) + 2))
def test_split_invariants_for_every_size(max_size):
    """Any max_size gives non-empty, bounded, contiguous chunks that join back to the input."""
    chunks = split_html(CHUNK_SAMPLE, max_size)
    assert join_chunks(chunks) == CHUNK_SAMPLE
    assert [c.position for c in chunks] == list(range(len(chunks)))
    offset = 0
    for c in chunks:
        assert 0 < len(c.content) <= max_size
        assert c.start == offset
        offset += len(c.content)
    assert offset == len(CHUNK_SAMPLE)
