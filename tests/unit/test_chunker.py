"""Unit tests for the boundary-aware speech chunker."""

from __future__ import annotations

import pytest

from reelsync.text.chunker import chunk_text


def test_chunk_text_returns_short_text_unchanged() -> None:
    """Text within the limit is returned as a single chunk, untouched."""
    assert chunk_text("Short enough.") == ["Short enough."]
    assert chunk_text("  padded  ", max_chars=20) == ["  padded  "]


def test_chunk_text_empty_string() -> None:
    """The empty string yields one empty chunk."""
    assert chunk_text("") == [""]


def test_chunk_text_prefers_sentence_end_past_half_window() -> None:
    """A sentence terminator in the second half of the window wins."""
    chunks = chunk_text("One two three. Four five six seven eight", max_chars=20)

    assert chunks == ["One two three.", "Four five six seven", "eight"]


def test_chunk_text_ignores_sentence_end_in_first_half() -> None:
    """Terminators before the window midpoint fall through to a space cut."""
    chunks = chunk_text("Hi. there is a long clause here", max_chars=20)

    assert chunks == ["Hi. there is a long", "clause here"]


def test_chunk_text_falls_back_to_comma() -> None:
    """Without a usable terminator the last comma past the midpoint is used."""
    chunks = chunk_text("alpha beta gamma, delta epsilon", max_chars=20)

    assert chunks == ["alpha beta gamma,", "delta epsilon"]


def test_chunk_text_hard_cuts_long_tokens() -> None:
    """A token longer than the window is split mid-token."""
    assert chunk_text("abcdefghij", max_chars=4) == ["abcd", "efgh", "ij"]


def test_chunk_text_respects_limit_and_drops_no_characters() -> None:
    """Every chunk fits and all non-space characters survive in order."""
    text = (
        "Short videos live or die by their first seconds. Viewers decide fast, "
        "so the opening line has to land! Does it? Supercalifragilisticexpialidocious "
        "words, numbers like 1234567890 and commas, all of them, must survive."
    )

    chunks = chunk_text(text, max_chars=30)

    assert all(0 < len(chunk) <= 30 for chunk in chunks)
    assert "".join("".join(chunks).split()) == "".join(text.split())
    assert all(chunk == chunk.strip() for chunk in chunks)


def test_chunk_text_rejects_bad_input() -> None:
    """Non-string text and non-positive limits are rejected."""
    with pytest.raises(TypeError):
        chunk_text(None)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        chunk_text("text", max_chars=0)
