"""Boundary-aware text chunker for speech synthesis requests.

Speech vendors cap the number of characters per request (observed limits
are 280-300). This module splits a narration script into pieces that fit the
cap while preferring natural pause points, so that the synthesized chunks
sound like complete sentences or clauses.

Break-point priority inside each window of ``max_chars`` characters:

1. the last sentence terminator (``". "``, ``"! "``, ``"? "``) located past
   half of the window, cutting right after the punctuation mark;
2. otherwise the last comma followed by a space, under the same rule;
3. otherwise the last plain space;
4. otherwise a hard cut at ``max_chars``. A single token longer than the
   window is therefore split mid-token. No characters are dropped.

Every chunk and the remainder are stripped of surrounding whitespace, so
joining the chunks with single spaces reproduces a space-normalised
version of the input.
"""

from __future__ import annotations

from reelsync.utils.constant import TTS_MAX_CHARS

__all__ = [
    "SENTENCE_TERMINATORS",
    "chunk_text",
]

SENTENCE_TERMINATORS: tuple[str, ...] = (". ", "! ", "? ")
CLAUSE_SEPARATOR: str = ", "


def _find_break_point(window: str, max_chars: int) -> int:
    """Return the index at which ``window`` should be cut.

    Args:
        window: The first ``max_chars`` characters of the remaining text.
        max_chars: Chunk length limit.

    Returns:
        Exclusive end index of the next chunk, in ``[1, max_chars]``.
    """
    half = max_chars / 2

    sentence_end = max(window.rfind(term) for term in SENTENCE_TERMINATORS)
    if sentence_end > half:
        return sentence_end + 1

    comma = window.rfind(CLAUSE_SEPARATOR)
    if comma > half:
        return comma + 1

    space = window.rfind(" ")
    if space > 0:
        return space

    return max_chars


def chunk_text(text: str, max_chars: int = TTS_MAX_CHARS) -> list[str]:
    """Split ``text`` into ordered chunks of at most ``max_chars`` characters.

    Args:
        text: Narration script.
        max_chars: Vendor character limit per synthesis request.

    Returns:
        Ordered chunks. Text that already fits is returned unchanged as a
        single-element list, including the empty string.

    Raises:
        TypeError: If ``text`` is not a string.
        ValueError: If ``max_chars`` is smaller than 1.

    Examples:
        >>> chunk_text("Short enough.")
        ['Short enough.']
        >>> chunk_text("aaaa bbbb", max_chars=5)
        ['aaaa', 'bbbb']
    """
    if not isinstance(text, str):
        raise TypeError(f"text must be str, got {type(text).__name__}")
    if max_chars < 1:
        raise ValueError("max_chars must be >= 1")

    if len(text) <= max_chars:
        return [text]

    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_chars:
            piece = remaining.strip()
            if piece:
                chunks.append(piece)
            break

        cut = _find_break_point(remaining[:max_chars], max_chars)
        piece = remaining[:cut].strip()
        if piece:
            chunks.append(piece)
        remaining = remaining[cut:].strip()

    return chunks
