"""Formatter for JSON (.json) caption output."""

from collections.abc import Sequence

from pydantic import TypeAdapter

from reelsync.timestamps.models import Phrase

_PHRASES = TypeAdapter(list[Phrase])


def to_json(phrases: Sequence[Phrase], **_: object) -> str:
    """Serialize caption phrases, words included, as indented JSON."""
    return _PHRASES.dump_json(list(phrases), indent=2).decode("utf-8")
