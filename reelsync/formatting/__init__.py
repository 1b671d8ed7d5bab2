"""Registry of caption export formats.

Allows easy extension with new formats by adding a formatter function and
registering it in the ``FORMATTERS`` dictionary. Every formatter takes the
ordered caption phrases plus keyword options and returns the file content.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from reelsync.timestamps.models import Phrase

from ._ass import to_ass
from ._json import to_json
from ._srt import to_srt
from ._vtt import to_vtt

Formatter = Callable[..., str]


@dataclass
class FormatterSpec:
    """Metadata and function for a specific caption format.

    Attributes:
        format_func: Converts a sequence of phrases to file content.
        file_extension: The file extension for this format (including the dot).
        supports_styling: Whether the format carries fonts, colours and
            animation (and can therefore be burned into video as-is).

    """

    format_func: Formatter
    file_extension: str
    supports_styling: bool = False


# A registry mapping format names to their respective formatter specifications.
FORMATTERS: dict[str, FormatterSpec] = {
    "srt": FormatterSpec(format_func=to_srt, file_extension=".srt"),
    "vtt": FormatterSpec(format_func=to_vtt, file_extension=".vtt"),
    "ass": FormatterSpec(format_func=to_ass, file_extension=".ass", supports_styling=True),
    "json": FormatterSpec(format_func=to_json, file_extension=".json"),
}


def get_formatter_spec(format_name: str) -> FormatterSpec:
    """Retrieve the FormatterSpec registered for ``format_name``.

    Args:
        format_name: Case-insensitive format identifier (e.g. ``"srt"``).

    Returns:
        The metadata and formatter function for the requested format.

    Raises:
        ValueError: If the format is not supported.
    """
    spec = FORMATTERS.get(format_name.lower())
    if not spec:
        supported = list(FORMATTERS.keys())
        raise ValueError(f"Unsupported format: '{format_name}'. Supported formats are: {supported}")
    return spec


def get_formatter(format_name: str) -> Formatter:
    """Get the formatter function registered for the given format name.

    Raises:
        ValueError: If ``format_name`` is not supported.
    """
    return get_formatter_spec(format_name).format_func


def format_phrases(phrases: Sequence[Phrase], format_name: str, **options: object) -> str:
    """Render ``phrases`` in ``format_name`` with formatter-specific options."""
    return get_formatter(format_name)(phrases, **options)


__all__ = [
    "FORMATTERS",
    "FormatterSpec",
    "format_phrases",
    "get_formatter",
    "get_formatter_spec",
]
