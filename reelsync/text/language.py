"""Heuristic language and script detection for voice selection.

The detector only has to be good enough to pick a synthesis voice profile,
so it uses two cheap signals:

* Unicode block counts. After stripping digits, whitespace and basic
  punctuation, any non-Latin block holding more than ``threshold`` of the
  remaining characters decides the language.
* Whole-word function-word lists for Latin-script languages, checked in a
  fixed order where the first match wins.

Both the 30% threshold and the word lists are tunables rather than exact
science. Callers depend on the :class:`LanguageClassifier` protocol so a real
language-identification library can replace :class:`ScriptWordListClassifier`
without touching them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from reelsync.utils.constant import LANGUAGE_SCRIPT_THRESHOLD

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_LANGUAGE",
    "LanguageClassifier",
    "ScriptWordListClassifier",
    "VoiceProfile",
    "detect_language",
    "voice_profile_for",
]

DEFAULT_LANGUAGE = "english"

_STRIP_RE = re.compile(r"[\d\s!-/:-@\[-`{-~\u00A1\u00B7\u00BF\u00AB\u00BB\u2010-\u2027]+")

# Evaluated in order. Kana precedes CJK so Japanese text heavy in kanji is
# still recognised as Japanese once kana pass the threshold.
_SCRIPT_BLOCKS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("arabic", re.compile(r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFE]")),
    ("hebrew", re.compile(r"[\u0590-\u05FF\uFB1D-\uFB4F]")),
    ("hindi", re.compile(r"[\u0900-\u097F]")),
    ("japanese", re.compile(r"[\u3040-\u30FF\u31F0-\u31FF\uFF66-\uFF9F]")),
    ("chinese", re.compile(r"[\u4E00-\u9FFF\u3400-\u4DBF\uF900-\uFAFF]")),
    ("korean", re.compile(r"[\uAC00-\uD7AF\u1100-\u11FF\u3130-\u318F]")),
    ("greek", re.compile(r"[\u0370-\u03FF\u1F00-\u1FFF]")),
    ("russian", re.compile(r"[\u0400-\u04FF]")),
)

_LATIN_RE = re.compile(r"[A-Za-z\u00C0-\u024F]")


def _word_pattern(*words: str) -> re.Pattern[str]:
    # Apostrophes bind to the word so contraction tails such as "'ve" never match.
    return re.compile(
        r"(?<![\w'’])(?:" + "|".join(words) + r")(?![\w'’])", re.IGNORECASE
    )


# First match wins, so earlier lists avoid words shared with later languages.
_LATIN_FUNCTION_WORDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    (
        "spanish",
        _word_pattern(
            "el", "los", "las", "del", "pero", "muy", "también", "hola", "gracias",
            "porque", "usted", "ahora", "aquí", "cuando", "estoy", "tengo", "es",
        ),
    ),
    (
        "french",
        _word_pattern(
            "le", "les", "est", "une", "avec", "dans", "nous", "vous", "très", "bonjour",
            "merci", "c'est", "je", "pas", "oui", "mais",
        ),
    ),
    (
        "german",
        _word_pattern(
            "der", "das", "und", "ist", "nicht", "ich", "mit", "eine", "für", "auch",
            "wir", "sehr", "danke", "guten", "ja",
        ),
    ),
    (
        "portuguese",
        _word_pattern(
            "não", "você", "muito", "obrigado", "obrigada", "então", "isso", "são",
            "também", "uma",
        ),
    ),
    (
        "italian",
        _word_pattern(
            "il", "della", "sono", "questo", "molto", "grazie", "perché", "anche",
            "ciao", "gli", "che",
        ),
    ),
    (
        "dutch",
        _word_pattern("het", "een", "niet", "ik", "zijn", "wij", "dank", "goed", "maar", "ook"),
    ),
    (
        "polish",
        _word_pattern("jest", "nie", "się", "czy", "dziękuję", "bardzo", "tak", "dzień", "że"),
    ),
    (
        "turkish",
        _word_pattern("bir", "ve", "bu", "için", "çok", "değil", "teşekkür", "merhaba", "ama"),
    ),
    (
        "swedish",
        _word_pattern("och", "det", "är", "inte", "jag", "tack", "mycket", "hej"),
    ),
    (
        "danish",
        _word_pattern("og", "ikke", "jeg", "til", "tak", "meget", "hvad"),
    ),
    (
        "norwegian",
        _word_pattern("takk", "veldig", "hva", "hvordan", "ikkje"),
    ),
    (
        "finnish",
        _word_pattern("kiitos", "hyvä", "minä", "sinä", "mutta", "että", "olen", "ei"),
    ),
    (
        "malay",
        _word_pattern("yang", "ini", "itu", "tidak", "saya", "dengan", "untuk", "kasih"),
    ),
    (
        "swahili",
        _word_pattern("habari", "asante", "sana", "jambo", "kwa", "wewe", "ninyi"),
    ),
)


@runtime_checkable
class LanguageClassifier(Protocol):
    """Strategy interface for text language identification."""

    def classify(self, text: str) -> str:
        """Return a lowercase language tag such as ``"english"``."""
        ...


class ScriptWordListClassifier:
    """Unicode-block and function-word heuristic classifier.

    Attributes:
        threshold: Minimum share of a non-Latin block among the stripped
            characters for that block to decide the language.
        default: Tag returned when no signal is strong enough.

    Examples:
        >>> ScriptWordListClassifier().classify("Hola, ¿cómo estás? Muy bien, gracias.")
        'spanish'
    """

    def __init__(
        self,
        threshold: float = LANGUAGE_SCRIPT_THRESHOLD,
        default: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.threshold = threshold
        self.default = default

    def script_shares(self, text: str) -> dict[str, float]:
        """Return the share of each non-Latin block plus ``"latin"``.

        Args:
            text: Raw input text.

        Returns:
            Mapping of tag to fraction of stripped characters; empty when
            nothing remains after stripping.
        """
        stripped = _STRIP_RE.sub("", text)
        if not stripped:
            return {}
        total = len(stripped)
        shares = {tag: len(pattern.findall(stripped)) / total for tag, pattern in _SCRIPT_BLOCKS}
        shares["latin"] = len(_LATIN_RE.findall(stripped)) / total
        return shares

    def classify(self, text: str) -> str:
        """Classify ``text`` into a language tag.

        Args:
            text: Raw input text.

        Returns:
            Detected language tag, or ``self.default``.

        Raises:
            TypeError: If ``text`` is not a string.
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be str, got {type(text).__name__}")

        shares = self.script_shares(text)
        if not shares:
            return self.default

        for tag, _pattern in _SCRIPT_BLOCKS:
            if shares[tag] > self.threshold:
                return tag

        for tag, pattern in _LATIN_FUNCTION_WORDS:
            if pattern.search(text):
                return tag

        return self.default


_default_classifier: LanguageClassifier = ScriptWordListClassifier()


def detect_language(text: str, classifier: LanguageClassifier | None = None) -> str:
    """Detect the language of ``text`` for voice selection.

    Args:
        text: Script text.
        classifier: Optional strategy; defaults to the heuristic classifier.

    Returns:
        Lowercase language tag.
    """
    active = classifier if classifier is not None else _default_classifier
    tag = active.classify(text)
    logger.debug("Detected language %s for %d chars", tag, len(text))
    return tag


@dataclass(frozen=True)
class VoiceProfile:
    """Synthesis voice settings for a language.

    Attributes:
        language: Lowercase language tag.
        locale: ISO 639-1 code sent to the synthesis vendor.
        multilingual: Whether the vendor's multilingual model is required.

    """

    language: str
    locale: str
    multilingual: bool


_LOCALES: dict[str, str] = {
    "english": "en",
    "arabic": "ar",
    "danish": "da",
    "german": "de",
    "greek": "el",
    "spanish": "es",
    "finnish": "fi",
    "french": "fr",
    "hebrew": "he",
    "hindi": "hi",
    "italian": "it",
    "japanese": "ja",
    "korean": "ko",
    "malay": "ms",
    "dutch": "nl",
    "norwegian": "no",
    "polish": "pl",
    "portuguese": "pt",
    "russian": "ru",
    "swedish": "sv",
    "swahili": "sw",
    "turkish": "tr",
    "chinese": "zh",
}

VOICE_PROFILES: dict[str, VoiceProfile] = {
    language: VoiceProfile(language=language, locale=locale, multilingual=language != "english")
    for language, locale in _LOCALES.items()
}


def voice_profile_for(language: str) -> VoiceProfile:
    """Return the voice profile for ``language``, English when unsupported."""
    return VOICE_PROFILES.get(language.lower(), VOICE_PROFILES[DEFAULT_LANGUAGE])
