"""Unit tests for script and language detection."""

from __future__ import annotations

import pytest

from reelsync.text.language import (
    DEFAULT_LANGUAGE,
    LanguageClassifier,
    ScriptWordListClassifier,
    detect_language,
    voice_profile_for,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Hello, how are you today?", "english"),
        ("Hola, ¿cómo estás? Muy bien, gracias.", "spanish"),
        ("Bonjour, je suis très content de vous voir.", "french"),
        ("Ich bin sehr müde und das ist gut.", "german"),
        ("مرحبا بكم في عالمنا", "arabic"),
        ("こんにちは、世界", "japanese"),
        ("你好世界，今天天气很好", "chinese"),
        ("안녕하세요", "korean"),
        ("Привет, как дела?", "russian"),
        ("Γειά σου κόσμε", "greek"),
        ("नमस्ते दुनिया", "hindi"),
        ("שלום עולם", "hebrew"),
    ],
)
def test_detect_language(text: str, expected: str) -> None:
    """Script blocks and function words identify common languages."""
    assert detect_language(text) == expected


def test_detect_language_defaults_for_symbols_only() -> None:
    """Text with nothing left after stripping falls back to English."""
    assert detect_language("12345 !!! ...") == DEFAULT_LANGUAGE
    assert detect_language("") == DEFAULT_LANGUAGE


def test_minor_script_share_does_not_decide() -> None:
    """A few foreign-script words below the threshold do not flip the language."""
    assert detect_language("The word привет means hello in English") == "english"


def test_script_shares_reports_fractions() -> None:
    """Shares are fractions of the stripped character count."""
    shares = ScriptWordListClassifier().script_shares("abc где")

    assert shares["latin"] == pytest.approx(0.5)
    assert shares["russian"] == pytest.approx(0.5)


def test_threshold_is_configurable() -> None:
    """Raising the threshold makes mixed text fall back to word lists."""
    classifier = ScriptWordListClassifier(threshold=0.9)

    assert classifier.classify("abc где") == "english"


def test_classify_rejects_non_string() -> None:
    """The classifier only accepts strings."""
    with pytest.raises(TypeError):
        ScriptWordListClassifier().classify(42)  # type: ignore[arg-type]


def test_detect_language_uses_custom_classifier() -> None:
    """Any object with ``classify`` can replace the heuristic."""

    class Fixed:
        def classify(self, text: str) -> str:
            return "german"

    classifier = Fixed()
    assert isinstance(classifier, LanguageClassifier)
    assert detect_language("anything", classifier=classifier) == "german"


def test_voice_profile_for() -> None:
    """Profiles map languages to locales; unsupported tags use English."""
    spanish = voice_profile_for("Spanish")
    english = voice_profile_for("english")

    assert spanish.locale == "es"
    assert spanish.multilingual is True
    assert english.locale == "en"
    assert english.multilingual is False
    assert voice_profile_for("klingon") == english


@pytest.mark.parametrize(
    "text",
    [
        "I've got some great news for you today",
        "We've been waiting all day for this moment",
        "You’ve never seen a sunrise like this one",
    ],
)
def test_contractions_stay_english(text: str) -> None:
    """Contraction tails are not read as standalone function words."""
    assert detect_language(text) == "english"
    assert voice_profile_for(detect_language(text)).locale == "en"


def test_standalone_function_word_still_matches() -> None:
    """Whole words keep matching once contractions are excluded."""
    assert detect_language("Kahve ve çay için teşekkür ederim") == "turkish"
