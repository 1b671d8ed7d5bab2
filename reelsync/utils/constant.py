"""Project-wide constants for convenient reuse."""

# pylint: disable=line-too-long

from __future__ import annotations

import os
import pathlib
import sys
from typing import Final

from reelsync.utils.env_loader import load_project_env

# Ensure .env is loaded exactly once at import time for the whole project
if "pytest" not in sys.modules:
    load_project_env()


# Repository root resolved relative to this file (utils/constant.py → package → repo)
REPO_ROOT: Final[pathlib.Path] = pathlib.Path(__file__).resolve().parents[2]

# Default path of the dotenv file containing runtime overrides
ENV_FILE: Final[pathlib.Path] = REPO_ROOT / ".env"

# Character limit of the active speech synthesis vendor (observed 280-300)
TTS_MAX_CHARS: Final[int] = int(os.getenv("TTS_MAX_CHARS", "280"))

# Fallback speaking rate used by the word-timing estimator
SYLLABLES_PER_SECOND: Final[float] = float(os.getenv("SYLLABLES_PER_SECOND", "3.5"))

# Share of non-Latin characters above which a script block decides the language
LANGUAGE_SCRIPT_THRESHOLD: Final[float] = float(os.getenv("LANGUAGE_SCRIPT_THRESHOLD", "0.30"))

# Caption defaults
DEFAULT_WORDS_PER_PHRASE: Final[int] = int(os.getenv("DEFAULT_WORDS_PER_PHRASE", "4"))
DEFAULT_CAPTION_STYLE: Final[str] = os.getenv("DEFAULT_CAPTION_STYLE", "bold-classic")
CAPTION_ENTRY_FRAMES: Final[int] = int(os.getenv("CAPTION_ENTRY_FRAMES", "5"))
# Hold time after the final phrase in burned-in subtitles
CAPTION_TAIL_SEC: Final[float] = float(os.getenv("CAPTION_TAIL_SEC", "0.5"))

# Video defaults
DEFAULT_FPS: Final[int] = int(os.getenv("DEFAULT_FPS", "30"))
DEFAULT_ASPECT_RATIO: Final[str] = os.getenv("DEFAULT_ASPECT_RATIO", "9:16")
BACKGROUND_MUSIC_VOLUME: Final[float] = float(os.getenv("BACKGROUND_MUSIC_VOLUME", "0.12"))

# Render job polling (seconds)
STATUS_POLL_INTERVAL_SEC: Final[float] = float(os.getenv("STATUS_POLL_INTERVAL_SEC", "2.0"))
TRIGGER_INTERVAL_SEC: Final[float] = float(os.getenv("TRIGGER_INTERVAL_SEC", "3.0"))
STALE_LOCK_SEC: Final[float] = float(os.getenv("STALE_LOCK_SEC", "60.0"))
MAX_WALL_CLOCK_SEC: Final[float] = float(os.getenv("MAX_WALL_CLOCK_SEC", "900.0"))
REQUEST_TIMEOUT_SEC: Final[float] = float(os.getenv("REQUEST_TIMEOUT_SEC", "30.0"))
MAX_RETRIES: Final[int] = int(os.getenv("MAX_RETRIES", "3"))
RETRY_MIN_WAIT_SEC: Final[float] = float(os.getenv("RETRY_MIN_WAIT_SEC", "1.0"))
RETRY_MAX_WAIT_SEC: Final[float] = float(os.getenv("RETRY_MAX_WAIT_SEC", "10.0"))

# JSON2Video render backend
JSON2VIDEO_API_BASE: Final[str] = os.getenv("JSON2VIDEO_API_BASE", "https://api.json2video.com/v2")
JSON2VIDEO_API_KEY: Final[str] = os.getenv("JSON2VIDEO_API_KEY", "")

# Local FFmpeg render backend
FFMPEG_BINARY: Final[str] = os.getenv("FFMPEG_BINARY", "ffmpeg")
RENDER_OUTPUT_DIR: Final[pathlib.Path] = pathlib.Path(
    os.getenv("RENDER_OUTPUT_DIR", str(REPO_ROOT / "output"))
).resolve()

# REST API
API_SERVER_NAME: Final[str] = os.getenv("API_SERVER_NAME", "0.0.0.0")
API_SERVER_PORT: Final[int] = int(os.getenv("API_SERVER_PORT", "8080"))
API_BEARER_TOKEN: Final[str] = os.getenv("API_BEARER_TOKEN", "")
API_CORS_ORIGINS: Final[str] = os.getenv("API_CORS_ORIGINS", "")
API_RENDER_BACKEND: Final[str] = os.getenv("API_RENDER_BACKEND", "ffmpeg").lower()
