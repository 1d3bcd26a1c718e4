"""
Configuration settings for the Circuit Narrator.
"""

import os
from typing import Optional


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    if raw.lower() == "none":
        return None
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in ('true', '1', 'yes')


class Config:
    """Configuration class for application settings."""

    # Inference models
    CLASSIFIER_MODEL = os.environ.get("NARRATOR_CLASSIFIER_MODEL", "openai/clip-vit-base-patch16")
    TTS_MODEL = os.environ.get("NARRATOR_TTS_MODEL", "facebook/mms-tts-eng")
    DEVICE = os.environ.get("NARRATOR_DEVICE", "auto")  # auto, cpu, cuda
    SERIALIZE_INFERENCE = _env_bool("NARRATOR_SERIALIZE_INFERENCE", True)

    # Acceptance policy
    MIN_CONFIDENCE = _env_float("NARRATOR_MIN_CONFIDENCE", 0.05)
    MIN_MARGIN = _env_float("NARRATOR_MIN_MARGIN", 0.01)
    DEFAULT_TOP_N = _env_int("NARRATOR_TOP_N", 1)
    NEAR_MISS_COUNT = 3

    # Timeouts (seconds)
    IDENTIFY_TIMEOUT = _env_float("NARRATOR_IDENTIFY_TIMEOUT", 15.0)
    SYNTHESIS_TIMEOUT = _env_float("NARRATOR_SYNTHESIS_TIMEOUT", 60.0)
    MODEL_LOAD_TIMEOUT = _env_float("NARRATOR_MODEL_LOAD_TIMEOUT", None)

    # Input limits
    MAX_IMAGE_BYTES = 2 * 1024 * 1024
    MAX_TEXT_LENGTH = 1000
    MAX_STREAM_TEXT_LENGTH = 2000
    SUPPORTED_IMAGE_FORMATS = ['.jpg', '.jpeg', '.png', '.webp', '.bmp', '.tiff', '.tif']

    # Audio settings
    DEFAULT_SAMPLE_RATE = 16000  # used only when nothing was synthesized

