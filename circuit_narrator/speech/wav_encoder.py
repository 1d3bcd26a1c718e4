"""
Mono 16-bit PCM WAV encoding.
"""

import io
import logging
from pathlib import Path
from typing import Sequence, Union

import numpy as np
from scipy.io import wavfile

from ..errors import InvalidInput, error_handler


logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44


def to_pcm16(samples: Union[np.ndarray, Sequence[float]]) -> np.ndarray:
    """
    Convert float samples in [-1, 1] to signed 16-bit integers.

    Values are clamped first (NaN becomes silence). Negative samples
    scale by 32768 and non-negative ones by 32767, so -1.0 maps to
    -32768 and 1.0 to 32767. Halves round up.
    """
    x = np.asarray(samples, dtype=np.float64).reshape(-1)
    x = np.clip(np.nan_to_num(x, nan=0.0), -1.0, 1.0)
    scaled = np.where(x < 0, x * 32768.0, x * 32767.0)
    return np.floor(scaled + 0.5).astype('<i2')


def encode_wav(samples: Union[np.ndarray, Sequence[float]], sample_rate: int) -> bytes:
    """
    Encode float samples as a mono 16-bit PCM WAV container.

    Args:
        samples: Flat float samples in [-1, 1]
        sample_rate: Sample rate in Hz (positive integer)

    Returns:
        WAV bytes with a 44-byte header followed by the PCM data

    Raises:
        InvalidInput: If the sample rate is not a positive integer
    """
    error = error_handler.validate_sample_rate(sample_rate)
    if error:
        raise InvalidInput(error)

    pcm = to_pcm16(samples)
    buffer = io.BytesIO()
    wavfile.write(buffer, sample_rate, pcm)
    return buffer.getvalue()


def save_wav(output_path: Union[str, Path], samples: Union[np.ndarray, Sequence[float]],
             sample_rate: int) -> Path:
    """Encode samples and write them to output_path, creating parent directories."""
    data = encode_wav(samples, sample_rate)
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info(f"Wrote {len(data)} bytes of audio to {path}")
    return path
