"""
Image input handling for component identification.

Accepts a file path, raw bytes, a base64 string (optionally a data URL)
or an already decoded PIL image, and returns an RGB PIL image ready for
the classifier.
"""

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from ..config import Config
from ..errors import InvalidInput, error_handler


logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, Image.Image]


def decode_base64_image(payload: str, max_bytes: int = Config.MAX_IMAGE_BYTES) -> bytes:
    """
    Decode a base64 image payload.

    Accepts either bare base64 or a data URL such as
    'data:image/jpeg;base64,/9j/4AAQ...'.

    Raises:
        InvalidInput: If the payload is empty, not valid base64 or too large
    """
    if not isinstance(payload, str) or not payload.strip():
        raise InvalidInput(error_handler.validate_image_bytes(b"", max_bytes))

    data = payload.strip()
    if data.startswith("data:"):
        _, _, data = data.partition(",")

    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput(error_handler.handle_image_decode_error(e)) from e

    error = error_handler.validate_image_bytes(raw, max_bytes)
    if error:
        raise InvalidInput(error)
    return raw


def load_image(source: ImageSource, max_bytes: int = Config.MAX_IMAGE_BYTES) -> Image.Image:
    """
    Load an image from a path, bytes or PIL image.

    Args:
        source: Image file path, encoded image bytes or a PIL image
        max_bytes: Upper bound for encoded image bytes

    Returns:
        RGB PIL image

    Raises:
        InvalidInput: If the source is missing, unsupported or cannot be decoded
    """
    if isinstance(source, Image.Image):
        return source.convert("RGB")

    if isinstance(source, (bytes, bytearray)):
        error = error_handler.validate_image_bytes(bytes(source), max_bytes)
        if error:
            raise InvalidInput(error)
        return _decode(io.BytesIO(bytes(source)))

    path = str(source) if source is not None else ""
    error = error_handler.validate_image_path(path, Config.SUPPORTED_IMAGE_FORMATS)
    if error:
        raise InvalidInput(error)

    logger.debug(f"Loading image from {path}")
    return _decode(path)


def _decode(fp) -> Image.Image:
    try:
        with Image.open(fp) as image:
            return image.convert("RGB")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise InvalidInput(error_handler.handle_image_decode_error(e)) from e
