"""Web API for component identification and narration."""

from .app import create_app
from .error_responses import (
    ErrorCode,
    ActionRequired,
    format_error_response,
    narrator_error_response
)

__all__ = [
    'create_app',
    'ErrorCode',
    'ActionRequired',
    'format_error_response',
    'narrator_error_response'
]
