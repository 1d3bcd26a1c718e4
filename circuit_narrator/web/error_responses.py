"""Centralized error response formatting for web API endpoints.

This module keeps error responses consistent across endpoints: every
failure carries an error message, a machine-readable error code and,
where the user can do something about it, an action_required field.
"""

from typing import Dict, Any, Optional, Tuple
from flask import jsonify
import logging

from ..errors import (
    InvalidInput,
    ModelUnavailable,
    NarratorError,
    NoConfidentMatch,
    OperationTimeout,
    SynthesisError
)

logger = logging.getLogger(__name__)


class ErrorCode:
    """Standard error codes for API responses."""

    # Request errors
    INVALID_JSON = "INVALID_JSON"
    MISSING_DATA = "MISSING_DATA"
    INVALID_INPUT = "INVALID_INPUT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    COMPONENT_NOT_FOUND = "COMPONENT_NOT_FOUND"

    # Service errors
    MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"

    # Recognition outcomes
    NO_CONFIDENT_MATCH = "NO_CONFIDENT_MATCH"
    NO_CLASSIFIER_OUTPUT = "NO_CLASSIFIER_OUTPUT"

    # General errors
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ActionRequired:
    """Standard action_required values for error responses."""

    UPLOAD_IMAGE = "upload_image"
    RETAKE_PHOTO = "retake_photo"
    FIX_REQUEST = "fix_request"
    RETRY = "retry"
    CONTACT_SUPPORT = "contact_support"


def format_error_response(
    error_message: str,
    error_code: str,
    action_required: Optional[str] = None,
    additional_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Format a consistent error response for API endpoints.

    Args:
        error_message: Human-readable error message
        error_code: Machine-readable error code (use ErrorCode constants)
        action_required: Specific user action needed (use ActionRequired constants)
        additional_data: Additional data to include in response

    Returns:
        Dictionary formatted for JSON response

    Example:
        >>> format_error_response("No image provided.", ErrorCode.MISSING_DATA,
        ...                       action_required=ActionRequired.UPLOAD_IMAGE)
        {'success': False, 'error': 'No image provided.', 'error_code': 'MISSING_DATA',
         'action_required': 'upload_image'}
    """
    response = {
        'success': False,
        'error': error_message,
        'error_code': error_code
    }

    if action_required:
        response['action_required'] = action_required

    if additional_data:
        response.update(additional_data)

    return response


def no_confident_match_response(error: NoConfidentMatch) -> Tuple[Any, int]:
    """
    Create the response for a photo in which nothing was recognized.

    This is a normal outcome rather than a failure of the service, so it
    is returned with status 200 and the closest misses as `topScores`.
    """
    error_code = ErrorCode.NO_CONFIDENT_MATCH
    if error.error_code == "CLASSIFY_002":
        error_code = ErrorCode.NO_CLASSIFIER_OUTPUT

    response = format_error_response(
        error_message=error.processing_error.message,
        error_code=error_code,
        action_required=ActionRequired.RETAKE_PHOTO,
        additional_data={
            'topScores': [match.to_dict() for match in error.near_misses]
        }
    )
    return jsonify(response), 200


def narrator_error_response(error: NarratorError) -> Tuple[Any, int]:
    """
    Map a Circuit Narrator exception to a JSON error response.

    Service problems (503/504/502) are kept apart from input problems
    (400/413) and from "nothing recognized" (200).

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    if isinstance(error, NoConfidentMatch):
        return no_confident_match_response(error)

    processing_error = error.processing_error
    details = {'details': processing_error.details} if processing_error.details else {}

    if isinstance(error, InvalidInput):
        status = 400
        error_code = ErrorCode.INVALID_INPUT
        action = ActionRequired.FIX_REQUEST
        if processing_error.error_code == "INPUT_006":
            status, error_code, action = 413, ErrorCode.FILE_TOO_LARGE, ActionRequired.UPLOAD_IMAGE
        elif processing_error.error_code == "INPUT_005":
            error_code, action = ErrorCode.MISSING_DATA, ActionRequired.UPLOAD_IMAGE
        elif processing_error.error_code == "INPUT_011":
            status, error_code = 404, ErrorCode.COMPONENT_NOT_FOUND
    elif isinstance(error, ModelUnavailable):
        status, error_code, action = 503, ErrorCode.MODEL_UNAVAILABLE, ActionRequired.RETRY
    elif isinstance(error, OperationTimeout):
        status, error_code, action = 504, ErrorCode.TIMEOUT, ActionRequired.RETRY
    elif isinstance(error, SynthesisError):
        status, error_code, action = 502, ErrorCode.SYNTHESIS_FAILED, ActionRequired.RETRY
        if error.sentence_index is not None:
            details['sentence_index'] = error.sentence_index
    else:
        status, error_code, action = 500, ErrorCode.UNEXPECTED_ERROR, ActionRequired.CONTACT_SUPPORT

    logger.info(f"Responding {status} {error_code}: {processing_error.message}")

    response = format_error_response(
        error_message=processing_error.message,
        error_code=error_code,
        action_required=action,
        additional_data=details
    )
    return jsonify(response), status


def invalid_json_response() -> Tuple[Any, int]:
    """Create a standardized invalid request body response."""
    response = format_error_response(
        error_message="Invalid request body.",
        error_code=ErrorCode.INVALID_JSON,
        action_required=ActionRequired.FIX_REQUEST
    )
    return jsonify(response), 400


def file_too_large_response(max_bytes: int) -> Tuple[Any, int]:
    """Create a standardized request too large response."""
    response = format_error_response(
        error_message=(
            f"Image is too large. Maximum upload size is {max_bytes // (1024 * 1024)}MB. "
            "Please upload a smaller image."
        ),
        error_code=ErrorCode.FILE_TOO_LARGE,
        action_required=ActionRequired.UPLOAD_IMAGE
    )
    return jsonify(response), 413


def unexpected_error_response(
    error_details: Optional[str] = None,
    include_details: bool = False
) -> Tuple[Any, int]:
    """
    Create a standardized unexpected error response.

    Args:
        error_details: Details about the error (for logging)
        include_details: Whether to include error details in response (dev mode)

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    if include_details and error_details:
        message = f"An unexpected error occurred: {error_details}"
    else:
        message = (
            "An unexpected error occurred. "
            "Please try again or contact support if the problem persists."
        )

    response = format_error_response(
        error_message=message,
        error_code=ErrorCode.UNEXPECTED_ERROR,
        action_required=ActionRequired.CONTACT_SUPPORT
    )

    return jsonify(response), 500
