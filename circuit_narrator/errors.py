"""
Error handling system for the Circuit Narrator.

This module provides centralized error definitions and actionable error
messages for the identification and speech pipelines. The taxonomy keeps
"the service is down" apart from "nothing was recognized in your photo".
"""

import logging
import math
from enum import Enum
from typing import List, Optional, Dict, Any
from dataclasses import dataclass


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors that can occur during processing."""
    INPUT_VALIDATION = "input_validation"
    MODEL_LOADING = "model_loading"
    CLASSIFICATION = "classification"
    SPEECH_SYNTHESIS = "speech_synthesis"
    AUDIO_ENCODING = "audio_encoding"
    FILE_SYSTEM = "file_system"
    TIMEOUT = "timeout"


@dataclass
class ProcessingError:
    """Represents a processing error with context and guidance."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: str
    suggested_actions: List[str]
    error_code: str
    context: Dict[str, Any] = None

    def __post_init__(self):
        if self.context is None:
            self.context = {}


class NarratorError(Exception):
    """Base exception for Circuit Narrator errors."""

    def __init__(self, processing_error: ProcessingError):
        self.processing_error = processing_error
        super().__init__(processing_error.message)

    @property
    def error_code(self) -> str:
        return self.processing_error.error_code


class InvalidInput(NarratorError):
    """Raised when input is rejected before any collaborator is invoked."""
    pass


class ModelUnavailable(NarratorError):
    """Raised when a model cannot be constructed or its backend is unreachable."""
    pass


class ModelLoadTimeout(ModelUnavailable):
    """Raised when waiting for an in-flight model construction timed out."""
    pass


class OperationTimeout(NarratorError):
    """Raised when a caller-imposed deadline for a whole call elapsed."""
    pass


class NoConfidentMatch(NarratorError):
    """Raised when the classifier ran but no component cleared the acceptance policy."""

    def __init__(self, processing_error: ProcessingError, near_misses: Optional[list] = None):
        super().__init__(processing_error)
        self.near_misses = list(near_misses or [])


class EmptyClassifierOutput(NoConfidentMatch):
    """Raised when the classifier produced no usable output at all."""
    pass


class SynthesisError(NarratorError):
    """Raised when one sentence fails in the fail-fast synthesis path."""

    def __init__(self, processing_error: ProcessingError, sentence_index: Optional[int] = None):
        super().__init__(processing_error)
        self.sentence_index = sentence_index


class PartialSynthesisFailure(NarratorError):
    """
    Reported (never raised) when a sentence fails in the streaming path.

    The stream keeps going with the remaining sentences; instances are
    collected on the stream and handed to its failure callback.
    """

    def __init__(self, processing_error: ProcessingError, sentence_index: int, sentence: str):
        super().__init__(processing_error)
        self.sentence_index = sentence_index
        self.sentence = sentence


class ErrorHandler:
    """
    Centralized error handling and reporting system.

    Builds ProcessingError records with actionable guidance and keeps
    a log of the errors and warnings seen during a run.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors: List[ProcessingError] = []
        self.warnings: List[ProcessingError] = []

    def add_error(self, error: ProcessingError) -> None:
        """Add an error to the collection."""
        if error.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]:
            self.errors.append(error)
        elif error.severity == ErrorSeverity.WARNING:
            self.warnings.append(error)

        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }[error.severity]

        self.logger.log(log_level, f"[{error.error_code}] {error.message}")
        if error.details:
            self.logger.log(log_level, f"Details: {error.details}")

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been recorded."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get a summary of all errors and warnings."""
        return {
            'error_count': len(self.errors),
            'warning_count': len(self.warnings),
            'errors': [self._format_error_for_summary(e) for e in self.errors],
            'warnings': [self._format_error_for_summary(e) for e in self.warnings]
        }

    def _format_error_for_summary(self, error: ProcessingError) -> Dict[str, Any]:
        """Format error for summary display."""
        return {
            'code': error.error_code,
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'suggested_actions': error.suggested_actions
        }

    def clear_errors(self) -> None:
        """Clear all recorded errors and warnings."""
        self.errors.clear()
        self.warnings.clear()

    # ------------------------------------------------------------------
    # Input validation
    # ------------------------------------------------------------------

    def validate_image_path(self, file_path: str, supported_formats: List[str]) -> Optional[ProcessingError]:
        """Validate an image file path before it is handed to the classifier."""
        from pathlib import Path

        if not file_path:
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Image path is required",
                details="No image path was provided",
                suggested_actions=[
                    "Provide a path to a photo of the component",
                    f"Supported formats: {', '.join(supported_formats)}"
                ],
                error_code="INPUT_001"
            )

        path = Path(file_path)

        if not path.exists():
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Image file not found",
                details=f"File not found: {path.resolve()}",
                suggested_actions=[
                    "Check that the file path is correct",
                    "Use an absolute path if a relative path is not working"
                ],
                error_code="INPUT_002"
            )

        if not path.is_file():
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Path is not a file",
                details=f"The specified path exists but is not a file: {file_path}",
                suggested_actions=["Ensure the path points to an image file, not a directory"],
                error_code="INPUT_003"
            )

        if path.suffix.lower() not in supported_formats:
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Unsupported image format",
                details=f"Unsupported image format: {path.suffix}. Supported: {', '.join(supported_formats)}",
                suggested_actions=[f"Convert the photo to one of: {', '.join(supported_formats)}"],
                error_code="INPUT_004"
            )

        return None

    def validate_image_bytes(self, data: bytes, max_bytes: int) -> Optional[ProcessingError]:
        """Validate raw image bytes received from an upload."""
        if not data:
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="No image provided.",
                details="The request did not contain any image data",
                suggested_actions=["Attach a photo of the component"],
                error_code="INPUT_005"
            )

        if len(data) > max_bytes:
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Image is too large. Please upload a smaller image.",
                details=f"Image is {len(data)} bytes, limit is {max_bytes} bytes",
                suggested_actions=["Resize or compress the photo before uploading"],
                error_code="INPUT_006",
                context={'size': len(data), 'limit': max_bytes}
            )

        return None

    def handle_image_decode_error(self, error: Exception) -> ProcessingError:
        """Handle image data that could not be decoded."""
        return ProcessingError(
            category=ErrorCategory.INPUT_VALIDATION,
            severity=ErrorSeverity.ERROR,
            message="Image data could not be read",
            details=f"Malformed image data: {error}",
            suggested_actions=[
                "Check that the file is a valid JPEG, PNG or WebP image",
                "Try taking the photo again"
            ],
            error_code="INPUT_007"
        )

    def validate_text(self, text: str) -> Optional[ProcessingError]:
        """Validate text submitted for speech synthesis."""
        if not isinstance(text, str) or not text.strip():
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="No text provided.",
                details="Speech synthesis needs non-empty text",
                suggested_actions=["Provide the text to be spoken"],
                error_code="INPUT_008"
            )
        return None

    def validate_sample_rate(self, sample_rate) -> Optional[ProcessingError]:
        """Validate a sample rate for audio encoding."""
        if isinstance(sample_rate, bool) or not isinstance(sample_rate, int) or sample_rate <= 0:
            return ProcessingError(
                category=ErrorCategory.AUDIO_ENCODING,
                severity=ErrorSeverity.ERROR,
                message="Invalid sample rate",
                details=f"Sample rate must be a positive integer, got {sample_rate!r}",
                suggested_actions=["Pass the sample rate reported by the synthesizer"],
                error_code="INPUT_009"
            )
        return None

    def validate_policy(self, min_confidence: float, min_margin: Optional[float],
                        top_n: int) -> Optional[ProcessingError]:
        """Validate acceptance policy overrides."""
        problems = []
        if not _is_unit_interval(min_confidence):
            problems.append(f"min_confidence must be within [0, 1], got {min_confidence!r}")
        if min_margin is not None and not _is_unit_interval(min_margin):
            problems.append(f"min_margin must be within [0, 1], got {min_margin!r}")
        if isinstance(top_n, bool) or not isinstance(top_n, int) or top_n < 1:
            problems.append(f"top_n must be a positive integer, got {top_n!r}")

        if problems:
            return ProcessingError(
                category=ErrorCategory.INPUT_VALIDATION,
                severity=ErrorSeverity.ERROR,
                message="Invalid identification options",
                details="; ".join(problems),
                suggested_actions=["Use thresholds between 0 and 1 and a top count of at least 1"],
                error_code="INPUT_010"
            )
        return None

    def unknown_component(self, component_id: str, known_ids: List[str]) -> ProcessingError:
        """Build the error for a component id missing from the catalog."""
        return ProcessingError(
            category=ErrorCategory.INPUT_VALIDATION,
            severity=ErrorSeverity.ERROR,
            message=f'Unknown component: "{component_id}"',
            details=f"Available: {', '.join(known_ids)}",
            suggested_actions=["Run the list command to see every component id"],
            error_code="INPUT_011",
            context={'component_id': component_id}
        )

    # ------------------------------------------------------------------
    # Collaborator failures
    # ------------------------------------------------------------------

    def handle_model_load_error(self, error: Exception, model_name: str) -> ProcessingError:
        """Handle a failed model construction."""
        error_str = str(error).lower()

        if 'connection' in error_str or 'resolve' in error_str or 'offline' in error_str:
            return ProcessingError(
                category=ErrorCategory.MODEL_LOADING,
                severity=ErrorSeverity.CRITICAL,
                message="AI service temporarily unavailable. Please try again in a moment.",
                details=f"Could not download {model_name}: {error}",
                suggested_actions=[
                    "Check your internet connection",
                    "Pre-download the model into the local cache",
                    "Try again in a moment"
                ],
                error_code="MODEL_001",
                context={'model': model_name}
            )

        if 'memory' in error_str or 'cuda' in error_str:
            return ProcessingError(
                category=ErrorCategory.MODEL_LOADING,
                severity=ErrorSeverity.CRITICAL,
                message="AI service temporarily unavailable. Please try again in a moment.",
                details=f"Not enough resources to load {model_name}: {error}",
                suggested_actions=[
                    "Close other applications using the GPU",
                    "Set NARRATOR_DEVICE=cpu to load on the CPU"
                ],
                error_code="MODEL_002",
                context={'model': model_name}
            )

        return ProcessingError(
            category=ErrorCategory.MODEL_LOADING,
            severity=ErrorSeverity.CRITICAL,
            message="AI service temporarily unavailable. Please try again in a moment.",
            details=f"Failed to load {model_name}: {error}",
            suggested_actions=[
                "Check the model name in the configuration",
                "Try again in a moment"
            ],
            error_code="MODEL_003",
            context={'model': model_name}
        )

    def handle_model_load_timeout(self, model_name: str, timeout: float) -> ProcessingError:
        """Handle a wait for model construction that ran out of time."""
        return ProcessingError(
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.ERROR,
            message="The AI model is still loading. Please try again in a moment.",
            details=f"{model_name} was not ready after {timeout:.1f}s; loading continues in the background",
            suggested_actions=["Retry shortly, the model keeps loading"],
            error_code="MODEL_004",
            context={'model': model_name, 'timeout': timeout}
        )

    def handle_operation_timeout(self, operation: str, timeout: float) -> ProcessingError:
        """Handle a caller-imposed overall deadline."""
        return ProcessingError(
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.ERROR,
            message=f"{operation.capitalize()} timed out. Please try again.",
            details=f"{operation} did not finish within {timeout:.1f}s",
            suggested_actions=["Try again", "Use a smaller image or shorter text"],
            error_code="TIMEOUT_001",
            context={'operation': operation, 'timeout': timeout}
        )

    def handle_classifier_error(self, error: Exception) -> ProcessingError:
        """Handle an error raised by the classifier collaborator."""
        return ProcessingError(
            category=ErrorCategory.CLASSIFICATION,
            severity=ErrorSeverity.ERROR,
            message="AI service temporarily unavailable. Please try again in a moment.",
            details=f"Classifier invocation failed: {error}",
            suggested_actions=["Try again in a moment"],
            error_code="CLASSIFY_001"
        )

    def no_classifier_output(self) -> ProcessingError:
        """Build the error for a classifier run that returned nothing usable."""
        return ProcessingError(
            category=ErrorCategory.CLASSIFICATION,
            severity=ErrorSeverity.WARNING,
            message="Could not analyze the image. Please try again.",
            details="The classifier returned no usable labels",
            suggested_actions=["Try again with a different photo"],
            error_code="CLASSIFY_002"
        )

    def no_confident_match(self, best_score: Optional[float]) -> ProcessingError:
        """Build the error for a classification that nothing cleared."""
        details = "No candidate labels matched the catalog"
        if best_score is not None:
            details = f"Best score {best_score:.3f} did not clear the acceptance policy"
        return ProcessingError(
            category=ErrorCategory.CLASSIFICATION,
            severity=ErrorSeverity.WARNING,
            message="Could not identify the component. Try a clearer photo with good lighting.",
            details=details,
            suggested_actions=[
                "Take a closer photo with better lighting",
                "Place the component on a plain background"
            ],
            error_code="CLASSIFY_003"
        )

    def handle_synthesis_error(self, error: Exception, sentence_index: int,
                               total: int) -> ProcessingError:
        """Handle a failed synthesis of one sentence."""
        return ProcessingError(
            category=ErrorCategory.SPEECH_SYNTHESIS,
            severity=ErrorSeverity.ERROR,
            message="TTS service temporarily unavailable.",
            details=f"Sentence {sentence_index}/{total} failed: {error}",
            suggested_actions=["Try again in a moment"],
            error_code="TTS_001",
            context={'sentence_index': sentence_index, 'total': total}
        )


def _is_unit_interval(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and 0.0 <= value <= 1.0


# Global error handler instance
error_handler = ErrorHandler()
