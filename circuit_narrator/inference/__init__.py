"""
Inference collaborators and the shared model cache.
"""

from .model_cache import (
    Classifier,
    LazyModel,
    ModelCache,
    Synthesizer,
    call_with_timeout
)

__all__ = [
    'Classifier',
    'LazyModel',
    'ModelCache',
    'Synthesizer',
    'call_with_timeout'
]
