"""
Component identification: image input, ranking and acceptance.
"""

from .identifier import ComponentIdentifier
from .images import decode_base64_image, load_image
from .ranker import AcceptancePolicy, rank_predictions, select_matches, to_confidence

__all__ = [
    'AcceptancePolicy',
    'ComponentIdentifier',
    'decode_base64_image',
    'load_image',
    'rank_predictions',
    'select_matches',
    'to_confidence'
]
