"""
Component catalog and classifier phrase generation.
"""

from .components import ELECTRONICS_COMPONENTS, ComponentCatalog
from .labels import LabelCatalog, build_label_catalog, default_phrase

__all__ = [
    'ELECTRONICS_COMPONENTS',
    'ComponentCatalog',
    'LabelCatalog',
    'build_label_catalog',
    'default_phrase'
]
