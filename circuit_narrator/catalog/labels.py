"""
Candidate phrase generation for zero-shot classification.

Expands every catalog component into the phrases offered to the
classifier and keeps a case-insensitive map back to component ids.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import Component


logger = logging.getLogger(__name__)

_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_VOWELS = ('a', 'e', 'i', 'o', 'u')


def phrase_key(phrase: str) -> str:
    """Normalized lookup key for a phrase (case-insensitive, trimmed)."""
    return phrase.strip().lower()


def strip_parenthetical(name: str) -> str:
    """Remove parenthetical remarks, e.g. 'Photoresistor (LDR)' -> 'Photoresistor'."""
    return _PARENTHETICAL.sub("", name).strip()


def default_phrase(name: str) -> str:
    """
    Build the generic prompt for a component name.

    The article is picked from the lowercased, parenthetical-free name,
    while the name itself keeps its casing ('a photo of a LED').
    """
    bare = strip_parenthetical(name)
    article = "an" if bare.lower().startswith(_VOWELS) else "a"
    return f"a photo of {article} {bare}"


class LabelCatalog:
    """
    Immutable phrase list plus phrase -> component id resolution.

    `phrases` is handed verbatim to the classifier and never reordered.
    """

    def __init__(self, entries: List[Tuple[str, str]], component_order: List[str]):
        self._entries = tuple(entries)
        self._phrase_map: Dict[str, str] = {phrase_key(p): cid for p, cid in self._entries}
        self._component_order = tuple(component_order)
        self._order_index = {cid: i for i, cid in enumerate(self._component_order)}

    @property
    def phrases(self) -> List[str]:
        return [phrase for phrase, _ in self._entries]

    @property
    def component_ids(self) -> Tuple[str, ...]:
        return self._component_order

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, label: str) -> Optional[str]:
        """Map a classifier label back to its component id (case-insensitive)."""
        if not isinstance(label, str):
            return None
        return self._phrase_map.get(phrase_key(label))

    def phrases_for(self, component_id: str) -> List[str]:
        return [phrase for phrase, cid in self._entries if cid == component_id]

    def catalog_index(self, component_id: str) -> int:
        """Position of a component in catalog order (tie-break key)."""
        return self._order_index.get(component_id, len(self._order_index))


def component_phrases(component: Component) -> List[str]:
    """Canonical label, generated default phrase and curated aliases, in that order."""
    return [component.clip_label, default_phrase(component.name), *component.aliases]


def build_label_catalog(components: Iterable[Component]) -> LabelCatalog:
    """
    Build the candidate phrase catalog.

    Phrases are inserted in catalog order; a phrase whose case-insensitive
    form is already present is skipped, so the first component to claim a
    phrase keeps it.

    Args:
        components: Catalog components in their canonical order

    Returns:
        LabelCatalog with the ordered phrase list and the phrase map
    """
    entries: List[Tuple[str, str]] = []
    owners: Dict[str, str] = {}
    order: List[str] = []

    for component in components:
        order.append(component.id)
        for phrase in component_phrases(component):
            if not phrase or not phrase.strip():
                continue
            key = phrase_key(phrase)
            owner = owners.get(key)
            if owner is not None:
                if owner != component.id:
                    logger.debug(f"Phrase '{phrase}' already claimed by '{owner}', skipping for '{component.id}'")
                continue
            owners[key] = component.id
            entries.append((phrase.strip(), component.id))

    logger.debug(f"Built {len(entries)} candidate phrases for {len(order)} components")
    return LabelCatalog(entries, order)
