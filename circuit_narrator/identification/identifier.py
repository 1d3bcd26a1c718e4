"""
Component identification service.

Runs the zero-shot classifier over the full candidate phrase list and
turns its output into ranked component matches.
"""

import logging
from typing import Any, List, Optional

from ..catalog.components import ComponentCatalog
from ..catalog.labels import LabelCatalog, build_label_catalog
from ..config import Config
from ..errors import (
    EmptyClassifierOutput, InvalidInput, ModelUnavailable, NoConfidentMatch, error_handler
)
from ..inference.model_cache import ModelCache, ProgressCallback
from ..models import ClassificationScore, ComponentMatch
from .ranker import AcceptancePolicy, rank_predictions, select_matches, to_confidence


logger = logging.getLogger(__name__)

_UNSET = object()


class ComponentIdentifier:
    """
    Identifies catalog components in photos.

    One instance is shared by a composition root; it holds no mutable
    state apart from the model cache it was given.
    """

    def __init__(self, model_cache: ModelCache, catalog: Optional[ComponentCatalog] = None,
                 label_catalog: Optional[LabelCatalog] = None,
                 policy: Optional[AcceptancePolicy] = None,
                 near_miss_count: int = Config.NEAR_MISS_COUNT):
        self.model_cache = model_cache
        self.catalog = catalog or ComponentCatalog()
        self.labels = label_catalog or build_label_catalog(self.catalog)
        self.policy = policy or AcceptancePolicy()
        self.near_miss_count = near_miss_count

    def rank(self, image: Any, load_timeout: Optional[float] = None,
             progress_callback: Optional[ProgressCallback] = None) -> List[ClassificationScore]:
        """
        Classify an image and return the full ranked list without applying the policy.

        Raises:
            ModelUnavailable: If the classifier cannot be loaded or invoked
            EmptyClassifierOutput: If the classifier returned nothing usable
        """
        classifier = self.model_cache.get_classifier(load_timeout, progress_callback)

        try:
            predictions = classifier.classify(image, self.labels.phrases)
        except Exception as e:
            logger.error(f"Classifier invocation failed: {e}")
            raise ModelUnavailable(error_handler.handle_classifier_error(e)) from e

        ranked = rank_predictions(predictions or [], self.labels)
        if not ranked:
            raise EmptyClassifierOutput(error_handler.no_classifier_output())

        logger.debug("Ranked: " + ", ".join(f"{e.component_id}={e.score:.3f}" for e in ranked[:5]))
        return ranked

    def identify(self, image: Any, top_n: int = Config.DEFAULT_TOP_N,
                 min_confidence: Optional[float] = None,
                 min_margin: Any = _UNSET,
                 load_timeout: Optional[float] = None,
                 progress_callback: Optional[ProgressCallback] = None) -> List[ComponentMatch]:
        """
        Identify the component(s) shown in an image.

        Args:
            image: Decoded image handed verbatim to the classifier
            top_n: Number of matches to return (1 applies the margin rule)
            min_confidence: Absolute score floor override
            min_margin: Margin floor override; None disables the margin clause
            load_timeout: Seconds to wait for the classifier to load
            progress_callback: Receives model download percentages

        Returns:
            Accepted matches, best first (never empty)

        Raises:
            InvalidInput: If the policy overrides are out of range
            ModelUnavailable: If the classifier cannot be loaded or invoked
            NoConfidentMatch: If nothing cleared the acceptance policy
        """
        policy = AcceptancePolicy(
            min_confidence=self.policy.min_confidence if min_confidence is None else min_confidence,
            min_margin=self.policy.min_margin if min_margin is _UNSET else min_margin
        )
        error = error_handler.validate_policy(policy.min_confidence, policy.min_margin, top_n)
        if error:
            raise InvalidInput(error)

        ranked = self.rank(image, load_timeout, progress_callback)
        accepted = select_matches(ranked, policy, top_n)

        if not accepted:
            near_misses = self._to_matches(ranked[:self.near_miss_count])
            logger.info(f"No confident match (best: {ranked[0].component_id} at {ranked[0].score:.3f})")
            raise NoConfidentMatch(error_handler.no_confident_match(ranked[0].score), near_misses)

        matches = self._to_matches(accepted)
        logger.info(f"Identified: {', '.join(f'{m.component.id} ({m.confidence}%)' for m in matches)}")
        return matches

    def _to_matches(self, scores: List[ClassificationScore]) -> List[ComponentMatch]:
        return [
            ComponentMatch(
                component=self.catalog.get(entry.component_id),
                score=entry.score,
                confidence=to_confidence(entry.score)
            )
            for entry in scores
        ]
