"""
Aggregation, ranking and acceptance of zero-shot classifier output.

Turns the classifier's noisy per-phrase scores into one score per
component, ranks them, and decides whether anything is confident
enough to show.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from ..catalog.labels import LabelCatalog
from ..config import Config
from ..models import ClassificationScore, Prediction


logger = logging.getLogger(__name__)

# absorbs float error in score differences (0.03 - 0.02 < 0.01)
MARGIN_TOLERANCE = 1e-9


@dataclass(frozen=True)
class AcceptancePolicy:
    """
    Decides when a ranked list is good enough to report.

    The best entry is accepted when it clears `min_confidence` OR when
    it leads the runner-up by at least `min_margin`. `min_margin=None`
    disables the margin clause.
    """
    min_confidence: float = Config.MIN_CONFIDENCE
    min_margin: Optional[float] = Config.MIN_MARGIN

    def margin(self, ranked: Sequence[ClassificationScore]) -> float:
        """Gap between the best and second-best score (runner-up counts as 0 when absent)."""
        if not ranked:
            return 0.0
        second = ranked[1].score if len(ranked) > 1 else 0.0
        return ranked[0].score - second

    def accepts(self, ranked: Sequence[ClassificationScore]) -> bool:
        if not ranked:
            return False
        top = ranked[0].score
        if top >= self.min_confidence:
            return True
        if self.min_margin is None:
            return False
        return self.margin(ranked) >= self.min_margin - MARGIN_TOLERANCE


def to_confidence(score: float) -> int:
    """Convert a [0, 1] score to an integer percentage, rounding halves up."""
    pct = int(math.floor(score * 100 + 0.5))
    return max(0, min(100, pct))


def _is_valid(prediction: Prediction) -> bool:
    label = getattr(prediction, 'label', None)
    score = getattr(prediction, 'score', None)
    if not isinstance(label, str) or not label.strip():
        return False
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return False
    return math.isfinite(score)


def rank_predictions(predictions: Iterable[Prediction], labels: LabelCatalog) -> List[ClassificationScore]:
    """
    Collapse per-phrase predictions into a ranked per-component list.

    Invalid predictions (empty label, non-finite score) and labels that
    do not resolve to a catalog phrase are dropped. Each component keeps
    the best score of any of its phrases. The result is sorted by score,
    descending, with ties in catalog order.

    Args:
        predictions: Raw classifier output
        labels: Phrase catalog used to build the classifier input

    Returns:
        One ClassificationScore per matched component
    """
    best: Dict[str, float] = {}
    dropped = 0

    for prediction in predictions:
        if not _is_valid(prediction):
            dropped += 1
            continue
        component_id = labels.resolve(prediction.label)
        if component_id is None:
            dropped += 1
            continue
        score = float(prediction.score)
        if component_id not in best or score > best[component_id]:
            best[component_id] = score

    if dropped:
        logger.debug(f"Dropped {dropped} unusable classifier predictions")

    ranked = sorted(
        (ClassificationScore(component_id=cid, score=score) for cid, score in best.items()),
        key=lambda entry: (-entry.score, labels.catalog_index(entry.component_id))
    )
    return ranked


def select_matches(ranked: Sequence[ClassificationScore], policy: AcceptancePolicy,
                   top_n: int = 1) -> List[ClassificationScore]:
    """
    Apply the acceptance policy to a ranked list.

    With top_n == 1 the single best entry is returned when the policy
    accepts it. With top_n > 1 up to top_n entries scoring at least
    `policy.min_confidence` are returned; the margin clause only gates
    the single-best case.

    Returns:
        Accepted entries, best first; empty when nothing is accepted
    """
    if not ranked:
        return []

    if top_n <= 1:
        return [ranked[0]] if policy.accepts(ranked) else []

    return [entry for entry in ranked if entry.score >= policy.min_confidence][:top_n]
