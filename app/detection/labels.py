"""
Label interpretation for image-classification responses.

Hosted detectors do not share a label vocabulary ("artificial"/"human",
"AI"/"Real", "FAKE"/"REAL", ...). Labels are matched case-insensitively
against a keyword set per polarity; the first hit per polarity wins.

When no label matches either polarity the first two entries are taken as
(ai, real) in that order. This is a heuristic, not a guarantee about
unknown models.
"""

import logging
from typing import Iterable, Optional

from app.core.errors import AdapterTerminalError

logger = logging.getLogger(__name__)

AI_KEYWORDS = ("artificial", "ai", "fake", "generated", "synthetic")
REAL_KEYWORDS = ("real", "human", "authentic", "natural")


def _matches(label: str, keywords: Iterable[str]) -> bool:
    label = label.lower()
    return any(k in label for k in keywords)


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _score(item: dict) -> float:
    try:
        return float(item.get("score", 0.0))
    except (TypeError, ValueError):
        raise AdapterTerminalError(
            f"Classifier returned a non-numeric score for label {item.get('label')!r}", step="ai_analysis"
        )


def interpret_labels(predictions: list[dict]) -> tuple[float, float]:
    """
    Reduce a [{"label": str, "score": float}, ...] list to a normalized
    (ai_probability, real_probability) pair that sums to 1.
    """
    if not predictions:
        raise AdapterTerminalError("Classifier returned no labels", step="ai_analysis")

    ai_score: Optional[float] = None
    real_score: Optional[float] = None

    for item in predictions:
        label = str(item.get("label", ""))
        score = _score(item)
        if real_score is None and _matches(label, REAL_KEYWORDS):
            real_score = score
        elif ai_score is None and _matches(label, AI_KEYWORDS):
            ai_score = score

    if ai_score is None and real_score is None:
        logger.warning(f"[AI] No known labels in {[p.get('label') for p in predictions]}; using positional order")
        ai_score = _score(predictions[0])
        if len(predictions) > 1:
            real_score = _score(predictions[1])

    if ai_score is None:
        real = _clamp(real_score)
        return 1.0 - real, real
    if real_score is None:
        ai = _clamp(ai_score)
        return ai, 1.0 - ai

    total = ai_score + real_score
    if total <= 0:
        return 0.5, 0.5
    return ai_score / total, real_score / total
