"""Probability normalisation and the margin-gated decision policy.

Policy, evaluated in order:

  1. hard PNES gate tripped           → PNES
  2. syncope pattern recognised       → Unknown
  3. G ≥ F + margin and G ≥ margin    → Generalized
  4. F ≥ G + margin and F ≥ margin    → Focal
  5. otherwise                        → Unknown

The margin and gate thresholds come from :class:`ClassifierSettings`; their
defaults (2 and 4) are fixed calibration values, not derived ones.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from seizure_classifier.config import ClassifierSettings
from seizure_classifier.models.result import Decision, Probabilities, SummaryLabel
from seizure_classifier.models.scoring import ScoreAccumulator

logger = logging.getLogger(__name__)


def softmax(scores: Sequence[float]) -> list[float]:
    """Numerically stable softmax (max score subtracted before exponentiating)."""
    if not scores:
        return []
    peak = max(scores)
    exps = [math.exp(s - peak) for s in scores]
    total = sum(exps)
    return [e / total for e in exps]


def summary_label(acc: ScoreAccumulator, settings: ClassifierSettings) -> SummaryLabel:
    margin = settings.margin_threshold
    if acc.is_high_pnes:
        return SummaryLabel.PNES
    if acc.syncope_suspected:
        return SummaryLabel.UNKNOWN
    if acc.generalized >= acc.focal + margin and acc.generalized >= margin:
        return SummaryLabel.GENERALIZED
    if acc.focal >= acc.generalized + margin and acc.focal >= margin:
        return SummaryLabel.FOCAL
    return SummaryLabel.UNKNOWN


def is_borderline(
    acc: ScoreAccumulator,
    probabilities: Probabilities,
    confidence: float,
    settings: ClassifierSettings,
) -> bool:
    """Red-flag banner: contradictory evidence, or a close focal/generalized call.

    A recognised syncope pattern suppresses the close-call banner (but not
    the contradiction one).
    """
    if acc.unusual_pattern:
        return True
    if acc.syncope_suspected:
        return False
    gap = abs(probabilities.focal - probabilities.generalized)
    return gap < settings.borderline_probability_gap and confidence < settings.borderline_confidence


def decide(acc: ScoreAccumulator, settings: ClassifierSettings | None = None) -> Decision:
    """Normalise *acc* into probabilities and apply the decision policy."""
    settings = settings or ClassifierSettings()
    focal, generalized, pnes = softmax([acc.focal, acc.generalized, acc.pnes])
    probabilities = Probabilities(focal=focal, generalized=generalized, pnes=pnes)
    confidence = max(focal, generalized, pnes)
    label = summary_label(acc, settings)
    borderline = is_borderline(acc, probabilities, confidence, settings)
    logger.debug(
        "Decision %s (confidence %.3f, borderline=%s)", label.value, confidence, borderline
    )
    return Decision(
        probabilities=probabilities,
        confidence=confidence,
        summary_label=label,
        borderline=borderline,
    )
