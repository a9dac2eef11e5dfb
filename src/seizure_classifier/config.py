"""Classifier configuration — reads settings from environment variables.

All settings default to the module-level values in
:mod:`seizure_classifier.constants`.  A session takes a
:class:`ClassifierSettings` instance so tests and hosts can pin a calibration
explicitly instead of relying on process environment.
"""

import os
from dataclasses import dataclass

from seizure_classifier.constants import (
    AGE_PRIOR_THRESHOLD,
    BORDERLINE_CONFIDENCE,
    BORDERLINE_PROBABILITY_GAP,
    DEFAULT_LOCALE,
    MARGIN_THRESHOLD,
    PNES_GATE_THRESHOLD,
    TOP_CONTRIBUTORS,
)


@dataclass(frozen=True)
class ClassifierSettings:
    """Immutable classifier configuration."""

    # Decision policy
    margin_threshold: float = MARGIN_THRESHOLD
    pnes_gate_threshold: float = PNES_GATE_THRESHOLD

    # Age prior (years)
    age_prior_threshold: float = AGE_PRIOR_THRESHOLD

    # Borderline / red-flag banner
    borderline_probability_gap: float = BORDERLINE_PROBABILITY_GAP
    borderline_confidence: float = BORDERLINE_CONFIDENCE

    # Explanation
    top_contributors: int = TOP_CONTRIBUTORS

    # Text resolution
    locale: str = DEFAULT_LOCALE

    # Catalog location (None → the catalog bundled with the package)
    catalog_path: str | None = None


def load_settings() -> ClassifierSettings:
    """Build settings from ``SEIZURE_*`` environment variables."""
    return ClassifierSettings(
        margin_threshold=float(os.getenv("SEIZURE_MARGIN_THRESHOLD", str(MARGIN_THRESHOLD))),
        pnes_gate_threshold=float(
            os.getenv("SEIZURE_PNES_GATE_THRESHOLD", str(PNES_GATE_THRESHOLD))
        ),
        age_prior_threshold=float(
            os.getenv("SEIZURE_AGE_PRIOR_THRESHOLD", str(AGE_PRIOR_THRESHOLD))
        ),
        borderline_probability_gap=float(
            os.getenv("SEIZURE_BORDERLINE_GAP", str(BORDERLINE_PROBABILITY_GAP))
        ),
        borderline_confidence=float(
            os.getenv("SEIZURE_BORDERLINE_CONFIDENCE", str(BORDERLINE_CONFIDENCE))
        ),
        top_contributors=int(os.getenv("SEIZURE_TOP_CONTRIBUTORS", str(TOP_CONTRIBUTORS))),
        locale=os.getenv("SEIZURE_LOCALE", DEFAULT_LOCALE),
        catalog_path=os.getenv("SEIZURE_CATALOG_PATH") or None,
    )
