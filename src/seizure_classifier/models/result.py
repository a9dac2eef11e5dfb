"""Decision and classification result models.

``ClassificationResult`` is the only artifact handed to collaborators
outside the engine (renderers, record stores, audit sinks).  It is frozen:
once built it cannot be mutated, and two results built from the same
responses compare equal and serialise to identical JSON.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from seizure_classifier.models.scoring import Contributor


class Onset(str, Enum):
    """Clinical onset category reported on the result."""

    FOCAL = "Focal"
    GENERALIZED = "Generalized"
    UNKNOWN = "Unknown"
    NON_EPILEPTIC = "Non-epileptic"


class SummaryLabel(str, Enum):
    """Label chosen by the margin-gated decision policy."""

    FOCAL = "Focal"
    GENERALIZED = "Generalized"
    UNKNOWN = "Unknown"
    PNES = "PNES"


class Probabilities(BaseModel):
    """Softmax over the three raw scores; sums to 1."""

    model_config = ConfigDict(frozen=True)

    focal: float
    generalized: float
    pnes: float

    def as_dict(self) -> dict[str, float]:
        return {"focal": self.focal, "generalized": self.generalized, "pnes": self.pnes}


class Decision(BaseModel):
    """Output of :func:`seizure_classifier.decision.decide`."""

    model_config = ConfigDict(frozen=True)

    probabilities: Probabilities
    confidence: float
    summary_label: SummaryLabel
    borderline: bool


class ClinicalProfile(BaseModel):
    """Named profile selected by the mapper, with its ordered recommendations."""

    model_config = ConfigDict(frozen=True)

    profile: str
    type: str
    onset: Onset
    awareness: str
    motor_features: str
    recommendations: tuple[str, ...] = ()


class ClassificationResult(BaseModel):
    """Immutable output record of a completed classification."""

    model_config = ConfigDict(frozen=True)

    # Opaque host context (e.g. patient id), echoed back unchanged
    session_context: Optional[Any] = None
    age_at_onset_years: Optional[float] = None

    profile: str
    type: str
    onset: Onset
    awareness: str
    motor_features: str
    recommendations: tuple[str, ...]

    probabilities: Probabilities
    confidence: float
    summary_label: SummaryLabel
    scores: dict[str, float] = Field(default_factory=dict)

    red_flag: bool = False
    possible_overlap_flag: bool = False
    syncope_suspected: bool = False
    high_risk_structural: bool = False
    status_epilepticus: bool = False

    explanation: tuple[Contributor, ...] = ()
