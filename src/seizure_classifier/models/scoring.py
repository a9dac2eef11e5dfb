"""Score accumulator models produced by the scoring engine.

A :class:`ScoreAccumulator` is created fresh for every classification pass.
Rules mutate it only through :meth:`ScoreAccumulator.adjust`, which clamps
each score at zero and records the delta that was actually applied, so the
contributor list always sums to the final scores.
"""

from typing import Literal

from pydantic import BaseModel, Field

Target = Literal["focal", "generalized", "pnes"]


class Contributor(BaseModel):
    """One explainability record: which feature moved which score, by how much."""

    feature: str
    target: Target
    contribution: float


class ScoreAccumulator(BaseModel):
    """Running focal / generalized / PNES scores plus auxiliary signals."""

    focal: float = 0.0
    generalized: float = 0.0
    pnes: float = 0.0
    contributors: list[Contributor] = Field(default_factory=list)

    # Hard gate: PNES score after the primary gate rules reached the threshold
    is_high_pnes: bool = False
    # Situational syncope triggers with immediate recovery
    syncope_flag: bool = False
    # Stress-only trigger set, immediate recovery, no PNES surface features
    syncope_suspected: bool = False
    # Internally contradictory convulsive history (red flag)
    unusual_pattern: bool = False
    # Sleep-related hypermotor epilepsy vs functional event ambiguity
    possible_overlap: bool = False

    def adjust(self, target: Target, delta: float, feature: str) -> float:
        """Add *delta* to *target* (never below zero) and record the applied delta."""
        before = getattr(self, target)
        after = max(0.0, before + delta)
        setattr(self, target, after)
        applied = after - before
        self.contributors.append(
            Contributor(feature=feature, target=target, contribution=applied)
        )
        return applied

    def scores(self) -> dict[str, float]:
        return {"focal": self.focal, "generalized": self.generalized, "pnes": self.pnes}
