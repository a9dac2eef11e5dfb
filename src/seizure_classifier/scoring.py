"""Feature extraction and weighted scoring.

:func:`score` turns a plain response snapshot (plus the optional age at
onset) into a :class:`ScoreAccumulator`.  It is a pure function: the same
inputs always yield the same scores, flags and contributor records.

Scoring runs an ordered list of rules over pre-extracted :class:`Features`.
Order matters because the later groups are corrective overrides that act on
the scores produced by the earlier ones:

  1. PNES gate           — functional-event indicators; sets ``is_high_pnes``
  2. Lateralising        — focal vs generalized evidence
  3. Age prior           — small nudge from age at onset
  4. Contextual mimics   — syncope triggers, stress-only trigger sets
  5. Contradictions      — red-flag convulsive histories
  6. Overlap             — SHE vs functional event ambiguity

Every score is clamped at zero; the contributor records hold the delta that
was actually applied (see :meth:`ScoreAccumulator.adjust`).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from seizure_classifier.config import ClassifierSettings
from seizure_classifier.constants import (
    BRIEF_EVENT_SECONDS,
    CHAOTIC_MOVEMENT_FEATURES,
    DURATION_BUCKET_RANGES,
    DURATION_BUCKET_SECONDS,
    MINIMAL_POST_ICTAL_SECONDS,
    NONE_VALUE,
    PNES_SURFACE_FEATURES,
    POST_ICTAL_SECONDS,
    PROLONGED_EVENT_SECONDS,
    PROLONGED_POST_ICTAL_SECONDS,
    STATUS_EPILEPTICUS_SECONDS,
    STRESS_TRIGGERS,
)
from seizure_classifier.models.scoring import ScoreAccumulator

logger = logging.getLogger(__name__)

GENERALIZED_ONSET_TYPES = frozenset({"bilateral_tonic_clonic", "myoclonic", "absence", "atonic"})
FOCAL_ONSET_TYPES = frozenset({"focal_motor", "focal_impaired_awareness"})
JME_TRIGGERS = frozenset({"sleep_deprivation", "alcohol"})


# ---------------------------------------------------------------------------
# Feature extraction
# ---------------------------------------------------------------------------

def _as_list(value: Any) -> list[str]:
    """Selected values of a multi_select response, without the "none" placeholder."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = list(value)
    else:
        items = [value]
    return [str(v) for v in items if v and v != NONE_VALUE]


def timing_matches_bucket(seconds: float, bucket: Any) -> bool:
    """True if an exact timing falls inside the range of the chosen bucket.

    Unknown or missing buckets accept any timing.
    """
    bounds = DURATION_BUCKET_RANGES.get(bucket) if isinstance(bucket, str) else None
    if bounds is None:
        return True
    low, high = bounds
    return seconds >= low and (high is None or seconds <= high)


def event_duration_seconds(responses: Mapping[str, Any]) -> Optional[float]:
    """Exact timing if recorded and consistent, otherwise the bucket value."""
    bucket = responses.get("duration")
    exact = responses.get("duration_seconds")
    if isinstance(exact, (int, float)) and not isinstance(exact, bool):
        if timing_matches_bucket(float(exact), bucket):
            return float(exact)
        # stale timing left over from a bucket that was changed afterwards
        logger.debug("Ignoring duration_seconds=%s outside bucket %s", exact, bucket)
    if isinstance(bucket, str) and bucket in DURATION_BUCKET_SECONDS:
        return float(DURATION_BUCKET_SECONDS[bucket])
    return None


@dataclass(frozen=True)
class Features:
    """Derived view of a response snapshot used by every rule."""

    seizure_type: Optional[str] = None
    pnes_features: frozenset[str] = frozenset()
    triggers: tuple[str, ...] = ()
    syncope_triggers: tuple[str, ...] = ()
    duration_seconds: Optional[float] = None
    post_ictal: Optional[str] = None
    post_ictal_seconds: Optional[float] = None
    aura: bool = False
    structural_history: bool = False
    spread_bilateral: bool = False
    morning_jerks: bool = False
    immediate_staring_recovery: bool = False
    tongue_bite: bool = False
    todd_paresis: bool = False
    stereotypy: Optional[str] = None
    cluster_night: bool = False
    age_at_onset_years: Optional[float] = None

    # --- convenience predicates ---

    @property
    def eyes_closed(self) -> bool:
        return "eyes_closed" in self.pnes_features

    @property
    def chaotic_movement(self) -> bool:
        return bool(self.pnes_features & CHAOTIC_MOVEMENT_FEATURES)

    @property
    def long_duration_feature(self) -> bool:
        return "long_duration" in self.pnes_features

    @property
    def hypermotor(self) -> bool:
        return "hypermotor" in self.pnes_features

    @property
    def surface_feature_count(self) -> int:
        return len(self.pnes_features & PNES_SURFACE_FEATURES)

    @property
    def immediate_recovery(self) -> bool:
        return self.post_ictal == "no"

    @property
    def brief_event(self) -> bool:
        return self.duration_seconds is not None and self.duration_seconds < BRIEF_EVENT_SECONDS

    @property
    def sleep_onset(self) -> bool:
        return "sleep_onset" in self.triggers

    @property
    def stress_only(self) -> bool:
        """Every reported trigger (either question) is emotional stress or pain."""
        combined = set(self.triggers) | set(self.syncope_triggers)
        return bool(combined) and combined <= STRESS_TRIGGERS

    @property
    def status_epilepticus(self) -> bool:
        return (
            self.duration_seconds is not None
            and self.duration_seconds >= STATUS_EPILEPTICUS_SECONDS
        )


def extract_features(
    responses: Mapping[str, Any],
    age_at_onset_years: Optional[float] = None,
) -> Features:
    """Build :class:`Features` from a plain response snapshot."""
    post_ictal = responses.get("post_ictal")
    post_ictal_seconds = None
    if isinstance(post_ictal, str) and post_ictal in POST_ICTAL_SECONDS:
        post_ictal_seconds = float(POST_ICTAL_SECONDS[post_ictal])

    return Features(
        seizure_type=responses.get("seizure_type"),
        pnes_features=frozenset(_as_list(responses.get("pnes_features"))),
        triggers=tuple(_as_list(responses.get("triggers"))),
        syncope_triggers=tuple(_as_list(responses.get("syncope_triggers"))),
        duration_seconds=event_duration_seconds(responses),
        post_ictal=post_ictal,
        post_ictal_seconds=post_ictal_seconds,
        aura=responses.get("aura_present") == "yes"
        or responses.get("aura_check_bilateral") == "yes",
        structural_history=responses.get("structural_history") == "yes",
        spread_bilateral=responses.get("spread_bilateral") == "yes",
        morning_jerks=responses.get("jerk_timing") == "morning",
        immediate_staring_recovery=responses.get("staring_recovery") == "immediate",
        tongue_bite=responses.get("tongue_bite") == "yes",
        todd_paresis=responses.get("todd_paresis") == "yes",
        stereotypy=responses.get("event_stereotypy"),
        cluster_night=responses.get("cluster_frequency") == "yes",
        age_at_onset_years=age_at_onset_years,
    )


# ---------------------------------------------------------------------------
# Rules (each mutates the accumulator in place)
# ---------------------------------------------------------------------------

Rule = Callable[[Features, ScoreAccumulator, ClassifierSettings], None]


def pnes_gate(f: Features, acc: ScoreAccumulator, settings: ClassifierSettings) -> None:
    """Primary functional-event indicators; trips the hard gate at the threshold."""
    if f.eyes_closed:
        acc.adjust("pnes", 2, "eyes_closed")
    if f.duration_seconds is not None and f.duration_seconds >= PROLONGED_EVENT_SECONDS:
        acc.adjust("pnes", 3, "duration_prolonged")
    if f.chaotic_movement:
        acc.adjust("pnes", 2, "chaotic_movement")
    if f.seizure_type == "possible_dissociative":
        acc.adjust("pnes", 2, "possible_dissociative")
    if f.long_duration_feature:
        acc.adjust("pnes", 2, "long_duration")
    if f.immediate_recovery:
        acc.adjust("pnes", 3, "immediate_recovery")

    acc.is_high_pnes = acc.pnes >= settings.pnes_gate_threshold


def lateralising(f: Features, acc: ScoreAccumulator, settings: ClassifierSettings) -> None:
    """Focal vs generalized evidence."""
    # --- focal ---
    if f.aura:
        acc.adjust("focal", 3, "aura_present")
    if f.seizure_type in FOCAL_ONSET_TYPES:
        acc.adjust("focal", 2, "focal_onset_type")
    if f.structural_history:
        acc.adjust("focal", 4, "structural_history")
    if f.spread_bilateral:
        acc.adjust("focal", 2, "spread_bilateral")

    # --- generalized ---
    if f.seizure_type in GENERALIZED_ONSET_TYPES:
        acc.adjust("generalized", 2, "generalized_onset_types")
    if f.seizure_type == "myoclonic" and f.morning_jerks:
        acc.adjust("generalized", 4, "morning_myoclonus")
        if JME_TRIGGERS & set(f.triggers):
            acc.adjust("generalized", 1, "jme_trigger")
    if f.seizure_type == "absence" and f.immediate_staring_recovery:
        acc.adjust("generalized", 2, "typical_absence")

    # --- post-event findings ---
    if f.tongue_bite:
        acc.adjust("generalized", 2, "tongue_bite")
    if f.todd_paresis:
        acc.adjust("focal", 4, "todd_paresis")
    if f.post_ictal_seconds is not None and f.post_ictal_seconds >= PROLONGED_POST_ICTAL_SECONDS:
        acc.adjust("generalized", 2, "prolonged_post_ictal")

    # --- semiology supporting frontal / SHE-like focal epilepsy ---
    if f.stereotypy == "yes":
        acc.adjust("focal", 1, "stereotypy")
    elif f.stereotypy == "no":
        acc.adjust("pnes", 2, "non_stereotyped")
    if f.hypermotor:
        acc.adjust("focal", 1, "hypermotor")
    if f.brief_event:
        acc.adjust("focal", 1, "brief_movement")
    if f.sleep_onset:
        acc.adjust("focal", 1, "sleep_onset")
    if f.cluster_night:
        acc.adjust("focal", 1, "cluster_night")


def age_prior(f: Features, acc: ScoreAccumulator, settings: ClassifierSettings) -> None:
    """Younger onset nudges towards generalized, older towards focal."""
    if f.age_at_onset_years is None or not math.isfinite(f.age_at_onset_years):
        return
    if f.age_at_onset_years < settings.age_prior_threshold:
        acc.adjust("generalized", 1, "age_prior")
    else:
        acc.adjust("focal", 1, "age_prior")


def contextual_mimics(f: Features, acc: ScoreAccumulator, settings: ClassifierSettings) -> None:
    """Situational triggers with immediate recovery point away from epilepsy."""
    if f.immediate_recovery and f.syncope_triggers:
        acc.syncope_flag = True
        acc.adjust("pnes", 1, "syncope_triggers")
        acc.adjust("focal", -1, "syncope_triggers")
        acc.adjust("generalized", -1, "syncope_triggers")

    if (
        f.immediate_recovery
        and f.stress_only
        and f.surface_feature_count == 0
        and not acc.is_high_pnes
    ):
        acc.syncope_suspected = True
        acc.adjust("pnes", -1, "syncope_pattern")
        acc.adjust("focal", -1, "syncope_pattern")
        acc.adjust("generalized", -1, "syncope_pattern")

    if f.stress_only:
        acc.adjust("pnes", 1, "stress_exclusive")
        acc.adjust("generalized", -1, "stress_exclusive_neg")


def contradictions(f: Features, acc: ScoreAccumulator, settings: ClassifierSettings) -> None:
    """Convulsive histories that are internally inconsistent for a true GTCS."""
    bilateral = f.seizure_type == "bilateral_tonic_clonic"

    # Tongue bite with immediate recovery: true GTCS almost always leaves confusion
    if bilateral and f.tongue_bite and f.immediate_recovery:
        acc.unusual_pattern = True
        acc.adjust("pnes", 4, "tongue_bite_immediate_recovery")
        acc.adjust("generalized", -5, "tongue_bite_immediate_recovery_neg")

    # Long convulsion with neither injury nor meaningful post-event confusion
    if bilateral and f.status_epilepticus and not f.tongue_bite:
        minimal_post_ictal = (
            f.post_ictal_seconds is None
            or f.post_ictal_seconds < MINIMAL_POST_ICTAL_SECONDS
        )
        if minimal_post_ictal:
            acc.unusual_pattern = True
            acc.adjust("pnes", 2, "prolonged_gtcs_no_injury")
            acc.adjust("generalized", -2, "prolonged_gtcs_no_injury_neg")


def overlap(f: Features, acc: ScoreAccumulator, settings: ClassifierSettings) -> None:
    """Brief, stereotyped, sleep-onset hypermotor events with PNES surface features."""
    if (
        (f.eyes_closed or f.chaotic_movement or f.long_duration_feature)
        and f.stereotypy == "yes"
        and f.brief_event
        and f.sleep_onset
        and f.hypermotor
    ):
        acc.possible_overlap = True
        acc.is_high_pnes = False
        acc.adjust("pnes", -2, "possible_she_vs_pnes")
        acc.adjust("focal", 2, "possible_she_vs_pnes")


# Evaluation order is part of the model; see module docstring.
RULES: tuple[Rule, ...] = (
    pnes_gate,
    lateralising,
    age_prior,
    contextual_mimics,
    contradictions,
    overlap,
)


def score(
    responses: Mapping[str, Any],
    age_at_onset_years: Optional[float] = None,
    settings: ClassifierSettings | None = None,
) -> ScoreAccumulator:
    """Score a plain response snapshot.

    Args:
        responses: qid → str | float | list[str]
        age_at_onset_years: optional age prior
        settings: calibration; defaults to :class:`ClassifierSettings()`

    Returns:
        A fresh :class:`ScoreAccumulator`.
    """
    settings = settings or ClassifierSettings()
    features = extract_features(responses, age_at_onset_years)
    acc = ScoreAccumulator()
    for rule in RULES:
        rule(features, acc, settings)
    logger.debug(
        "Scored responses: focal=%s generalized=%s pnes=%s high_pnes=%s",
        acc.focal,
        acc.generalized,
        acc.pnes,
        acc.is_high_pnes,
    )
    return acc
