"""Classifier constants shared across the SDK.

These values are referenced by the catalog, navigator, scoring engine and
decision module.  They mirror conventions encoded in the YAML catalog under
``rules/``.

The decision thresholds are fixed calibration values carried over from the
clinical scoring sheet the questionnaire was built from.  They can be overridden via
environment variables so that deployments can experiment with calibration
without code changes, but the defaults must not be re-derived.
"""

import os

# Successor id meaning "stop asking questions and produce the result".
RESULT_SENTINEL = "result"

# qid of the root classification question.  A classification cannot be
# finalized until this question has an answer.
ROOT_QID = "seizure_type"

# Decision policy: the winning onset score must beat the runner-up by this
# margin, and must itself reach the margin, to be reported.
MARGIN_THRESHOLD = float(os.getenv("SEIZURE_MARGIN_THRESHOLD", "2"))

# PNES gate: a primary-gate PNES score at or above this value forces the
# non-epileptic summary label regardless of the focal/generalized scores.
PNES_GATE_THRESHOLD = float(os.getenv("SEIZURE_PNES_GATE_THRESHOLD", "4"))

# Age prior: onset below this age (years) nudges towards generalized onset,
# at or above it towards focal onset.
AGE_PRIOR_THRESHOLD = float(os.getenv("SEIZURE_AGE_PRIOR_THRESHOLD", "25"))

# Borderline banner: focal/generalized probability gap below this value ...
BORDERLINE_PROBABILITY_GAP = float(os.getenv("SEIZURE_BORDERLINE_GAP", "0.15"))
# ... combined with a confidence below this value.
BORDERLINE_CONFIDENCE = float(os.getenv("SEIZURE_BORDERLINE_CONFIDENCE", "0.75"))

# Number of contributor records surfaced in the result explanation.
TOP_CONTRIBUTORS = int(os.getenv("SEIZURE_TOP_CONTRIBUTORS", "5"))

# Default locale for question text.
DEFAULT_LOCALE = os.getenv("SEIZURE_LOCALE", "en")

# Representative seconds for each duration bucket of the ``duration``
# question.  Used when no exact timing was recorded.
DURATION_BUCKET_SECONDS: dict[str, float] = {
    "under_30s": 25,
    "30_to_60s": 45,
    "under_1min": 45,
    "1_to_2min": 90,
    "2_to_5min": 210,
    "over_5min": 360,
}

# Inclusive (low, high) seconds an exact timing may take for each bucket.
# None means no upper bound beyond the question's own max_value.
DURATION_BUCKET_RANGES: dict[str, tuple[float, float | None]] = {
    "under_30s": (0, 30),
    "30_to_60s": (30, 60),
    "under_1min": (0, 60),
    "1_to_2min": (60, 120),
    "2_to_5min": (120, 300),
    "over_5min": (300, None),
}

# Representative seconds of post-event confusion per ``post_ictal`` answer.
POST_ICTAL_SECONDS: dict[str, float] = {
    "no": 0,
    "yes_brief": 180,
    "yes_prolonged": 900,
}

# Duration thresholds (seconds) used by the scoring rules.
PROLONGED_EVENT_SECONDS = 120
BRIEF_EVENT_SECONDS = 60
STATUS_EPILEPTICUS_SECONDS = 300
PROLONGED_POST_ICTAL_SECONDS = 600
MINIMAL_POST_ICTAL_SECONDS = 120

# pnes_features values that describe chaotic / thrashing motor activity.
CHAOTIC_MOVEMENT_FEATURES: frozenset[str] = frozenset(
    {"side_to_side", "gradual", "hypermotor", "pelvic_thrusting"}
)

# Trigger values that count as emotional stress or pain.
STRESS_TRIGGERS: frozenset[str] = frozenset({"stress", "stress_pain"})

# Placeholder option meaning "none of these" in multi-select questions.
NONE_VALUE = "none"

# pnes_features values counted as functional-event surface features.  The
# syncope pattern requires none of them; the overlap detector requires one.
PNES_SURFACE_FEATURES: frozenset[str] = CHAOTIC_MOVEMENT_FEATURES | frozenset(
    {"eyes_closed", "long_duration"}
)

# Explicit syncope profile is only selected when both epileptic onset
# probabilities stay below this value.
SYNCOPE_ONSET_PROBABILITY_CEILING = 0.20

# A functional-event profile needs at least this many reported features.
FUNCTIONAL_FEATURE_MINIMUM = 2
