"""Classification and recommendation mapper.

Combines the decision (summary label, borderline flag) with fine-grained
answer patterns to select one named clinical profile and its ordered
recommendations, then assembles the immutable :class:`ClassificationResult`.

Profile selection runs top to bottom; the first match wins:

  - Syncope                     syncope pattern with low epileptic probabilities
  - Functional (mimic)          bilateral convulsion, no confusion, PNES evidence
  - Functional                  hard PNES gate, or a dissociative description
                                with at least two functional features
  - seizure-type profiles       absence, myoclonic, tonic-clonic, atonic, focal
  - Unclassified                everything else, with the summary label overlaid

Every profile's guidance is prefixed by the advisories, in this order:
red flag → overlap → high-risk structural etiology → contextual notes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from seizure_classifier.config import ClassifierSettings
from seizure_classifier.constants import (
    FUNCTIONAL_FEATURE_MINIMUM,
    SYNCOPE_ONSET_PROBABILITY_CEILING,
)
from seizure_classifier.models.result import (
    ClassificationResult,
    ClinicalProfile,
    Decision,
    Onset,
    SummaryLabel,
)
from seizure_classifier.models.scoring import Contributor, ScoreAccumulator
from seizure_classifier.scoring import Features, extract_features

logger = logging.getLogger(__name__)

_MOTOR_TYPE_LABELS = {
    "eyes_closed": "Eyes closed",
    "gradual": "Gradual build-up",
    "side_to_side": "Side-to-side thrashing",
    "crying": "Crying/vocalization",
    "long_duration": ">2 minutes duration",
    "hypermotor": "Hypermotor/dystonic movements",
    "pelvic_thrusting": "Pelvic thrusting/flailing",
}


def format_motor_type(value: str) -> str:
    return _MOTOR_TYPE_LABELS.get(value, value)


@dataclass
class _Draft:
    """Mutable profile under construction; frozen into ClinicalProfile at the end."""

    profile: str
    type: str
    onset: Onset
    awareness: str
    motor_features: str
    recommendations: list[str] = field(default_factory=list)

    def freeze(self, advisories: list[str]) -> ClinicalProfile:
        return ClinicalProfile(
            profile=self.profile,
            type=self.type,
            onset=self.onset,
            awareness=self.awareness,
            motor_features=self.motor_features,
            recommendations=tuple(advisories + self.recommendations),
        )


# ---------------------------------------------------------------------------
# Advisories
# ---------------------------------------------------------------------------

def is_high_risk_structural(responses: Mapping[str, Any]) -> bool:
    """Structural brain injury history or Todd's phenomenon."""
    return responses.get("structural_history") == "yes" or responses.get("todd_paresis") == "yes"


def _advisories(
    responses: Mapping[str, Any],
    acc: ScoreAccumulator,
    decision: Decision,
    notes: list[str],
) -> list[str]:
    lines: list[str] = []

    if decision.borderline:
        if acc.unusual_pattern:
            lines.append(
                "Red flag: a bilateral convulsion without post-event confusion, or a "
                "prolonged convulsion with no injury or tongue bite, is unusual. "
                "Consider a functional event or convulsive syncope and refer for specialist review."
            )
        else:
            lines.append(
                "Red flag: focal and generalized evidence are closely balanced. "
                "Confirm with EEG and specialist review before choosing a narrow-spectrum agent."
            )

    if acc.possible_overlap:
        lines.append(
            "Possible SHE vs PNES: brief, stereotyped, sleep-onset hypermotor events may "
            "indicate sleep-related hypermotor epilepsy (SHE). Specialist review recommended."
        )

    if is_high_risk_structural(responses):
        lines.extend(
            [
                "HIGH-RISK STRUCTURAL ETIOLOGY (structural history or Todd's paresis):",
                "URGENT: Obtain MRI brain to confirm structural cause",
                "MANDATORY: Refer to neurology/epilepsy specialist for evaluation",
                "High recurrence risk (>=60%) meets ILAE criteria for epilepsy diagnosis after a single seizure",
                "Structural lesions may require specific interventions (e.g. epilepsy surgery if drug-resistant)",
            ]
        )

    lines.extend(notes)
    return lines


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

def _syncope(f: Features, acc: ScoreAccumulator, decision: Decision) -> Optional[_Draft]:
    p = decision.probabilities
    if not (
        acc.syncope_suspected
        and p.focal < SYNCOPE_ONSET_PROBABILITY_CEILING
        and p.generalized < SYNCOPE_ONSET_PROBABILITY_CEILING
    ):
        return None
    return _Draft(
        profile="Syncope",
        type="Syncope (Vasovagal Faint) - Suspected",
        onset=Onset.NON_EPILEPTIC,
        awareness="Transient loss of consciousness with rapid recovery",
        motor_features="Situational triggers present (emotional stress/pain/prolonged standing)",
        recommendations=[
            "Classic syncope criteria met: situational triggers + immediate recovery",
            "Assess for orthostatic hypotension, cardiac arrhythmia, and vasovagal triggers",
            "Counsel on hydration, avoiding prolonged standing, recognizing prodromal symptoms",
            "If recurrent, consider cardiology referral for ECG/Holter monitoring",
            "Syncope is the most common seizure mimic - epilepsy unlikely here",
        ],
    )


def _functional(f: Features, acc: ScoreAccumulator, decision: Decision) -> Optional[_Draft]:
    features = sorted(f.pnes_features)
    described = ", ".join(format_motor_type(v) for v in features)
    enough_features = len(features) >= FUNCTIONAL_FEATURE_MINIMUM
    gated = decision.summary_label == SummaryLabel.PNES

    if f.seizure_type == "bilateral_tonic_clonic" and f.immediate_recovery and (enough_features or gated):
        motor = "Bilateral movements without typical post-ictal confusion"
        if described:
            motor += "; PNES features: " + described
        return _Draft(
            profile="Functional mimicking bilateral tonic-clonic",
            type="Functional Seizure (suspected) - mimicking bilateral tonic-clonic",
            onset=Onset.NON_EPILEPTIC,
            awareness="Appeared unresponsive",
            motor_features=motor,
            recommendations=[
                "Unusual for true GTCS to have NO post-ictal confusion",
                "Assess for psychological stressors",
            ],
        )

    dissociative = f.seizure_type == "possible_dissociative"
    if not (gated or (dissociative and enough_features)):
        return None

    draft = _Draft(
        profile="Functional",
        type="Functional Seizure / Dissociative Seizure (suspected)",
        onset=Onset.NON_EPILEPTIC,
        awareness=(
            "Responsiveness maintained during event"
            if dissociative
            else "Not established; functional indicators dominate"
        ),
        motor_features=described or "Functional event indicators (duration, recovery pattern)",
        recommendations=[
            "HIGH suspicion for Functional/Dissociative Seizure (PNES)",
            "Screen for psychiatric comorbidities (anxiety, depression, PTSD, trauma)",
            "CBT (Cognitive Behavioral Therapy) is first-line treatment",
            "Multidisciplinary approach: neurology + psychiatry/psychology",
        ],
    )
    if f.immediate_recovery:
        draft.recommendations.append("Immediate recovery without post-ictal state supports PNES diagnosis")
    return draft


def _absence(f: Features, responses: Mapping[str, Any]) -> _Draft:
    if f.immediate_staring_recovery:
        motor = "Non-motor: behavioral arrest with abrupt onset/offset (<20 sec)"
        if responses.get("staring_details") == "with_movements":
            motor += " with subtle eyelid/oral automatisms"
        draft = _Draft(
            profile="Typical Absence",
            type="Absence Seizure - Typical",
            onset=Onset.GENERALIZED,
            awareness="Impaired awareness",
            motor_features=motor,
            recommendations=[
                "Valproate or Ethosuximide as first-line",
                "AVOID Carbamazepine (worsens absence seizures)",
                "Usually excellent prognosis if childhood absence epilepsy",
                "Hyperventilation provocation useful for diagnosis",
            ],
        )
    else:
        draft = _Draft(
            profile="Atypical Absence",
            type="Atypical Absence or Focal Impaired Awareness Seizure",
            onset=Onset.GENERALIZED,
            awareness="Impaired awareness",
            motor_features="Brief staring with post-ictal confusion",
            recommendations=[
                "Consider Levetiracetam (broad spectrum)",
                "May need video-EEG monitoring",
            ],
        )
    if responses.get("frequency") == "daily":
        draft.recommendations.append("High frequency suggests good response to treatment once started")
    return draft


def _myoclonic(f: Features, responses: Mapping[str, Any]) -> _Draft:
    draft = _Draft(
        profile="Myoclonic",
        type="Myoclonic Seizure",
        onset=Onset.GENERALIZED,
        awareness="Awareness typically preserved",
        motor_features="Motor: myoclonic (brief muscle jerks)",
    )
    if f.morning_jerks and responses.get("jerk_associated") == "yes":
        draft.profile = "JME"
        draft.type = "Juvenile Myoclonic Epilepsy (JME) - Highly Suspected"
        draft.recommendations = [
            "Valproate as first-line therapy (most effective for JME)",
            "Classic triad: morning myoclonic jerks + GTCS + photosensitivity",
            "Sleep hygiene CRITICAL - avoid sleep deprivation",
            "AVOID Carbamazepine, Phenytoin, Gabapentin (worsen myoclonus)",
            "Usually lifelong treatment required",
            "Good seizure control possible with medication compliance",
        ]
    elif f.morning_jerks:
        draft.profile = "Myoclonic (suspect JME)"
        draft.type = "Myoclonic Seizure (suspect JME)"
        draft.recommendations = [
            "Valproate as first-line",
            "Screen for other features of JME (GTCS, photosensitivity)",
            "Emphasize sleep hygiene",
            "AVOID Carbamazepine",
        ]
    else:
        draft.recommendations = [
            "Valproate or Levetiracetam as first-line",
            "AVOID Carbamazepine",
        ]
    if "flashing_lights" in f.triggers:
        draft.recommendations.append("Photosensitivity present - further supports JME diagnosis")
    return draft


def _tonic_clonic(f: Features) -> Optional[_Draft]:
    if f.post_ictal not in ("yes_prolonged", "yes_brief"):
        return None
    motor = "Motor: bilateral tonic-clonic (tonic phase followed by clonic phase)"
    if f.tongue_bite:
        motor += "; tongue bite/injury present (typical for GTCS)"
    if f.post_ictal == "yes_prolonged":
        motor += "; prolonged post-ictal confusion (>10 min)"
    draft = _Draft(
        profile="Generalized Tonic-Clonic",
        type="Generalized Onset Motor: Tonic-Clonic",
        onset=Onset.GENERALIZED,
        awareness="Impaired awareness (loss of consciousness)",
        motor_features=motor,
        recommendations=[
            "Valproate or Levetiracetam as first-line therapy",
            "Safety counseling: SUDEP awareness, bathing/swimming precautions",
            "Avoid triggers: sleep deprivation, alcohol, stress",
            "Ensure seizure-free for driving eligibility (country-specific rules)",
        ],
    )
    if f.status_epilepticus:
        draft.profile = "Generalized Tonic-Clonic Status Epilepticus"
        draft.type = "Generalized Tonic-Clonic Status Epilepticus"
        draft.recommendations.insert(0, "MEDICAL EMERGENCY: Seizure >5 minutes")
        draft.recommendations.extend(
            [
                "Ensure ABC (airway, breathing, circulation)",
                "Emergency benzodiazepines (Midazolam/Lorazepam) essential",
                "Investigate precipitating factors (infection, medication non-compliance)",
            ]
        )
    return draft


def _atonic(f: Features, responses: Mapping[str, Any]) -> _Draft:
    conscious = responses.get("fall_awareness") == "conscious"
    draft = _Draft(
        profile="Atonic",
        type="Generalized Onset Motor: Atonic",
        onset=Onset.GENERALIZED,
        awareness="May be aware but unable to prevent fall" if conscious else "Brief loss of consciousness",
        motor_features="Motor: atonic (sudden loss of muscle tone)",
        recommendations=[
            "Valproate as first-line therapy",
            "Consider protective headgear if frequent (prevent head injury)",
            "Assess for Lennox-Gastaut syndrome if multiple seizure types present",
            "Monitor for injuries - falls can cause serious trauma",
        ],
    )
    if responses.get("frequency") == "daily":
        draft.recommendations.append("Frequent falls - protective equipment essential")
    return draft


def _focal_motor(f: Features, responses: Mapping[str, Any]) -> _Draft:
    if responses.get("awareness") == "aware":
        draft = _Draft(
            profile="Focal Aware Motor",
            type="Focal Onset Aware Motor",
            onset=Onset.FOCAL,
            awareness="Aware",
            motor_features="Motor: focal motor onset (unilateral)",
        )
        if f.aura:
            draft.motor_features = "Aura followed by " + draft.motor_features
            draft.recommendations = [
                "Document aura details - critical for localization",
                "Aura alone is a focal aware seizure (treat even if no motor symptoms follow)",
            ]
        draft.recommendations.append("Carbamazepine CR or Levetiracetam as first-line")
    elif f.spread_bilateral:
        draft = _Draft(
            profile="Focal to Bilateral",
            type="Focal Onset to Bilateral Tonic-Clonic",
            onset=Onset.FOCAL,
            awareness="Aware at onset, then impaired",
            motor_features="Motor: focal onset evolving to bilateral tonic-clonic",
            recommendations=[
                "Treat as FOCAL epilepsy (NOT generalized)",
                "Carbamazepine CR or Levetiracetam as first-line",
                "Document any focal features at onset (critical for diagnosis)",
                "May be candidate for epilepsy surgery if drug-resistant",
            ],
        )
        if f.tongue_bite:
            draft.motor_features += "; tongue bite during bilateral phase"
    else:
        draft = _Draft(
            profile="Focal Impaired Awareness Motor",
            type="Focal Onset Impaired Awareness Motor",
            onset=Onset.FOCAL,
            awareness="Impaired awareness",
            motor_features="Motor: focal motor activity",
            recommendations=["Carbamazepine CR or Levetiracetam as first-line"],
        )

    if f.status_epilepticus:
        draft.type += " (Focal Status Epilepticus)"
        draft.recommendations.insert(0, "Prolonged focal seizure >5 min - requires urgent treatment")
    if "sleep_deprivation" in f.triggers:
        draft.recommendations.append("Sleep deprivation is a trigger - emphasize sleep hygiene")
    return draft


def _focal_impaired_awareness(f: Features, responses: Mapping[str, Any]) -> _Draft:
    automatisms = responses.get("automatisms") == "yes"
    draft = _Draft(
        profile="Focal Impaired Awareness",
        type="Focal Onset Impaired Awareness",
        onset=Onset.FOCAL,
        awareness="Impaired awareness",
        motor_features=(
            "Non-motor: behavioral arrest with automatisms (oral/manual)"
            if automatisms
            else "Non-motor: behavioral arrest"
        ),
        recommendations=[
            "Features consistent with temporal lobe epilepsy"
            if automatisms
            else "May be temporal or frontal lobe origin",
            "Carbamazepine CR or Levetiracetam as first-line",
            "Can progress to focal-to-bilateral if untreated",
            "Consider epilepsy surgery if drug-resistant",
        ],
    )
    if responses.get("duration") in ("2_to_5min", "over_5min"):
        draft.motor_features += " (prolonged episode)"
        draft.recommendations.append("Prolonged focal seizures increase risk of progression to bilateral")
    return draft


_SUMMARY_LINES = {
    SummaryLabel.FOCAL: [
        "Summary: pattern is more consistent with FOCAL epilepsy.",
        "Avoid narrow-spectrum sodium channel blockers for generalized epilepsy (if uncertain).",
    ],
    SummaryLabel.GENERALIZED: [
        "Summary: pattern is more consistent with GENERALIZED epilepsy.",
        "Consider broad-spectrum agents; avoid narrow-spectrum agents that may worsen generalized epilepsies.",
    ],
    SummaryLabel.UNKNOWN: [
        "Summary: onset type remains UNKNOWN - consider a broad-spectrum agent "
        "(e.g. Levetiracetam) in primary care if starting therapy.",
    ],
}

_TRIGGER_COUNSELLING = (
    ("sleep_deprivation", "Sleep hygiene: 7-8 hours nightly, regular sleep schedule"),
    ("stress", "Stress management: relaxation techniques, counseling if needed"),
    ("flashing_lights", "Photosensitivity: avoid flashing lights, use screen filters, polarized sunglasses"),
    ("missed_meds", "Medication adherence critical - use reminders/pill organizers"),
    ("alcohol", "Avoid alcohol - lowers seizure threshold and interferes with medications"),
)


def _unclassified(
    f: Features,
    responses: Mapping[str, Any],
    decision: Decision,
    age_at_onset_years: Optional[float],
    settings: ClassifierSettings,
) -> _Draft:
    onset = {
        SummaryLabel.FOCAL: Onset.FOCAL,
        SummaryLabel.GENERALIZED: Onset.GENERALIZED,
    }.get(decision.summary_label, Onset.UNKNOWN)

    recommendations = list(_SUMMARY_LINES.get(decision.summary_label, []))
    recommendations.extend(
        [
            "Detailed seizure history and witness account essential",
            "Video recording of events highly valuable for diagnosis",
            "Neurology consultation strongly advised",
            "Please correlate clinically with all available information",
        ]
    )

    frequency = responses.get("frequency")
    if frequency == "daily":
        recommendations.append("High frequency (daily) - urgent treatment initiation needed")
    elif frequency == "weekly":
        recommendations.append("Weekly seizures - consistent medication compliance essential")

    for trigger, line in _TRIGGER_COUNSELLING:
        if trigger in f.triggers:
            recommendations.append(line)

    if age_at_onset_years is not None:
        recommendations.append(
            f"Age at onset: {age_at_onset_years:g} years (younger onset increases generalized "
            f"probability; onset at or above {settings.age_prior_threshold:g} years favors focal)."
        )

    return _Draft(
        profile="Unclassified",
        type="Unclassified Seizure (Unknown Onset)",
        onset=onset,
        awareness="Unable to determine",
        motor_features="Insufficient information for classification",
        recommendations=recommendations,
    )


def select_profile(
    responses: Mapping[str, Any],
    acc: ScoreAccumulator,
    decision: Decision,
    age_at_onset_years: Optional[float] = None,
    settings: ClassifierSettings | None = None,
) -> ClinicalProfile:
    """Pick the clinical profile and build its prefixed recommendation list."""
    settings = settings or ClassifierSettings()
    f = extract_features(responses, age_at_onset_years)
    notes: list[str] = []

    draft = _syncope(f, acc, decision)
    if draft is None and acc.syncope_flag:
        notes.append(
            "Features suggest possible syncope (pain/emotion/standing + rapid recovery) - "
            "consider non-epileptic fainting workup."
        )
    if draft is None:
        draft = _functional(f, acc, decision)
    if draft is None and f.seizure_type == "possible_dissociative":
        notes.append("Consider functional component - video of event recommended")

    if draft is None:
        if f.seizure_type == "absence":
            draft = _absence(f, responses)
        elif f.seizure_type == "myoclonic":
            draft = _myoclonic(f, responses)
        elif f.seizure_type == "bilateral_tonic_clonic":
            draft = _tonic_clonic(f)
        elif f.seizure_type == "atonic":
            draft = _atonic(f, responses)
        elif f.seizure_type == "focal_motor":
            draft = _focal_motor(f, responses)
        elif f.seizure_type == "focal_impaired_awareness":
            draft = _focal_impaired_awareness(f, responses)

    if draft is None:
        draft = _unclassified(f, responses, decision, age_at_onset_years, settings)

    return draft.freeze(_advisories(responses, acc, decision, notes))


def explain(acc: ScoreAccumulator, limit: int) -> tuple[Contributor, ...]:
    """Top *limit* contributors by absolute applied contribution (stable order)."""
    applied = [c for c in acc.contributors if c.contribution != 0]
    ranked = sorted(applied, key=lambda c: abs(c.contribution), reverse=True)
    return tuple(ranked[:limit])


def build_result(
    responses: Mapping[str, Any],
    acc: ScoreAccumulator,
    decision: Decision,
    *,
    session_context: Any = None,
    age_at_onset_years: Optional[float] = None,
    settings: ClassifierSettings | None = None,
) -> ClassificationResult:
    """Assemble the immutable :class:`ClassificationResult`."""
    settings = settings or ClassifierSettings()
    profile = select_profile(responses, acc, decision, age_at_onset_years, settings)
    f = extract_features(responses, age_at_onset_years)

    result = ClassificationResult(
        session_context=session_context,
        age_at_onset_years=age_at_onset_years,
        profile=profile.profile,
        type=profile.type,
        onset=profile.onset,
        awareness=profile.awareness,
        motor_features=profile.motor_features,
        recommendations=profile.recommendations,
        probabilities=decision.probabilities,
        confidence=decision.confidence,
        summary_label=decision.summary_label,
        scores=acc.scores(),
        red_flag=decision.borderline,
        possible_overlap_flag=acc.possible_overlap,
        syncope_suspected=acc.syncope_suspected,
        high_risk_structural=is_high_risk_structural(responses),
        status_epilepticus=f.status_epilepticus,
        explanation=explain(acc, settings.top_contributors),
    )
    logger.info(
        "Classification: profile=%s summary=%s confidence=%.2f red_flag=%s",
        result.profile,
        result.summary_label.value,
        result.confidence,
        result.red_flag,
    )
    return result
