"""End-to-end tests for ClassifierSession.

Scenario table (all with structural_history = "no"):

  | Scenario | Path highlights                                  | Profile                         | Label       |
  |----------|--------------------------------------------------|---------------------------------|-------------|
  | A        | absence, immediate recovery, age 8               | Typical Absence                 | Generalized |
  | B        | possible dissociative, eyes closed, long         | Functional                      | PNES        |
  | C        | BTC, tongue bite, no post-event confusion        | Unclassified (red flag)         | Unknown     |
  | D        | FIA, brief, stress triggers, immediate recovery  | Syncope                         | Unknown     |
  | E        | back() on the first question                     | —                               | —           |
  | F        | sleep-onset stereotyped hypermotor, eyes closed  | Focal Impaired Awareness Motor  | Focal       |
"""

import pytest

from helpers.walk import run_script

from seizure_classifier.engine import ClassifierSession
from seizure_classifier.errors import ClassifierError, IncompleteInputError, InvalidAnswerError
from seizure_classifier.interfaces import ClassificationSink
from seizure_classifier.models.result import Onset, SummaryLabel

SCENARIO_A = {
    "structural_history": "no",
    "seizure_type": "absence",
    "staring_details": "just_staring",
    "staring_recovery": "immediate",
    "triggers": ["none"],
    "frequency": "monthly",
}

SCENARIO_B = {
    "structural_history": "no",
    "seizure_type": "possible_dissociative",
    "pnes_features": ["eyes_closed", "long_duration"],
    "triggers": ["none"],
    "frequency": "weekly",
    "cluster_frequency": "no",
}

SCENARIO_C = {
    "structural_history": "no",
    "seizure_type": "bilateral_tonic_clonic",
    "aura_check_bilateral": "no",
    "duration": "1_to_2min",
    "syncope_triggers": ["none"],
    "event_stereotypy": "unknown",
    "post_ictal": "no",
    "todd_paresis": "no",
    "tongue_bite": "yes",
    "pnes_features": ["none"],
    "triggers": ["none"],
    "frequency": "rare",
    "cluster_frequency": "no",
}

SCENARIO_D = {
    "structural_history": "no",
    "seizure_type": "focal_impaired_awareness",
    "automatisms": "no",
    "duration": "under_1min",
    "syncope_triggers": ["stress_pain"],
    "post_ictal": "no",
    "todd_paresis": "no",
    "tongue_bite": "no",
    "pnes_features": ["none"],
    "triggers": ["stress"],
    "frequency": "rare",
}

SCENARIO_F = {
    "structural_history": "no",
    "seizure_type": "focal_motor",
    "awareness": "unaware",
    "spread_bilateral": "no",
    "duration": "under_1min",
    "syncope_triggers": ["none"],
    "event_stereotypy": "yes",
    "post_ictal": "no",
    "todd_paresis": "no",
    "tongue_bite": "no",
    "pnes_features": ["hypermotor", "eyes_closed"],
    "triggers": ["sleep_onset"],
    "frequency": "weekly",
    "cluster_frequency": "yes",
}


class RecordingSink(ClassificationSink):
    def __init__(self):
        self.delivered = []

    def deliver(self, result, responses):
        self.delivered.append((result, responses))


class FailingSink(ClassificationSink):
    def deliver(self, result, responses):
        raise RuntimeError("record store unavailable")


# =====================================================================
# Start
# =====================================================================


class TestStart:

    def test_first_question(self, session):
        step = session.start()
        assert step.type == "question"
        assert step.question.qid == "structural_history"
        assert step.question.question_type == "single_select"
        assert [o["label"] for o in step.question.options] == ["Yes", "No", "Not sure"]
        assert step.question.answer_schema == {"type": "string", "enum": ["yes", "no", "unknown"]}
        assert step.progress == 0
        assert not step.can_go_back

    def test_start_is_idempotent(self, session):
        first = session.start()
        assert session.start().model_dump() == first.model_dump()

    def test_start_discards_previous_run(self, session):
        run_script(session, SCENARIO_A)
        assert session.completed
        step = session.start()
        assert step.question.qid == "structural_history"
        assert session.responses == {}
        assert session.history == []
        assert not session.completed

    @pytest.mark.parametrize("age", ["eight", -1, True, [8], float("nan"), float("inf")])
    def test_invalid_age(self, session, age):
        with pytest.raises(ValueError):
            session.start(age_at_onset_years=age)

    def test_age_and_context_kept(self, session):
        session.start(session_context="P-001", age_at_onset_years=8)
        assert session.session_context == "P-001"
        assert session.age_at_onset_years == 8.0

    def test_operations_require_start(self, session):
        with pytest.raises(ClassifierError, match="not started"):
            session.answer("structural_history", "no")
        with pytest.raises(ClassifierError):
            session.back()
        with pytest.raises(ClassifierError):
            session.current_step()


# =====================================================================
# Scenarios
# =====================================================================


class TestScenarios:

    def test_a_typical_absence(self, session):
        step = run_script(session, SCENARIO_A, age=8)
        assert step.type == "result"
        result = step.result
        assert result.summary_label == SummaryLabel.GENERALIZED
        assert result.profile == "Typical Absence"
        assert result.onset == Onset.GENERALIZED
        assert result.scores["generalized"] == 5
        assert "AVOID Carbamazepine (worsens absence seizures)" in result.recommendations
        assert not result.red_flag

    def test_b_functional(self, session):
        result = run_script(session, SCENARIO_B).result
        assert result.summary_label == SummaryLabel.PNES
        assert result.profile == "Functional"
        assert result.onset == Onset.NON_EPILEPTIC
        assert result.scores["pnes"] == 6

    def test_c_contradictory_convulsion(self, session):
        result = run_script(session, SCENARIO_C).result
        assert result.scores == {"focal": 0.0, "generalized": 0.0, "pnes": 7.0}
        assert result.summary_label == SummaryLabel.UNKNOWN
        assert result.red_flag
        assert result.profile == "Unclassified"
        assert result.onset == Onset.UNKNOWN

    def test_d_syncope(self, session):
        result = run_script(session, SCENARIO_D).result
        assert result.scores == {"focal": 1.0, "generalized": 0.0, "pnes": 4.0}
        assert result.summary_label == SummaryLabel.UNKNOWN
        assert result.syncope_suspected
        assert result.profile == "Syncope"
        assert result.onset == Onset.NON_EPILEPTIC
        assert not result.red_flag

    def test_e_back_on_first_question(self, session):
        session.start()
        assert session.back() is None
        assert session.current_step().question.qid == "structural_history"
        assert session.responses == {}

    def test_f_possible_overlap(self, session):
        result = run_script(session, SCENARIO_F).result
        assert result.possible_overlap_flag
        assert result.summary_label == SummaryLabel.FOCAL
        assert result.profile == "Focal Impaired Awareness Motor"
        assert result.recommendations[0].startswith("Possible SHE vs PNES")

    def test_result_is_deterministic(self, catalog, settings, en_text):
        dumps = []
        for _ in range(2):
            s = ClassifierSession(catalog, settings=settings, text_resolver=en_text)
            dumps.append(run_script(s, SCENARIO_C, age=30, context="P-7").model_dump_json())
        assert dumps[0] == dumps[1]


# =====================================================================
# Answering
# =====================================================================


class TestAnswer:

    def test_invalid_value_leaves_state(self, session):
        session.start()
        session.answer("structural_history", "no")
        with pytest.raises(InvalidAnswerError):
            session.answer("seizure_type", "grand_mal")
        assert session.current_step().question.qid == "seizure_type"
        assert session.responses == {"structural_history": "no"}

    def test_wrong_question(self, session):
        session.start()
        with pytest.raises(InvalidAnswerError, match="not the current question"):
            session.answer("seizure_type", "absence")

    def test_answer_after_completion(self, session):
        run_script(session, SCENARIO_A)
        with pytest.raises(InvalidAnswerError, match="complete"):
            session.answer("frequency", "daily")

    def test_number_range_step(self, session):
        session.start()
        for qid, value in [
            ("structural_history", "no"),
            ("seizure_type", "focal_impaired_awareness"),
            ("automatisms", "yes"),
        ]:
            session.answer(qid, value)
        step = session.answer("duration", "over_5min")
        q = step.question
        assert q.qid == "duration_seconds"
        assert q.constraints == {"min": 0, "max": 4400, "step": 1, "unit": "seconds"}
        assert q.answer_schema["type"] == "number"
        assert "(0-4400)" in q.prompt

        step = session.answer("duration_seconds", "400")
        assert step.question.qid == "syncope_triggers"
        assert session.responses["duration_seconds"] == 400.0

    @pytest.mark.parametrize("bucket, seconds", [("over_5min", 30), ("2_to_5min", 95), ("2_to_5min", 600)])
    def test_timing_contradicting_bucket_rejected(self, session, bucket, seconds):
        session.start()
        for qid, value in [
            ("structural_history", "no"),
            ("seizure_type", "bilateral_tonic_clonic"),
            ("aura_check_bilateral", "no"),
            ("duration", bucket),
        ]:
            session.answer(qid, value)
        before = session.responses
        with pytest.raises(InvalidAnswerError, match="contradicts"):
            session.answer("duration_seconds", seconds)
        assert session.responses == before
        assert session.current_step().question.qid == "duration_seconds"

    def test_live_red_flag(self, session):
        session.start()
        for qid in list(SCENARIO_C)[:9]:
            step = session.answer(qid, SCENARIO_C[qid])
        assert step.question.qid == "pnes_features"
        assert step.red_flag

    def test_live_overlap_banner(self, session):
        session.start()
        for qid in list(SCENARIO_F)[:12]:
            step = session.answer(qid, SCENARIO_F[qid])
        assert step.question.qid == "frequency"
        assert step.possible_overlap

    def test_responses_are_a_copy(self, session):
        session.start()
        session.answer("structural_history", "no")
        session.answer("seizure_type", "absence")
        snapshot = session.responses
        snapshot["seizure_type"] = "atonic"
        assert session.responses["seizure_type"] == "absence"


class TestMultiSelect:

    @pytest.fixture
    def at_triggers(self, session):
        session.start()
        for qid in ("structural_history", "seizure_type", "staring_details", "staring_recovery"):
            session.answer(qid, SCENARIO_A[qid])
        return session

    def test_toggle_then_continue(self, at_triggers):
        step = at_triggers.toggle("triggers", "stress")
        assert step.question.qid == "triggers"
        assert step.question.selected == ["stress"]
        step = at_triggers.toggle("triggers", "flashing_lights")
        assert step.question.selected == ["stress", "flashing_lights"]

        step = at_triggers.continue_multi_select("triggers")
        assert step.question.qid == "frequency"
        assert at_triggers.responses["triggers"] == ["stress", "flashing_lights"]

    def test_answer_replaces_toggled(self, at_triggers):
        at_triggers.toggle("triggers", "stress")
        at_triggers.answer("triggers", ["alcohol"])
        assert at_triggers.responses["triggers"] == ["alcohol"]

    def test_payload_schema(self, at_triggers):
        q = at_triggers.current_step().question
        assert q.answer_schema["type"] == "array"
        assert "none" in q.answer_schema["items"]["enum"]

    def test_toggle_on_single_select(self, session):
        session.start()
        with pytest.raises(InvalidAnswerError):
            session.toggle("structural_history", "yes")


# =====================================================================
# Back-navigation
# =====================================================================


class TestBack:

    def test_prefilled_on_back(self, session):
        session.start()
        session.answer("structural_history", "yes")
        step = session.back()
        assert step.question.qid == "structural_history"
        assert step.question.selected == "yes"
        assert not step.can_go_back

    def test_back_from_result(self, session):
        run_script(session, SCENARIO_A)
        step = session.back()
        assert step.type == "question"
        assert step.question.qid == "frequency"
        assert not session.completed
        step = session.answer("frequency", "daily")
        assert step.type == "result"
        assert step.result.recommendations[-1].startswith("High frequency")

    def test_change_branch(self, session):
        session.start()
        session.answer("structural_history", "no")
        session.answer("seizure_type", "myoclonic")
        session.answer("jerk_timing", "morning")
        session.back()
        session.back()
        step = session.answer("seizure_type", "absence")
        assert step.question.qid == "staring_details"
        assert set(session.responses) == {"structural_history", "seizure_type"}


# =====================================================================
# Finalize / handoff
# =====================================================================


class TestFinalize:

    def test_finalize_before_root_answer(self, session):
        session.start()
        session.answer("structural_history", "no")
        with pytest.raises(IncompleteInputError) as exc_info:
            session.finalize()
        assert exc_info.value.missing == ["seizure_type"]

    def test_early_finalize(self, session):
        session.start()
        session.answer("structural_history", "no")
        session.answer("seizure_type", "atonic")
        result = session.finalize()
        assert result.profile == "Atonic"
        assert not session.completed

    def test_current_step_after_completion(self, session):
        step = run_script(session, SCENARIO_B)
        assert session.current_step() == step


class TestHandoff:

    def test_requires_completion(self, session):
        session.start()
        with pytest.raises(IncompleteInputError):
            session.handoff(RecordingSink())

    def test_delivers_result_and_copy(self, session):
        run_script(session, SCENARIO_D, context={"patient_id": "P-001"})
        sink = RecordingSink()
        result = session.handoff(sink)
        delivered, responses = sink.delivered[0]
        assert delivered == result
        assert delivered.session_context == {"patient_id": "P-001"}
        responses["triggers"].append("alcohol")
        assert session.responses["triggers"] == ["stress"]

    def test_failing_sink(self, session, caplog):
        run_script(session, SCENARIO_D)
        before = session.responses
        with pytest.raises(RuntimeError, match="record store unavailable"):
            session.handoff(FailingSink())
        assert session.completed
        assert session.responses == before
        assert any("FailingSink" in r.getMessage() for r in caplog.records)
