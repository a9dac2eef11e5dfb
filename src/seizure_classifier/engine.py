"""ClassifierSession — the session facade hosts talk to.

One session object per classification run; there is no process-wide
classifier instance.  The session owns a :class:`Navigator` (and through it
the response store), the optional age-at-onset prior and the opaque host
context, and nothing else.

Typical flow::

    session = ClassifierSession(catalog)
    step = session.start(session_context="P-001", age_at_onset_years=8)
    step = session.answer("structural_history", "no")
    ...
    # step.type == "result" once navigation reaches the result sentinel
    session.handoff(sink)

All operations are synchronous and pure with respect to the response
snapshot: scoring, decision and mapping never mutate session state, and a
failing collaborator in :meth:`handoff` leaves it untouched.
"""

from __future__ import annotations

import copy
import logging
import math
from typing import Any

from seizure_classifier.catalog import CatalogStore
from seizure_classifier.config import ClassifierSettings, load_settings
from seizure_classifier.constants import DURATION_BUCKET_RANGES, ROOT_QID
from seizure_classifier.decision import decide
from seizure_classifier.errors import ClassifierError, IncompleteInputError, InvalidAnswerError
from seizure_classifier.interfaces import ClassificationSink, TextResolver
from seizure_classifier.localization import LocaleTextResolver
from seizure_classifier.mapper import build_result
from seizure_classifier.models.answer import parse_answer
from seizure_classifier.models.question import (
    MultiSelectQuestion,
    NumberRangeQuestion,
    Question,
    SingleSelectQuestion,
)
from seizure_classifier.models.result import ClassificationResult, Decision
from seizure_classifier.models.scoring import ScoreAccumulator
from seizure_classifier.models.session import (
    QuestionPayload,
    QuestionStep,
    ResultStep,
    StepResult,
)
from seizure_classifier.navigation import Navigator
from seizure_classifier.scoring import score, timing_matches_bucket

logger = logging.getLogger(__name__)


class ClassifierSession:
    """Runs one questionnaire from first question to classification result.

    Args:
        catalog: a loaded :class:`CatalogStore`
        settings: calibration and locale; defaults to :func:`load_settings`
        text_resolver: resolves prompt / label keys; defaults to a
            :class:`LocaleTextResolver` for ``settings.locale``
    """

    def __init__(
        self,
        catalog: CatalogStore,
        *,
        settings: ClassifierSettings | None = None,
        text_resolver: TextResolver | None = None,
    ) -> None:
        self._catalog = catalog
        self._settings = settings or load_settings()
        self._text = text_resolver or LocaleTextResolver(self._settings.locale)
        self._nav = Navigator(catalog)

        self._started = False
        self._session_context: Any = None
        self._age_at_onset_years: float | None = None
        self._result: ClassificationResult | None = None

    @classmethod
    def from_settings(cls, settings: ClassifierSettings | None = None) -> "ClassifierSession":
        """Build a session with its own catalog loaded from ``settings.catalog_path``."""
        settings = settings or load_settings()
        catalog = CatalogStore(settings.catalog_path).load()
        return cls(catalog, settings=settings)

    # ==================================================================
    # Read-only accessors
    # ==================================================================

    @property
    def settings(self) -> ClassifierSettings:
        return self._settings

    @property
    def session_context(self) -> Any:
        return self._session_context

    @property
    def age_at_onset_years(self) -> float | None:
        return self._age_at_onset_years

    @property
    def completed(self) -> bool:
        return self._started and self._nav.completed

    @property
    def history(self) -> list[str]:
        return list(self._nav.history)

    @property
    def responses(self) -> dict[str, Any]:
        """Deep copy of the plain response snapshot (qid → str | float | list[str])."""
        return self._nav.snapshot()

    def current_step(self) -> StepResult:
        """Return the current step without changing any state."""
        self._require_started()
        if self._nav.completed:
            return ResultStep(result=self.finalize())
        return self._question_step(self._nav.current_question)

    # ==================================================================
    # Lifecycle
    # ==================================================================

    def start(
        self,
        session_context: Any = None,
        age_at_onset_years: float | None = None,
    ) -> QuestionStep:
        """Begin a new run, fully discarding any previous responses and history.

        Raises:
            ValueError: if ``age_at_onset_years`` is not a finite non-negative number.
            ConfigurationError: if the catalog has no visible first question.
        """
        if age_at_onset_years is not None:
            if isinstance(age_at_onset_years, bool) or not isinstance(age_at_onset_years, (int, float)):
                raise ValueError(
                    f"age_at_onset_years must be a number, got {type(age_at_onset_years).__name__}"
                )
            if not math.isfinite(age_at_onset_years):
                raise ValueError(f"age_at_onset_years must be finite, got {age_at_onset_years!r}")
            if age_at_onset_years < 0:
                raise ValueError("age_at_onset_years must be >= 0")
            age_at_onset_years = float(age_at_onset_years)

        self._session_context = session_context
        self._age_at_onset_years = age_at_onset_years
        self._result = None
        first = self._nav.start()
        self._started = True
        logger.info(
            "Classifier session started (age_at_onset=%s, first question=%s)",
            age_at_onset_years,
            first.qid,
        )
        return self._question_step(first)

    def answer(self, qid: str, value: Any) -> StepResult:
        """Validate and record an answer for the current question, then advance.

        For multi_select questions ``value`` is the full list of selected
        values (possibly empty); it replaces anything toggled so far.

        Returns the next :class:`QuestionStep`, or a :class:`ResultStep` when
        navigation reached the result sentinel.

        Raises:
            InvalidAnswerError: wrong question, or a value the question does
                not accept.  State is unchanged.
            IncompleteInputError: the result was reached before the root
                question was answered.  State is unchanged.
        """
        question = self._require_current(qid)
        try:
            parsed = parse_answer(question, value)
            if question.qid == "duration_seconds":
                self._check_timing(parsed.plain())
        except InvalidAnswerError:
            logger.warning("Rejected answer for %s: %r", qid, value)
            raise

        next_id = self._catalog.successor(question, parsed.plain())
        nxt = self._nav.select_option(qid, parsed, next_id)
        self._result = None
        if nxt is None:
            return ResultStep(result=self.finalize())
        return self._question_step(nxt)

    def toggle(self, qid: str, value: str) -> QuestionStep:
        """Add or remove one value of the current multi_select question."""
        question = self._require_current(qid)
        self._nav.toggle_multi_select_value(qid, value)
        self._result = None
        return self._question_step(question)

    def continue_multi_select(self, qid: str) -> StepResult:
        """Advance past the current multi_select question with its toggled values."""
        self._require_current(qid)
        nxt = self._nav.continue_multi_select(qid)
        self._result = None
        if nxt is None:
            return ResultStep(result=self.finalize())
        return self._question_step(nxt)

    def back(self) -> QuestionStep | None:
        """Return to the previous question; None (no-op) with an empty history."""
        self._require_started()
        previous = self._nav.go_back()
        if previous is None:
            return None
        self._result = None
        return self._question_step(previous)

    def finalize(self) -> ClassificationResult:
        """Score, decide and map the current responses into the final result.

        Called implicitly when navigation completes; may also be called
        early by the host once the root question has been answered.  The
        result is cached until the responses change.

        Raises:
            IncompleteInputError: the root classification question is unanswered.
        """
        self._require_started()
        if self._result is not None:
            return self._result

        snapshot = self._nav.snapshot()
        if ROOT_QID not in snapshot:
            raise IncompleteInputError(
                f"Cannot classify before {ROOT_QID} is answered", missing=[ROOT_QID]
            )

        acc, decision = self._evaluate(snapshot)
        self._result = build_result(
            snapshot,
            acc,
            decision,
            session_context=self._session_context,
            age_at_onset_years=self._age_at_onset_years,
            settings=self._settings,
        )
        return self._result

    def handoff(self, sink: ClassificationSink) -> ClassificationResult:
        """Deliver the final result and a copy of the responses to *sink*.

        Only allowed once navigation has completed.  Sink failures are logged
        and re-raised; engine state is not touched either way.
        """
        if not self.completed:
            raise IncompleteInputError("Cannot hand off before the questionnaire is complete")
        result = self.finalize()
        try:
            sink.deliver(result, copy.deepcopy(self._nav.snapshot()))
        except Exception:
            logger.warning("Classification sink %s failed", type(sink).__name__, exc_info=True)
            raise
        logger.info("Classification handed off to %s", type(sink).__name__)
        return result

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _require_started(self) -> None:
        if not self._started:
            raise ClassifierError("Session not started; call start() first")

    def _require_current(self, qid: str) -> Question:
        self._require_started()
        question = self._nav.current_question
        if question is None:
            raise InvalidAnswerError(f"Questionnaire is complete; cannot answer {qid}", qid=qid)
        if question.qid != qid:
            raise InvalidAnswerError(
                f"{qid} is not the current question (expected {question.qid})", qid=qid
            )
        return question

    def _check_timing(self, seconds: float) -> None:
        """Reject an exact timing that contradicts the chosen duration bucket."""
        bucket = self._nav.responses.snapshot().get("duration")
        if not timing_matches_bucket(seconds, bucket):
            low, high = DURATION_BUCKET_RANGES[bucket]
            upper = f"{high:g}" if high is not None else "max"
            raise InvalidAnswerError(
                f"duration_seconds: {seconds:g} contradicts duration={bucket!r} "
                f"(expected {low:g}-{upper})",
                qid="duration_seconds",
            )

    def _evaluate(self, snapshot: dict[str, Any]) -> tuple[ScoreAccumulator, Decision]:
        acc = score(snapshot, self._age_at_onset_years, self._settings)
        return acc, decide(acc, self._settings)

    def _question_step(self, question: Question) -> QuestionStep:
        snapshot = self._nav.snapshot()
        acc, decision = self._evaluate(snapshot)
        return QuestionStep(
            question=self._question_to_payload(question, snapshot.get(question.qid)),
            progress=self._catalog.progress(snapshot),
            can_go_back=self._nav.can_go_back,
            red_flag=decision.borderline,
            possible_overlap=acc.possible_overlap,
        )

    def _question_to_payload(self, question: Question, selected: Any) -> QuestionPayload:
        """Convert a typed Question into a flat payload with resolved text."""
        context = {"qid": question.qid, "question_type": question.question_type}
        if isinstance(question, NumberRangeQuestion):
            context.update(
                min_value=question.min_value,
                max_value=question.max_value,
                step=question.step,
                unit=question.unit or "",
            )

        payload = QuestionPayload(
            qid=question.qid,
            prompt=self._text.resolve(question.prompt, context),
            question_type=question.question_type,
            selected=selected,
        )

        if isinstance(question, SingleSelectQuestion):
            payload.options = [
                {"value": o.value, "label": self._text.resolve(o.label, context)}
                for o in question.options
            ]
            payload.answer_schema = {
                "type": "string",
                "enum": [o.value for o in question.options],
            }

        elif isinstance(question, MultiSelectQuestion):
            payload.options = [
                {"value": o.value, "label": self._text.resolve(o.label, context)}
                for o in question.options
            ]
            payload.answer_schema = {
                "type": "array",
                "items": {"type": "string", "enum": [o.value for o in question.options]},
            }

        elif isinstance(question, NumberRangeQuestion):
            payload.constraints = {
                "min": question.min_value,
                "max": question.max_value,
                "step": question.step,
                "unit": question.unit,
            }
            payload.answer_schema = {
                "type": "number",
                "minimum": question.min_value,
                "maximum": question.max_value,
            }

        return payload
