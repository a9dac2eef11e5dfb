"""Response store and navigation controller for the question graph.

The :class:`Navigator` is the only writer of the :class:`ResponseStore`.  It
walks the catalog from the first visible question, auto-skips questions whose
visibility rule fails, keeps a back-navigable history and prunes responses
that are no longer reachable after an answer changes.

States:
  - awaiting an answer: ``current_qid`` is a visible question id
  - completed: ``current_qid`` is None (navigation reached the result sentinel)

Every transition that fails (completion without the root answer, a broken
successor) rolls back to the state it started from before raising.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterator

from seizure_classifier.catalog import CatalogStore
from seizure_classifier.constants import RESULT_SENTINEL, ROOT_QID
from seizure_classifier.errors import ClassifierError, IncompleteInputError, InvalidAnswerError
from seizure_classifier.models.answer import MultiSelectAnswer, ScalarAnswer
from seizure_classifier.models.question import MultiSelectQuestion, Question

logger = logging.getLogger(__name__)

AnswerValue = ScalarAnswer | MultiSelectAnswer


# ---------------------------------------------------------------------------
# ResponseStore
# ---------------------------------------------------------------------------

class ResponseStore:
    """Mapping qid → validated answer, in the order answers were recorded."""

    def __init__(self) -> None:
        self._answers: dict[str, AnswerValue] = {}

    def __contains__(self, qid: str) -> bool:
        return qid in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._answers))

    def get(self, qid: str) -> AnswerValue | None:
        return self._answers.get(qid)

    def set(self, qid: str, answer: AnswerValue) -> None:
        self._answers[qid] = answer

    def delete(self, qid: str) -> bool:
        """Remove the response for *qid*; returns True if one existed."""
        return self._answers.pop(qid, None) is not None

    def clear(self) -> None:
        self._answers.clear()

    def snapshot(self) -> dict[str, Any]:
        """Plain values (str, float, list[str]) keyed by qid; safe to hand out."""
        return {qid: answer.plain() for qid, answer in self._answers.items()}

    def copy(self) -> "ResponseStore":
        clone = ResponseStore()
        clone._answers = dict(self._answers)
        return clone


# ---------------------------------------------------------------------------
# Navigator
# ---------------------------------------------------------------------------

class Navigator:
    """State machine over the question graph.

    Args:
        catalog: a loaded :class:`CatalogStore`.
    """

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog
        self.responses = ResponseStore()
        self.history: list[str] = []
        self.current_qid: str | None = None

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def completed(self) -> bool:
        return self.current_qid is None

    @property
    def can_go_back(self) -> bool:
        return bool(self.history)

    @property
    def current_question(self) -> Question | None:
        if self.current_qid is None:
            return None
        return self._catalog.question_by_id(self.current_qid)

    def state(self) -> tuple[ResponseStore, list[str], str | None]:
        """Capture the full navigator state for a later :meth:`restore`."""
        return self.responses.copy(), list(self.history), self.current_qid

    def restore(self, state: tuple[ResponseStore, list[str], str | None]) -> None:
        responses, history, current = state
        self.responses = responses.copy()
        self.history = list(history)
        self.current_qid = current

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> Question:
        """Discard all responses and history; move to the first visible question."""
        self.responses.clear()
        self.history = []
        first = self._catalog.first_visible_question({})
        self.current_qid = self._catalog.resolve(first.qid, {})
        logger.debug("Navigator started at %s", self.current_qid)
        return self._catalog.question_by_id(self.current_qid)

    def select_option(self, current_id: str, value: AnswerValue, next_id: str) -> Question | None:
        """Record *value* for *current_id* and advance to *next_id*.

        Returns the next question, or None when navigation completed.

        Raises:
            InvalidAnswerError: *current_id* is not the question on screen.
            IncompleteInputError: the result sentinel was reached before the
                root question was answered; state is rolled back.
            ConfigurationError: *next_id* (or a skip target) is unknown; state
                is rolled back.
        """
        self._require_current(current_id)
        saved = self.state()

        self.responses.set(current_id, value)
        self.prune()
        self.history.append(current_id)
        try:
            return self._transition(next_id)
        except ClassifierError:
            self.restore(saved)
            raise

    def toggle_multi_select_value(self, qid: str, value: str) -> MultiSelectAnswer:
        """Add or remove *value* in the list response for *qid* without advancing."""
        self._require_current(qid)
        question = self._catalog.question_by_id(qid)
        if not isinstance(question, MultiSelectQuestion):
            raise InvalidAnswerError(f"{qid} is not a multi_select question", qid=qid)
        if question.option(value) is None:
            raise InvalidAnswerError(f"{value!r} is not an option of {qid}", qid=qid)

        stored = self.responses.get(qid)
        if not isinstance(stored, MultiSelectAnswer):
            stored = MultiSelectAnswer()
        toggled = stored.toggled(value)
        self.responses.set(qid, toggled)
        self.prune()
        logger.debug("Toggled %s on %s → %s", value, qid, toggled.values)
        return toggled

    def continue_multi_select(self, qid: str) -> Question | None:
        """Advance past a multi_select question with its toggled list (may be empty)."""
        self._require_current(qid)
        question = self._catalog.question_by_id(qid)
        if not isinstance(question, MultiSelectQuestion):
            raise InvalidAnswerError(f"{qid} is not a multi_select question", qid=qid)
        stored = self.responses.get(qid)
        if not isinstance(stored, MultiSelectAnswer):
            stored = MultiSelectAnswer()
        return self.select_option(qid, stored, self._catalog.successor(question, stored.values))

    def go_back(self) -> Question | None:
        """Return to the previously answered question.

        With an empty history this is a no-op that returns None.  Otherwise
        the response of the question being left is deleted, and the popped
        question keeps its response so it can be shown pre-filled.
        """
        if not self.history:
            logger.debug("go_back with empty history: no-op")
            return None

        leaving = self.current_qid
        previous = self.history.pop()
        if leaving is not None:
            self.responses.delete(leaving)
        self.current_qid = previous
        self.prune()
        logger.debug("Navigated back from %s to %s", leaving or RESULT_SENTINEL, previous)
        return self._catalog.question_by_id(previous)

    # ------------------------------------------------------------------
    # Pruning
    # ------------------------------------------------------------------

    def prune(self) -> list[str]:
        """Delete responses that are hidden or off the answered path.

        Two passes: first drop responses whose question is no longer visible
        (repeated until stable, since each deletion can hide more questions),
        then drop responses that the replayed answered path no longer reaches.

        Returns the qids whose responses were removed.
        """
        removed: list[str] = []

        changed = True
        while changed:
            changed = False
            snapshot = self.responses.snapshot()
            for qid in list(self.responses):
                q = self._catalog.get(qid)
                if q is not None and not self._catalog.is_visible(q, snapshot):
                    self.responses.delete(qid)
                    removed.append(qid)
                    changed = True

        snapshot = self.responses.snapshot()
        reachable = set(self._catalog.reachable_qids(snapshot))
        if self.current_qid is not None:
            reachable.add(self.current_qid)
        for qid in list(self.responses):
            if qid not in reachable:
                self.responses.delete(qid)
                removed.append(qid)

        if removed:
            # History only ever holds answered questions
            self.history = [qid for qid in self.history if qid in self.responses]
            logger.debug("Pruned unreachable responses: %s", removed)
        return removed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_current(self, qid: str) -> None:
        if self.current_qid is None:
            raise InvalidAnswerError(
                f"Questionnaire is complete; cannot answer {qid}", qid=qid
            )
        if qid != self.current_qid:
            raise InvalidAnswerError(
                f"{qid} is not the current question (expected {self.current_qid})",
                qid=qid,
            )

    def _transition(self, target: str) -> Question | None:
        resolved = self._catalog.resolve(target, self.responses.snapshot())
        if resolved == RESULT_SENTINEL:
            if ROOT_QID not in self.responses:
                raise IncompleteInputError(
                    f"Cannot classify before {ROOT_QID} is answered",
                    missing=[ROOT_QID],
                )
            self.current_qid = None
            logger.debug("Navigation completed after %d answers", len(self.responses))
            return None
        if resolved != target:
            logger.debug("Skipped %s → %s", target, resolved)
        self.current_qid = resolved
        return self._catalog.question_by_id(resolved)

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the plain response snapshot."""
        return copy.deepcopy(self.responses.snapshot())
