"""CatalogStore — loads the seizure question catalog from YAML into typed models.

This is the single source of truth for the question graph at runtime.  The
store is loaded once (per process or per test session), validated, and then
only read: every lookup is a pure function of the catalog and the response
snapshot passed in.

Usage::

    catalog = CatalogStore()        # defaults to the bundled rules/questions.yaml
    catalog.load()                  # parse + validate, raises ConfigurationError

    first = catalog.first_visible_question({})
    q = catalog.question_by_id("seizure_type")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import yaml
from pydantic import ValidationError

from seizure_classifier.constants import RESULT_SENTINEL
from seizure_classifier.errors import ConfigurationError
from seizure_classifier.evaluator import VisibilityEvaluator
from seizure_classifier.models.question import (
    NumberRangeQuestion,
    Question,
    SingleSelectQuestion,
    question_mapper,
)

logger = logging.getLogger(__name__)

RULES_DIR = Path(__file__).resolve().parent / "rules"
DEFAULT_CATALOG_PATH = RULES_DIR / "questions.yaml"


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# CatalogStore
# ---------------------------------------------------------------------------

class CatalogStore:
    """Loads the question catalog from YAML and provides typed lookup.

    Attributes populated after :meth:`load`:

        version    — catalog version string from the YAML header
        questions  — list[Question] in YAML order (the display order)
    """

    def __init__(self, catalog_path: str | Path | None = None) -> None:
        self._path = Path(catalog_path) if catalog_path else DEFAULT_CATALOG_PATH
        self._evaluator = VisibilityEvaluator()

        # Populated by load()
        self.version: str = ""
        self.questions: list[Question] = []
        self._by_id: dict[str, Question] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> "CatalogStore":
        """Parse the YAML catalog into typed models and validate the graph.

        Raises:
            FileNotFoundError: the catalog file does not exist.
            ConfigurationError: the catalog is malformed (see :meth:`validate`).
        """
        raw = load_yaml(self._path)
        if isinstance(raw, dict):
            self.version = str(raw.get("version", ""))
            raw_questions = raw.get("questions") or []
        else:
            raw_questions = raw or []
        self.load_questions(raw_questions)
        logger.info(
            "CatalogStore loaded %d questions from %s (version %s)",
            len(self.questions),
            self._path.name,
            self.version or "-",
        )
        return self

    def load_questions(self, raw_questions: Iterable[dict]) -> None:
        """Parse already-loaded question dicts (used by :meth:`load` and tests)."""
        parsed: list[Question] = []
        by_id: dict[str, Question] = {}
        for q_dict in raw_questions:
            qtype = q_dict.get("question_type")
            cls = question_mapper.get(qtype)
            if cls is None:
                raise ConfigurationError(
                    f"Unknown question_type '{qtype}' for qid {q_dict.get('qid')!r}"
                )
            try:
                q = cls(**q_dict)
            except ValidationError as exc:
                raise ConfigurationError(
                    f"Invalid question definition {q_dict.get('qid')!r}: {exc}"
                ) from exc
            if q.qid in by_id:
                raise ConfigurationError(f"Duplicate qid in catalog: {q.qid}")
            if q.qid == RESULT_SENTINEL:
                raise ConfigurationError(
                    f"qid {RESULT_SENTINEL!r} is reserved for the result sentinel"
                )
            parsed.append(q)
            by_id[q.qid] = q

        self.questions = parsed
        self._by_id = by_id
        self.validate()

    def validate(self) -> None:
        """Check graph integrity; raise ConfigurationError on the first problem.

        Checks:
          - the catalog is not empty
          - every successor / skip target is a known qid or the sentinel
          - every visibility clause references a known qid
          - every option has a resolvable successor
        """
        if not self.questions:
            raise ConfigurationError("Question catalog is empty")

        for q in self.questions:
            targets: list[tuple[str, Optional[str]]] = [
                ("next", q.next),
                ("skip_to", q.skip_to),
            ]
            if isinstance(q, SingleSelectQuestion):
                if not q.options:
                    raise ConfigurationError(f"{q.qid}: single_select without options")
                for opt in q.options:
                    targets.append((f"options[{opt.value}].next", opt.next))
                    if opt.next is None and q.next is None:
                        raise ConfigurationError(
                            f"{q.qid}: option {opt.value!r} has no successor"
                        )
            else:
                if q.next is None:
                    raise ConfigurationError(f"{q.qid}: {q.question_type} has no successor")
                if not isinstance(q, NumberRangeQuestion) and not q.options:
                    raise ConfigurationError(f"{q.qid}: multi_select without options")

            for field, target in targets:
                if target is None or target == RESULT_SENTINEL:
                    continue
                if target not in self._by_id:
                    raise ConfigurationError(
                        f"{q.qid}.{field} references unknown question {target!r}"
                    )

            for dep in q.dependencies:
                if dep not in self._by_id:
                    raise ConfigurationError(
                        f"{q.qid}.visible_if references unknown question {dep!r}"
                    )

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def __contains__(self, qid: str) -> bool:
        return qid in self._by_id

    def get(self, qid: str) -> Question | None:
        return self._by_id.get(qid)

    def question_by_id(self, qid: str) -> Question:
        """Return the question for *qid*.

        Raises:
            ConfigurationError: if the qid is not in the catalog.  Navigating to
                an unknown id means the graph itself is broken.
        """
        q = self._by_id.get(qid)
        if q is None:
            raise ConfigurationError(f"Unknown question id: {qid!r}")
        return q

    def is_visible(self, question: Question, responses: Mapping[str, Any]) -> bool:
        return self._evaluator.is_visible(question, responses)

    def first_visible_question(self, responses: Mapping[str, Any]) -> Question:
        """Return the first question (catalog order) whose visibility rule holds.

        Raises:
            ConfigurationError: if no question is visible.
        """
        for q in self.questions:
            if self.is_visible(q, responses):
                return q
        raise ConfigurationError("Question catalog has no visible first question")

    def resolve(self, target: str, responses: Mapping[str, Any]) -> str:
        """Resolve *target* to the qid that should actually be shown.

        Invisible questions are replaced by their ``skip_to`` (or the result
        sentinel), recursively.  Returns a visible qid or the sentinel.

        Raises:
            ConfigurationError: unknown qid, or a skip chain that loops.
        """
        seen: set[str] = set()
        current = target
        while current != RESULT_SENTINEL:
            if current in seen:
                raise ConfigurationError(
                    f"Skip cycle detected while resolving {target!r}: {sorted(seen)}"
                )
            seen.add(current)
            q = self.question_by_id(current)
            if self.is_visible(q, responses):
                return current
            current = q.skip_to or RESULT_SENTINEL
        return RESULT_SENTINEL

    def successor(self, question: Question, value: Any) -> str:
        """Declared successor of *question* for an answer *value* (unresolved)."""
        target = question.successor_for(value)
        if target is None:
            raise ConfigurationError(
                f"{question.qid}: no successor for answer {value!r}"
            )
        return target

    def reachable_qids(self, responses: Mapping[str, Any]) -> list[str]:
        """Replay the answered path from the first visible question.

        Follows each stored answer to its successor (resolving skips) until
        reaching an unanswered question (included, it is the frontier) or the
        result sentinel.  Responses for qids not in the returned list are not
        reachable under the other responses.

        Skips are resolved against the answers collected *so far* along the
        path, exactly as navigation saw them.  A visibility clause may refer
        to a question asked later (``event_stereotypy`` → ``pnes_features``);
        that later answer must not retroactively reopen a skipped question.
        """
        path: list[str] = []
        seen: dict[str, Any] = {}
        current = self.resolve(self.first_visible_question(seen).qid, seen)
        while current != RESULT_SENTINEL and current not in path:
            path.append(current)
            if current not in responses:
                break
            seen[current] = responses[current]
            q = self.question_by_id(current)
            current = self.resolve(self.successor(q, responses[current]), seen)
        return path

    def progress(self, responses: Mapping[str, Any]) -> int:
        """Percentage (0-100) of the questionnaire answered along the replayed path.

        A path that runs through to the result sentinel is 100 even when a
        question skipped earlier on it has since become visible.  Otherwise
        the unanswered visible questions are counted as still to come.
        """
        path = self.reachable_qids(responses)
        if not path:
            return 0
        answered = [qid for qid in path if qid in responses]
        if len(answered) == len(path):
            return 100
        pending = sum(
            1 for q in self.questions
            if q.qid not in responses and self.is_visible(q, responses)
        )
        return min(99, round(len(answered) / (len(answered) + pending) * 100))
