"""VisibilityEvaluator — resolves a question's ``visible_if`` rule.

A question without a rule is always visible.  Otherwise it is visible when
ANY clause matches: the stored response for the clause's ``qid`` is
normalised to a lower-cased list, and the clause matches if that list shares
at least one value with the clause's ``any_of`` set.

If the referenced question has not been answered yet, the clause evaluates
to False (not an error), mirroring how unanswered predicates never fire.
"""

from __future__ import annotations

from typing import Any, Mapping

from seizure_classifier.models.question import BaseQuestion, VisibilityClause


def normalize_response(value: Any) -> list[str]:
    """Normalise a stored response (str, number or list) to a lower-cased list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v).lower() for v in value if v is not None]
    return [str(value).lower()]


class VisibilityEvaluator:
    """Evaluates visibility rules against a plain response snapshot."""

    def is_visible(self, question: BaseQuestion, responses: Mapping[str, Any]) -> bool:
        """Return True if *question* should be shown given *responses*.

        Args:
            question: any question model
            responses: plain snapshot keyed by qid (str, float or list[str])
        """
        if not question.visible_if:
            return True
        return any(self._eval_clause(clause, responses) for clause in question.visible_if)

    @staticmethod
    def _eval_clause(clause: VisibilityClause, responses: Mapping[str, Any]) -> bool:
        stored = normalize_response(responses.get(clause.qid))
        if not stored:
            return False
        accepted = {v.lower() for v in clause.any_of}
        return any(v in accepted for v in stored)
