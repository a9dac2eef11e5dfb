"""Answer models — the tagged union stored in the response store.

Raw values arriving from a host (strings, numbers, lists) are validated once,
at the ``answer()`` boundary, by :func:`parse_answer`.  Everything downstream
(navigation, scoring, mapping) works on the plain snapshot produced by
:meth:`ScalarAnswer.plain` / :meth:`MultiSelectAnswer.plain` and never needs to
guess the shape of a response.

  - ScalarAnswer: one option value (single_select) or one number (number_range)
  - MultiSelectAnswer: ordered, de-duplicated list of option values
"""

import math
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from seizure_classifier.constants import NONE_VALUE
from seizure_classifier.errors import InvalidAnswerError
from seizure_classifier.models.question import (
    MultiSelectQuestion,
    NumberRangeQuestion,
    SingleSelectQuestion,
)


class ScalarAnswer(BaseModel):
    """A single option value or a numeric input."""

    kind: Literal["scalar"] = "scalar"
    value: str | float

    def plain(self) -> str | float:
        return self.value


class MultiSelectAnswer(BaseModel):
    """An ordered selection of option values (may be empty)."""

    kind: Literal["multi"] = "multi"
    values: list[str] = Field(default_factory=list)

    def plain(self) -> list[str]:
        return list(self.values)

    def toggled(self, value: str) -> "MultiSelectAnswer":
        """Return a copy with *value* added or removed.

        Selecting the "none" placeholder clears every other value, and
        selecting a real value clears the placeholder.
        """
        current = list(self.values)
        if value in current:
            current.remove(value)
        elif value == NONE_VALUE:
            current = [NONE_VALUE]
        else:
            current = [v for v in current if v != NONE_VALUE]
            current.append(value)
        return MultiSelectAnswer(values=current)


Answer = Annotated[Union[ScalarAnswer, MultiSelectAnswer], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Boundary validation
# ---------------------------------------------------------------------------

def parse_answer(question, value: Any) -> ScalarAnswer | MultiSelectAnswer:
    """Validate a raw host value against *question* and wrap it.

    Raises:
        InvalidAnswerError: the value is not among the declared options, is
            the wrong shape, or is outside the declared numeric range.
    """
    if isinstance(question, SingleSelectQuestion):
        return _parse_single(question, value)
    if isinstance(question, MultiSelectQuestion):
        return _parse_multi(question, value)
    if isinstance(question, NumberRangeQuestion):
        return _parse_number(question, value)
    raise InvalidAnswerError(
        f"Unsupported question type for {question.qid}", qid=question.qid
    )


def _parse_single(q: SingleSelectQuestion, value: Any) -> ScalarAnswer:
    if not isinstance(value, str):
        raise InvalidAnswerError(
            f"{q.qid} expects a single option value, got {type(value).__name__}",
            qid=q.qid,
        )
    if q.option(value) is None:
        allowed = [opt.value for opt in q.options]
        raise InvalidAnswerError(
            f"{value!r} is not an option of {q.qid} (expected one of {allowed})",
            qid=q.qid,
        )
    return ScalarAnswer(value=value)


def _parse_multi(q: MultiSelectQuestion, value: Any) -> MultiSelectAnswer:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise InvalidAnswerError(
            f"{q.qid} expects a list of option values, got {type(value).__name__}",
            qid=q.qid,
        )

    selected: list[str] = []
    for item in value:
        if not isinstance(item, str) or q.option(item) is None:
            raise InvalidAnswerError(
                f"{item!r} is not an option of {q.qid}", qid=q.qid
            )
        if item not in selected:
            selected.append(item)

    if NONE_VALUE in selected and len(selected) > 1:
        raise InvalidAnswerError(
            f"{q.qid}: '{NONE_VALUE}' cannot be combined with other values",
            qid=q.qid,
        )
    return MultiSelectAnswer(values=selected)


def _parse_number(q: NumberRangeQuestion, value: Any) -> ScalarAnswer:
    # bool is an int subclass; a checkbox value is never a duration
    if isinstance(value, bool):
        raise InvalidAnswerError(f"{q.qid} expects a number", qid=q.qid)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise InvalidAnswerError(
                f"{q.qid} expects a number, got {value!r}", qid=q.qid
            ) from None
    if not isinstance(value, (int, float)) or math.isnan(value):
        raise InvalidAnswerError(f"{q.qid} expects a number", qid=q.qid)

    number = float(value)
    if number < q.min_value or number > q.max_value:
        raise InvalidAnswerError(
            f"{q.qid}: {number:g} is outside [{q.min_value:g}, {q.max_value:g}]",
            qid=q.qid,
        )
    return ScalarAnswer(value=number)
