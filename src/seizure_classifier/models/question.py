"""Question type models for the seizure questionnaire graph.

Each question type maps to a specific UI component and answer handling logic:

  - single_select: pick one option (each option may carry its own successor)
  - multi_select: toggle one or more options, then continue (single successor)
  - number_range: numeric input with min/max/step and a unit

Routing lives on the models as plain qids.  The terminal sentinel
``"result"`` (:data:`seizure_classifier.constants.RESULT_SENTINEL`) means
"stop asking and classify".

``prompt`` and option ``label`` values are text keys, not display strings.
They are resolved through a :class:`~seizure_classifier.interfaces.TextResolver`
when the engine builds a :class:`QuestionPayload`.

The discriminated ``Question`` union uses ``question_type`` as its discriminator.
The ``question_mapper`` dict maps type strings to their Pydantic classes.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


# --- Visibility rule ---

class VisibilityClause(BaseModel):
    """One ``{qid, any_of}`` clause of a visibility rule.

    The clause matches when the stored response for ``qid`` (normalised to a
    lower-cased list) shares at least one value with ``any_of``.
    """

    qid: str
    any_of: List[str]


# --- Shared option model ---

class Option(BaseModel):
    """A selectable option: stored value, label text key, optional successor."""

    value: str
    label: str
    next: Optional[str] = None


# --- Base question type ---

class BaseQuestion(BaseModel):
    """Fields shared by all question types."""

    qid: str
    prompt: str
    # Default successor; single_select options may override it
    next: Optional[str] = None
    # Visible if ANY clause matches; None means always visible
    visible_if: Optional[List[VisibilityClause]] = None
    # Where to jump when the visibility rule fails (None → result sentinel)
    skip_to: Optional[str] = None

    @property
    def dependencies(self) -> List[str]:
        """qids referenced by the visibility rule, in declaration order."""
        if not self.visible_if:
            return []
        return [clause.qid for clause in self.visible_if]


class SingleSelectQuestion(BaseQuestion):
    """Pick one option; the option's ``next`` wins over the question's ``next``."""

    question_type: Literal["single_select"] = "single_select"
    options: List[Option]

    def option(self, value: str) -> Option | None:
        for opt in self.options:
            if opt.value == value:
                return opt
        return None

    def successor_for(self, value: str) -> str | None:
        opt = self.option(value)
        if opt is None:
            return None
        return opt.next or self.next


class MultiSelectQuestion(BaseQuestion):
    """Pick one or more options; a single successor is used regardless of selection."""

    question_type: Literal["multi_select"] = "multi_select"
    options: List[Option]

    def option(self, value: str) -> Option | None:
        for opt in self.options:
            if opt.value == value:
                return opt
        return None

    def successor_for(self, value: object = None) -> str | None:
        return self.next


class NumberRangeQuestion(BaseQuestion):
    """Numeric input with min/max/step constraints."""

    question_type: Literal["number_range"] = "number_range"
    min_value: float
    max_value: float
    step: float = 1.0
    unit: Optional[str] = None

    @model_validator(mode="after")
    def _chk(self):
        if self.min_value >= self.max_value:
            raise ValueError("min_value must be < max_value")
        return self

    @property
    def options(self) -> List[Option]:
        return []

    def successor_for(self, value: object = None) -> str | None:
        return self.next


# --- Discriminated union of all question types ---

Question = Annotated[
    Union[
        SingleSelectQuestion,
        MultiSelectQuestion,
        NumberRangeQuestion,
    ],
    Field(discriminator="question_type"),
]

# Maps question_type string → Pydantic class for dynamic deserialization from YAML.
question_mapper = {
    "single_select": SingleSelectQuestion,
    "multi_select": MultiSelectQuestion,
    "number_range": NumberRangeQuestion,
}
