"""Session and step models — the contract between the engine and its host.

These models define what :class:`~seizure_classifier.engine.ClassifierSession`
returns at each step.  They deliberately hide routing details (successor ids,
visibility rules, skip targets) so the host never sees graph internals.

Step types:
  - QuestionStep: present one question and wait for an answer
  - ResultStep: navigation reached the result sentinel; carries the result

The ``StepResult`` union covers both cases so callers can dispatch on ``type``.
"""

from typing import Literal

from pydantic import BaseModel

from seizure_classifier.models.result import ClassificationResult


class QuestionPayload(BaseModel):
    """Flattened question for hosts.

    Text keys are already resolved to display strings.  ``selected`` holds the
    currently stored value so a revisited question can be pre-filled.
    """

    qid: str
    prompt: str
    question_type: str
    # [{value, label}] for single_select / multi_select
    options: list[dict] | None = None
    # {min, max, step, unit} for number_range
    constraints: dict | None = None
    # str for single_select, list[str] for multi_select, float for number_range
    selected: str | float | list[str] | None = None
    # JSON-Schema-like description of the accepted answer value
    answer_schema: dict | None = None


class QuestionStep(BaseModel):
    """Engine step: present a question and wait for the answer."""

    type: Literal["question"] = "question"
    question: QuestionPayload
    # Percentage of currently visible questions that have an answer
    progress: int = 0
    can_go_back: bool = False
    # Live banners computed from the answers given so far
    red_flag: bool = False
    possible_overlap: bool = False


class ResultStep(BaseModel):
    """Engine step: the questionnaire is complete."""

    type: Literal["result"] = "result"
    result: ClassificationResult


# Callers can match on step.type to dispatch rendering logic.
StepResult = QuestionStep | ResultStep
