"""Public model re-exports for seizure_classifier.

Consumers should import from ``seizure_classifier.models`` rather than
reaching into sub-modules directly.
"""

# --- Questions ---
from seizure_classifier.models.question import (
    BaseQuestion,
    MultiSelectQuestion,
    NumberRangeQuestion,
    Option,
    Question,
    SingleSelectQuestion,
    VisibilityClause,
    question_mapper,
)

# --- Answers ---
from seizure_classifier.models.answer import (
    Answer,
    MultiSelectAnswer,
    ScalarAnswer,
    parse_answer,
)

# --- Scoring ---
from seizure_classifier.models.scoring import (
    Contributor,
    ScoreAccumulator,
    Target,
)

# --- Decision / result ---
from seizure_classifier.models.result import (
    ClassificationResult,
    ClinicalProfile,
    Decision,
    Onset,
    Probabilities,
    SummaryLabel,
)

# --- Session / step ---
from seizure_classifier.models.session import (
    QuestionPayload,
    QuestionStep,
    ResultStep,
    StepResult,
)

__all__ = [
    # Questions
    "BaseQuestion",
    "MultiSelectQuestion",
    "NumberRangeQuestion",
    "Option",
    "Question",
    "SingleSelectQuestion",
    "VisibilityClause",
    "question_mapper",
    # Answers
    "Answer",
    "MultiSelectAnswer",
    "ScalarAnswer",
    "parse_answer",
    # Scoring
    "Contributor",
    "ScoreAccumulator",
    "Target",
    # Result
    "ClassificationResult",
    "ClinicalProfile",
    "Decision",
    "Onset",
    "Probabilities",
    "SummaryLabel",
    # Session
    "QuestionPayload",
    "QuestionStep",
    "ResultStep",
    "StepResult",
]
