"""seizure_classifier — conditional seizure questionnaire with a probabilistic onset classifier.

Public API:
    ClassifierSession    — per-run session facade (start / answer / toggle / back / finalize / handoff)
    CatalogStore         — loads and validates the YAML question graph
    Navigator            — state machine over the graph (with ResponseStore)
    score                — weighted scoring rules → ScoreAccumulator
    decide               — softmax + margin-gated decision policy → Decision
    build_result         — profile mapping → ClassificationResult
    ClassifierSettings   — calibration / locale settings (load_settings() reads env)

Collaborator interfaces:
    TextResolver         — ABC resolving prompt / label keys to display text
    ClassificationSink   — ABC receiving the completed result
    LocaleTextResolver   — Jinja2/YAML TextResolver shipped with the package

Errors:
    ClassifierError, ConfigurationError, IncompleteInputError, InvalidAnswerError
"""

from seizure_classifier.catalog import CatalogStore
from seizure_classifier.config import ClassifierSettings, load_settings
from seizure_classifier.decision import decide
from seizure_classifier.engine import ClassifierSession
from seizure_classifier.errors import (
    ClassifierError,
    ConfigurationError,
    IncompleteInputError,
    InvalidAnswerError,
)
from seizure_classifier.interfaces import ClassificationSink, TextResolver
from seizure_classifier.localization import LocaleTextResolver
from seizure_classifier.mapper import build_result
from seizure_classifier.models.result import (
    ClassificationResult,
    Decision,
    Onset,
    Probabilities,
    SummaryLabel,
)
from seizure_classifier.models.session import (
    QuestionPayload,
    QuestionStep,
    ResultStep,
    StepResult,
)
from seizure_classifier.navigation import Navigator, ResponseStore
from seizure_classifier.scoring import score

__all__ = [
    # Session & store
    "CatalogStore",
    "ClassifierSession",
    "Navigator",
    "ResponseStore",
    # Pipeline stages
    "score",
    "decide",
    "build_result",
    # Settings
    "ClassifierSettings",
    "load_settings",
    # Interfaces
    "ClassificationSink",
    "LocaleTextResolver",
    "TextResolver",
    # Result / step models
    "ClassificationResult",
    "Decision",
    "Onset",
    "Probabilities",
    "SummaryLabel",
    "QuestionPayload",
    "QuestionStep",
    "ResultStep",
    "StepResult",
    # Errors
    "ClassifierError",
    "ConfigurationError",
    "IncompleteInputError",
    "InvalidAnswerError",
]
