"""Exception taxonomy for the classifier.

Three conditions are errors; everything else (ambiguous evidence, red flags,
overlap flags) is reported through the classification result.

  - ConfigurationError:   the question catalog is malformed.  Fatal; the
                          host must fail closed instead of presenting a
                          partial questionnaire.
  - IncompleteInputError: finalize was attempted before the root
                          classification question was answered.
  - InvalidAnswerError:   a submitted value does not fit the question.

The two recoverable errors subclass ``ValueError`` so hosts that already map
``ValueError`` to a "bad request" response keep working unchanged.
"""


class ClassifierError(Exception):
    """Base class for all classifier errors."""


class ConfigurationError(ClassifierError):
    """The question graph is malformed (unknown successor, no first question, ...)."""


class IncompleteInputError(ClassifierError, ValueError):
    """The minimum required answers are missing; the user stays on the current question."""

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = missing or []


class InvalidAnswerError(ClassifierError, ValueError):
    """A submitted value is not acceptable for the question; state is unchanged."""

    def __init__(self, message: str, *, qid: str | None = None) -> None:
        super().__init__(message)
        self.qid = qid
