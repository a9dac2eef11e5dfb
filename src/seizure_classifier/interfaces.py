"""Abstract interfaces for the engine's external collaborators.

These ABCs define the contract that host implementations must fulfil.  The
SDK ships one concrete :class:`TextResolver`
(:class:`~seizure_classifier.localization.LocaleTextResolver`) and no
concrete sink: persistence and audit transport live in the host.

Typical integration flow::

    catalog = CatalogStore().load()
    session = ClassifierSession(catalog, text_resolver=LocaleTextResolver("en"))

    step = session.start(session_context={"patient_id": "P-001"}, age_at_onset_years=14)
    while step.type == "question":
        step = session.answer(step.question.qid, ask_user(step.question))

    # Only after completion does anything leave the engine
    sink: ClassificationSink = MyRecordStoreSink(...)
    session.handoff(sink)
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from seizure_classifier.models.result import ClassificationResult


class TextResolver(ABC):
    """Resolves a text key (question prompt, option label) to a display string.

    Question definitions carry keys, never display text, so the same graph
    can be rendered in any locale or wording without touching routing.
    """

    @abstractmethod
    def resolve(self, key: str, context: Mapping[str, Any] | None = None) -> str:
        """Return the display string for *key*.

        Parameters
        ----------
        key:
            Text key from the catalog (e.g. ``"seizure_type.prompt"``).
        context:
            Values the template may interpolate (qid, numeric constraints).

        Returns
        -------
        str
            The resolved text.  Implementations should fall back to the key
            itself rather than raise when a translation is missing.
        """
        ...


class ClassificationSink(ABC):
    """Interface for collaborators that receive a completed classification.

    Implementations persist the result to a patient record, forward it to
    an audit log, etc.  They receive only the immutable result and a copy
    of the response snapshot; no mutable engine state crosses this boundary.
    """

    @abstractmethod
    def deliver(
        self,
        result: ClassificationResult,
        responses: dict[str, Any],
    ) -> None:
        """Receive a completed classification.

        Parameters
        ----------
        result:
            The frozen classification result.
        responses:
            Deep copy of the plain response snapshot, for audit purposes.

        Raises
        ------
        Exception
            Any failure is logged by the engine and re-raised to the host;
            the engine's own state is left untouched.
        """
        ...
