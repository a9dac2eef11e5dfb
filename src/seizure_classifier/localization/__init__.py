"""Question text resolution.

Provides ``LocaleTextResolver``, a Jinja2-based :class:`TextResolver` that
renders catalog text keys from the YAML locale files under ``rules/locale/``.
"""

from seizure_classifier.localization.resolver import LocaleTextResolver, available_locales

__all__ = ["LocaleTextResolver", "available_locales"]
