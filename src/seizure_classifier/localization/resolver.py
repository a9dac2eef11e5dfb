"""LocaleTextResolver — Jinja2-based renderer for catalog text keys.

Loads one YAML locale file (a flat ``key: template`` mapping) from
``rules/locale/`` and renders entries with the context the engine passes in
(qid, question_type and numeric constraints).

A missing key is not an error: the resolver logs a warning and returns the
key itself, so a partially translated locale still yields a usable
questionnaire.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import jinja2

from seizure_classifier.catalog import RULES_DIR, load_yaml
from seizure_classifier.errors import ConfigurationError
from seizure_classifier.interfaces import TextResolver

logger = logging.getLogger(__name__)

LOCALE_DIR = RULES_DIR / "locale"


def available_locales(locale_dir: Path | None = None) -> list[str]:
    """Locale codes with a YAML file in *locale_dir* (sorted)."""
    base = locale_dir or LOCALE_DIR
    return sorted(p.stem for p in base.glob("*.yaml"))


class LocaleTextResolver(TextResolver):
    """Resolves text keys from ``rules/locale/<locale>.yaml``.

    Args:
        locale: locale code, e.g. ``"en"``.
        locale_dir: optional override for the locale directory.
            Defaults to ``rules/locale/`` inside the package.
    """

    def __init__(self, locale: str = "en", locale_dir: Path | None = None) -> None:
        self.locale = locale
        base = locale_dir or LOCALE_DIR
        path = base / f"{locale}.yaml"
        try:
            raw = load_yaml(path)
        except FileNotFoundError as exc:
            raise ConfigurationError(
                f"No locale file for {locale!r} (available: {available_locales(base)})"
            ) from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Locale file {path.name} must be a key/value mapping")

        self._texts: dict[str, str] = {str(k): str(v) for k, v in raw.items()}
        self._env = jinja2.Environment(
            # Plain text output; nothing here is HTML
            autoescape=False,
            keep_trailing_newline=False,
        )
        self._templates: dict[str, jinja2.Template] = {}
        self._missing: set[str] = set()
        logger.info("Loaded locale %s (%d keys)", locale, len(self._texts))

    def __contains__(self, key: str) -> bool:
        return key in self._texts

    def resolve(self, key: str, context: Mapping[str, Any] | None = None) -> str:
        text = self._texts.get(key)
        if text is None:
            # Warn once per key; fall back to the key itself
            if key not in self._missing:
                self._missing.add(key)
                logger.warning("Locale %s has no text for key %r", self.locale, key)
            return key

        # Most entries are plain strings; skip template compilation for them
        if "{{" not in text and "{%" not in text:
            return text

        template = self._templates.get(key)
        if template is None:
            template = self._env.from_string(text)
            self._templates[key] = template
        return template.render(**dict(context or {}))
