"""Tests for ClassifierSettings / load_settings."""

import dataclasses

import pytest

from seizure_classifier.config import ClassifierSettings, load_settings
from seizure_classifier.engine import ClassifierSession


def test_defaults():
    s = ClassifierSettings()
    assert s.margin_threshold == 2
    assert s.pnes_gate_threshold == 4
    assert s.age_prior_threshold == 25
    assert s.borderline_probability_gap == 0.15
    assert s.borderline_confidence == 0.75
    assert s.top_contributors == 5
    assert s.catalog_path is None


def test_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        ClassifierSettings().margin_threshold = 3


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SEIZURE_MARGIN_THRESHOLD", "3")
    monkeypatch.setenv("SEIZURE_PNES_GATE_THRESHOLD", "5.5")
    monkeypatch.setenv("SEIZURE_TOP_CONTRIBUTORS", "8")
    monkeypatch.setenv("SEIZURE_LOCALE", "en")
    s = load_settings()
    assert s.margin_threshold == 3.0
    assert s.pnes_gate_threshold == 5.5
    assert s.top_contributors == 8
    assert s.locale == "en"


def test_empty_catalog_path_means_bundled(monkeypatch):
    monkeypatch.setenv("SEIZURE_CATALOG_PATH", "")
    assert load_settings().catalog_path is None


def test_session_from_settings(monkeypatch):
    monkeypatch.delenv("SEIZURE_CATALOG_PATH", raising=False)
    session = ClassifierSession.from_settings(ClassifierSettings(top_contributors=2))
    assert session.settings.top_contributors == 2
    step = session.start()
    assert step.question.qid == "structural_history"
