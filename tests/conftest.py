import pytest

from helpers.loader import load_catalog_questions
from helpers.utils import clone

from seizure_classifier.catalog import CatalogStore
from seizure_classifier.config import ClassifierSettings
from seizure_classifier.engine import ClassifierSession
from seizure_classifier.localization import LocaleTextResolver


@pytest.fixture(scope="session")
def catalog():
    """Load the bundled question catalog once for the entire test session."""
    return CatalogStore().load()


@pytest.fixture(scope="session")
def en_text():
    return LocaleTextResolver("en")


@pytest.fixture
def raw_questions():
    """Fresh deep copy of the raw catalog question dicts."""
    return clone(load_catalog_questions())


@pytest.fixture
def settings():
    """Default calibration, independent of the process environment."""
    return ClassifierSettings()


@pytest.fixture
def session(catalog, settings, en_text):
    return ClassifierSession(catalog, settings=settings, text_resolver=en_text)
