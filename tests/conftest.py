"""
Pytest fixtures and configuration for the test suite.

- Real SQLite database per test (tmp_path)
- Fake analysis service instead of the Gemini API
- Web tests run the FastAPI app against the same controller
"""

import pytest
from fastapi.testclient import TestClient

from crowdscore.application import Controller
from crowdscore.infrastructure.config import LLMSettings, Settings
from crowdscore.infrastructure.persistence import Database

from .helpers import FakeAnalysisService


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "crowdscore-test.db")


@pytest.fixture
def database(db_path):
    db = Database(db_path)
    db.init()
    return db


@pytest.fixture
def settings():
    return Settings(llm=LLMSettings(api_key=""))


@pytest.fixture
def analysis_service():
    return FakeAnalysisService()


@pytest.fixture
def controller(database, analysis_service, settings):
    ctrl = Controller(database, analysis_service=analysis_service, settings=settings)
    ctrl.load()
    return ctrl


@pytest.fixture
def client(controller, monkeypatch):
    from crowdscore.web import app as app_module

    monkeypatch.setattr(app_module, "controller", controller)
    monkeypatch.setattr(app_module, "load_error", None)
    with TestClient(app_module.app) as test_client:
        yield test_client
