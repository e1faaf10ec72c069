"""Shared test fixtures for the Odoo Lens test suite."""
import pytest

from config.settings import Settings
from helpers import FakeOpenAI


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Pin settings so tests never depend on a developer's .env."""
    monkeypatch.setattr(Settings, "MOCK_MODE", True)
    monkeypatch.setattr(Settings, "ODOO_URL", "https://odoo.test")
    monkeypatch.setattr(Settings, "ODOO_SESSION_ID", "")
    monkeypatch.setattr(Settings, "OPENAI_API_KEY", "")
    monkeypatch.setattr(Settings, "RISK_TEXT_OVERRIDE", False)
    monkeypatch.setattr(Settings, "REPORT_OUTPUT_DIR", tmp_path / "reports")


@pytest.fixture
def fake_openai():
    return FakeOpenAI(pieces=["Overall ", "the permissions ", "look moderate."])
