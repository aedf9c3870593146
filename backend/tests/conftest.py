import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.main import app

SIGNAL_TEXT = (
    "**SIGNAL**: BUY\n"
    "**PAIR**: XAUUSD\n"
    "**TIMEFRAME**: H1\n"
    "**ENTRY**: 2010-2012\n"
    "**TAKE PROFIT**: 2030\n"
    "**STOP LOSS**: 2000\n"
    "**CONFIDENCE**: 82%\n"
    "\n"
    "**REASONING**:\n"
    "Strong support confluence."
)


def completion(text: str) -> dict:
    return {"id": "gen-1", "choices": [{"message": {"role": "assistant", "content": text}}]}


@pytest.fixture
def signal_text():
    return SIGNAL_TEXT


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """No webhook, no journal and no admin key unless a test opts in."""
    monkeypatch.setattr(settings, "webhook_url", "")
    monkeypatch.setattr(settings, "webhook_enabled", True)
    monkeypatch.setattr(settings, "journal_enabled", True)
    monkeypatch.setattr(settings, "api_key_hash", "")


@pytest.fixture
def make_completion():
    return completion


class FakeResponse:
    """Stand-in for the object urlopen returns."""

    def __init__(self, body=b"", status=200):
        self.body = body
        self.status = status

    def read(self):
        return self.body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def fake_urlopen():
    """Build a urlopen replacement that returns a response or raises an error."""

    def build(body=b"", status=200, error=None, calls=None):
        def _urlopen(req, timeout=None):
            if calls is not None:
                calls.append(req)
            if error is not None:
                raise error
            return FakeResponse(body, status)

        return _urlopen

    return build
