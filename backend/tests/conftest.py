import os
import sys
from pathlib import Path

import pytest
import sentry_sdk
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Disable outbound Sentry calls during tests
sentry_sdk.init = lambda *args, **kwargs: None  # type: ignore[assignment]
os.environ["SENTRY_DSN"] = ""
os.environ.pop("KNOWLEDGE_BASE_PATH", None)

from backend.app import chat_service  # noqa: E402
from backend.app.knowledge_base import ChatContext, KnowledgeBase  # noqa: E402
from backend.app.main import app, create_app  # noqa: E402
from backend.app.settings import settings  # noqa: E402


class FakeCompletions:
    """Stands in for the completion API; records every outbound payload."""

    def __init__(self, reply: str = "We open at 11:30 AM.") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.response: dict | None = None
        self.calls: list[tuple[str, dict]] = []

    async def __call__(self, path, payload, *, timeout=None):  # noqa: ARG002
        self.calls.append((path, payload))
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return {"choices": [{"message": {"role": "assistant", "content": self.reply}}]}

    @property
    def last_payload(self) -> dict:
        assert self.calls, "completion API was never called"
        return self.calls[-1][1]


@pytest.fixture(autouse=True)
def reset_settings():
    settings.OPENAI_API_KEY = "test-key"
    settings.SENTRY_DSN = None
    yield


@pytest.fixture
def fake_completions(monkeypatch) -> FakeCompletions:
    fake = FakeCompletions()
    monkeypatch.setattr(chat_service, "post_json", fake)
    return fake


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app, base_url="http://api.testserver")


@pytest.fixture
def sakura_kb() -> KnowledgeBase:
    return KnowledgeBase.model_validate(
        {
            "name": "Sakura",
            "contact": {"email": "a@b.com"},
            "menu_highlights": ["Sushi", "Ramen"],
        }
    )


@pytest.fixture
def full_kb() -> KnowledgeBase:
    return KnowledgeBase.model_validate(
        {
            "name": "Kaizen",
            "contact": {"email": "hi@kaizen.test", "phone": "555-0100"},
            "policies": {
                "buffet_time_limit_minutes": 90,
                "large_party_deposit_required": True,
                "allergy_note": "Shellfish in kitchen",
            },
            "locations": [
                {
                    "city": "Plano",
                    "address": ["1 Main St", "Plano, TX"],
                    "hours": {"Sun": "Closed", "Mon": "11-9", "Fri": "11-10"},
                },
                {"city": "Austin", "address": ["9 Lake Rd"], "hours": {"Tue": "12-8"}},
            ],
            "menu_highlights": ["Nigiri", "A5 Wagyu"],
        }
    )


@pytest.fixture
def sakura_client(sakura_kb) -> TestClient:
    return TestClient(create_app(ChatContext.from_knowledge_base(sakura_kb)))
