"""
Configuration for pytest tests.
"""

import os
from types import SimpleNamespace

import pytest

# Set before learnhub.config is imported so class attributes pick them up
os.environ["GEMINI_API_KEY"] = os.environ.get("GEMINI_API_KEY", "test_api_key")
os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = ""
os.environ["REDIS_URL"] = ""
os.environ["DB_INIT_RETRIES"] = "2"
os.environ["DB_INIT_RETRY_DELAY"] = "0"
os.environ["N8N_WEBHOOK_URL"] = "https://n8n.test/webhook/primary"
os.environ["N8N_EXTRA_WEBHOOK_URL"] = ""


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Return a fake clock starting at a fixed epoch."""
    return FakeClock()


def gemini_response(text):
    """Build an object shaped like a genai GenerateContentResponse."""
    part = SimpleNamespace(text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


@pytest.fixture
def summary_json():
    """Return a well-formed model answer."""
    return (
        '{"summary": "Design systems keep interfaces consistent.", '
        '"takeaways": ["Tokens", "Components", "Documentation", "Governance", "Adoption"], '
        '"actions": ["Audit your components", "Define color tokens"]}'
    )


@pytest.fixture
def callback_payload():
    """Return a callback body as n8n sends it."""
    return {
        "dataId": "jane@x.com_1700000000000",
        "email": "jane@x.com",
        "learningData": {
            "profile_summary": {"goal": "Learn product design", "current_level": "Beginner"},
            "learning_path": [
                {
                    "title": "Foundations of UX",
                    "duration": "Week 1-2",
                    "objective": "Understand research methods.",
                    "resources": [
                        {
                            "type": "YouTube",
                            "title": "User research guide",
                            "link": "https://www.youtube.com/watch?v=TRaNiRZqXwY",
                            "duration": "~10 minutes",
                            "description": "Clear visual explanations.",
                        },
                        {"type": "Article/Tutorial", "name": "UX portfolio guide"},
                    ],
                },
                {"title": "Interaction Design", "resources": []},
            ],
            "action_plan": {
                "steps": [
                    {"description": "Watch the first video today."},
                    {"description": "Study 20 minutes every morning."},
                ]
            },
            "pro_tips": [
                {"title": "Consistency is Key", "description": "Short daily sessions beat long ones."},
                "Take notes while watching.",
            ],
            "expected_timeline": "4 weeks",
        },
    }
