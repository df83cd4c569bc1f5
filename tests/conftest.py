import sys
import os

import pytest

# Ensure the project root is in sys.path so `from app.main import app` works
# with relative imports inside the app package
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

PROVIDER_ENV_VARS = (
    "TRANSCRIPTION_PROVIDER",
    "SUPADATA_API_KEY",
    "SUPADATA_BASE_URL",
    "ASSEMBLYAI_API_KEY",
    "ASSEMBLYAI_BASE_URL",
    "AWS_PROFILE",
    "AWS_ACCESS_KEY_ID",
    "AWS_REGION",
    "AWS_TRANSCRIBE_LANGUAGE",
    "POLL_INTERVAL_SECONDS",
    "POLL_DEADLINE_SECONDS",
    "STAGING_DIR",
    "HTTP_TIMEOUT_SECONDS",
)


class FakeClock:
    """Monotonic clock that only moves when the code under test sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every setting the app reads so each test starts from defaults."""
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app_client():
    """Clears dependency overrides installed by a test."""
    from app.main import app

    yield app
    app.dependency_overrides.clear()
