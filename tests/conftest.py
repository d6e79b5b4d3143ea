import os

import pytest

from accident_gateway.config import Settings
from accident_gateway.main import create_app

REPORT_JSON = (
    '{"severity": "moderate", "models": "Toyota Corolla", '
    '"description": "Front bumper crushed", "recommendations": "Replace bumper", '
    '"price": "15000", "fixinglist": [{"tool": "front bumper", '
    '"detail": "cracked", "status": "needs replacement"}]}'
)


class FakeModelClient:
    """Stands in for ModelClient; records calls and the upload dir contents seen."""

    def __init__(self, upload_dir: str, reply: str = REPORT_JSON, error: Exception | None = None):
        self.upload_dir = upload_dir
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.files_seen: list[list[str]] = []

    def complete(self, prompt: str, data_uri: str) -> str:
        self.calls.append((prompt, data_uri))
        self.files_seen.append(sorted(os.listdir(self.upload_dir)))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def settings(tmp_path):
    return Settings(
        openai_api_key="sk-test",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def model_client(settings):
    return FakeModelClient(settings.upload_dir)


@pytest.fixture
def app(settings, model_client):
    return create_app(settings, model_client=model_client)
