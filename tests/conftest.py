import asyncio
import os

import pytest
from fastapi.testclient import TestClient
from google.genai import types

from config import Config
from server.app import create_app
from server.inference import GeminiInference

for _env_key in (
    "GOOGLE_API_KEY",
    "PORT",
    "PLANT_SERVER_HOST",
    "PLANT_MODEL_ID",
    "PLANT_REQUEST_TIMEOUT_SECONDS",
    "PLANT_UPLOAD_DIR",
):
    os.environ.pop(_env_key, None)


def text_response(*texts):
    """Response with one candidate per text."""
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(content=types.Content(role="model", parts=[types.Part(text=t)]))
            for t in texts
        ]
    )


def blocked_response(reason=types.BlockedReason.SAFETY):
    return types.GenerateContentResponse(
        prompt_feedback=types.GenerateContentResponsePromptFeedback(block_reason=reason)
    )


class FakeModels:
    """Stand-in for ``client.aio.models`` recording every call."""

    def __init__(self):
        self.calls = []
        self.response = text_response("ok")
        self.error = None
        self.delay = 0.0
        self.on_call = None

    async def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.on_call is not None:
            self.on_call()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class FakeClient:
    def __init__(self):
        self.models = FakeModels()
        self.aio = self


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def config(tmp_path):
    return Config(google_api_key="test-key", upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def inference(fake_client, config):
    return GeminiInference(
        model_id=config.model_id,
        timeout_seconds=config.request_timeout_seconds,
        client=fake_client,
    )


@pytest.fixture
def api(config, inference):
    with TestClient(create_app(config, inference)) as client:
        yield client
