import os

import pytest
from fastapi.testclient import TestClient
from google.genai import types

from conftest import blocked_response, text_response
from server.app import LIVENESS_TEXT, create_app

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00fake-leaf\xff\xd9"


def post_leaf(api, data=JPEG_BYTES, filename="leaf.jpg", content_type="image/jpeg"):
    return api.post("/predict", files={"file": (filename, data, content_type)})


def staged_files(config):
    if not os.path.isdir(config.upload_dir):
        return []
    return os.listdir(config.upload_dir)


def test_liveness(api, fake_client):
    response = api.get("/")
    assert response.status_code == 200
    assert response.text == LIVENESS_TEXT
    assert response.headers["content-type"].startswith("text/plain")
    assert fake_client.models.calls == []


def test_liveness_independent_of_upstream(api, fake_client):
    fake_client.models.error = RuntimeError("upstream down")
    assert api.get("/").status_code == 200


def test_predict_success_removes_temp_file(api, config, fake_client):
    staged_during_call = []
    fake_client.models.on_call = lambda: staged_during_call.extend(staged_files(config))
    fake_client.models.response = text_response("Disease Name:\nLeaf Spot\n...")

    response = post_leaf(api)

    assert response.status_code == 200
    assert response.json() == {"success": True, "result": "Disease Name:\nLeaf Spot\n..."}
    assert len(staged_during_call) == 1
    assert staged_files(config) == []

    image_part = fake_client.models.calls[0]["contents"][0].parts[0]
    assert image_part.inline_data.data == JPEG_BYTES
    assert image_part.inline_data.mime_type == "image/jpeg"


def test_predict_without_body(api, fake_client):
    response = api.post("/predict")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No file uploaded."}
    assert fake_client.models.calls == []


@pytest.mark.parametrize(
    "request_kwargs",
    [
        {"data": {"image": "not-a-file"}},
        {"data": {"file": "not-a-file"}},
        {"files": {"file": ("", b"x", "image/jpeg")}},
        {"files": {"other": ("leaf.jpg", JPEG_BYTES, "image/jpeg")}},
        {"content": b"garbage", "headers": {"Content-Type": "multipart/form-data"}},
        {"content": b"garbage", "headers": {"Content-Type": "application/octet-stream"}},
    ],
    ids=[
        "other-field",
        "text-file-field",
        "empty-filename",
        "file-under-other-name",
        "malformed-multipart",
        "not-multipart",
    ],
)
def test_predict_without_usable_file(api, config, fake_client, request_kwargs):
    response = api.post("/predict", **request_kwargs)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No file uploaded."}
    assert fake_client.models.calls == []
    assert staged_files(config) == []


def test_predict_candidate_without_text(api, config, fake_client):
    fake_client.models.response = types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[]))]
    )

    response = post_leaf(api)

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Error processing the prediction",
        "error": "First candidate contained no text.",
    }
    assert staged_files(config) == []


def test_predict_blocked(api, config, fake_client):
    fake_client.models.response = blocked_response()

    response = post_leaf(api)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Error processing the prediction"
    assert "SAFETY" in body["error"]
    assert staged_files(config) == []


def test_predict_no_candidates(api, config, fake_client):
    fake_client.models.response = text_response()

    response = post_leaf(api)

    assert response.status_code == 500
    assert response.json()["error"] == "No candidates returned from API."
    assert staged_files(config) == []


def test_predict_transport_error(api, config, fake_client):
    fake_client.models.error = ConnectionError("connection reset")

    response = post_leaf(api)

    assert response.status_code == 500
    assert response.json()["error"] == "connection reset"
    assert staged_files(config) == []


def test_predict_timeout_removes_temp_file(config, fake_client):
    from server.inference import GeminiInference

    fake_client.models.delay = 1.0
    inference = GeminiInference(timeout_seconds=0.01, client=fake_client)
    with TestClient(create_app(config, inference)) as api:
        response = post_leaf(api)

    assert response.status_code == 500
    assert "did not respond" in response.json()["error"]
    assert staged_files(config) == []


def test_repeated_uploads_leave_no_files(api, config, fake_client):
    for _ in range(3):
        assert post_leaf(api).status_code == 200
    assert len(fake_client.models.calls) == 3
    assert staged_files(config) == []


def test_test_gemini_success(api, fake_client):
    fake_client.models.response = text_response("Hello there!")

    response = api.get("/test-gemini")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Gemini API is working correctly.",
        "result": "Hello there!",
    }


@pytest.mark.parametrize(
    "response_factory, expected",
    [
        (blocked_response, "Test content generation blocked: SAFETY"),
        (text_response, "No candidates returned from API in test."),
    ],
)
def test_test_gemini_failures(api, fake_client, response_factory, expected):
    fake_client.models.response = response_factory()

    response = api.get("/test-gemini")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Error testing the Gemini API",
        "error": expected,
    }


def test_cors_preflight_allows_any_origin(api):
    response = api.options(
        "/predict",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
