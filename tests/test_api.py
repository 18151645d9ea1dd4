"""End-to-end tests of the HTTP endpoints."""

from __future__ import annotations

import joblib
import pytest
from fastapi.testclient import TestClient

from api import create_app
from model_store import MODEL_FORMAT_VERSION


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "api is working!", "model": "untrained"}


@pytest.mark.parametrize("method", ["get", "post"])
def test_train(client, settings, method):
    response = getattr(client, method)("/train")
    assert response.status_code == 200
    assert response.json() == {"status": "success"}
    assert settings.model_path.exists()
    assert client.get("/").json()["model"] == "fitted"


def test_predict_ham(client):
    client.get("/train")
    response = client.get("/predict", params={"message": "how are you"})
    assert response.status_code == 200
    assert response.json() == {"status": "success", "message": "how are you", "label": "ham"}


def test_predict_spam_without_prior_train(client):
    response = client.get("/predict", params={"message": "u have won the 1 lakh prize"})
    assert response.status_code == 200
    assert response.json()["label"] == "spam"


def test_predict_missing_message(client):
    response = client.get("/predict")
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "missing query string message"}


def test_evaluate_before_training(client):
    response = client.get("/evaluate")
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Train model before evaluating."}


def test_evaluate_after_training(client):
    client.get("/train")
    response = client.get("/evaluate")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "Correctly Classified Instances" in response.text
    assert "Accuracy" in response.text


def test_evaluate_uses_persisted_model_after_restart(client, settings):
    client.get("/train")
    restarted = TestClient(create_app(settings))
    response = restarted.get("/evaluate")
    assert response.status_code == 200
    assert restarted.get("/").json()["model"] == "loaded"


def test_train_error_envelope(settings):
    settings.train_data_path.unlink()
    client = TestClient(create_app(settings))
    response = client.get("/train")
    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "error"
    assert "Training data not available" in body["message"]


def test_corrupt_model_error_envelope(settings):
    settings.model_path.parent.mkdir(parents=True, exist_ok=True)
    settings.model_path.write_text("garbage", encoding="utf-8")
    client = TestClient(create_app(settings))
    response = client.get("/predict", params={"message": "hello"})
    assert response.status_code == 500
    assert response.json()["status"] == "error"
    assert "Model" in response.json()["message"]


def test_model_without_pipeline_config_error_envelope(settings):
    settings.model_path.parent.mkdir(parents=True, exist_ok=True)
    joblib.dump(
        {"format_version": MODEL_FORMAT_VERSION, "pipeline_config": None, "labels": [], "estimator": None},
        settings.model_path,
    )
    client = TestClient(create_app(settings))
    response = client.get("/predict", params={"message": "hi"})
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Invalid Model: pipeline config is missing."}
