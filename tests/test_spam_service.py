"""Tests for the process-wide model state and request orchestration."""

from __future__ import annotations

import os
import threading
from dataclasses import replace

import pytest

from sms_dataset import load_cached
from spam_errors import (
    EvaluationError,
    InvalidDataError,
    MissingParameterError,
    TrainingError,
)
from spam_service import ModelSource, SpamService, UNTRAINED


def test_starts_untrained(settings):
    service = SpamService(settings)
    assert service.state == UNTRAINED
    assert service.state.name == "untrained"
    assert not service.state.ready


def test_train_fits_and_saves(settings):
    service = SpamService(settings)
    state = service.train()
    assert state.source is ModelSource.FITTED
    assert settings.model_path.exists()
    assert settings.train_cache_path.exists()


def test_evaluate_before_training(settings):
    with pytest.raises(EvaluationError) as excinfo:
        SpamService(settings).evaluate()
    assert str(excinfo.value) == "Train model before evaluating."


def test_predict_trains_inline_when_no_model(settings):
    service = SpamService(settings)
    result = service.predict("how are you")
    assert result.label == "ham"
    assert service.state.source is ModelSource.FITTED
    assert settings.model_path.exists()


def test_predict_loads_persisted_model(settings):
    SpamService(settings).train()
    service = SpamService(settings)
    assert service.predict("u have won the 1 lakh prize").label == "spam"
    assert service.state.source is ModelSource.LOADED


def test_evaluate_loads_persisted_model(settings):
    SpamService(settings).train()
    service = SpamService(settings)
    summary = service.evaluate()
    assert "Correctly Classified Instances" in summary
    assert service.state.source is ModelSource.LOADED


@pytest.mark.parametrize("text", [None, "", "   "])
def test_predict_requires_message(settings, text):
    with pytest.raises(MissingParameterError) as excinfo:
        SpamService(settings).predict(text)
    assert str(excinfo.value) == "missing query string message"


def test_failed_training_keeps_previous_model(settings):
    service = SpamService(settings)
    service.train()
    broken = replace(settings, train_data_path=settings.train_data_path.with_name("missing.txt"))
    service.settings = broken
    with pytest.raises(TrainingError):
        service.train()
    assert service.state.source is ModelSource.FITTED
    assert service.predict("how are you").label == "ham"


def test_malformed_training_data(settings):
    settings.train_data_path.write_text("ham hello there\nspam\n", encoding="utf-8")
    with pytest.raises(InvalidDataError):
        SpamService(settings).train()


def test_malformed_rows_skipped_when_configured(settings):
    with settings.train_data_path.open("a", encoding="utf-8") as fh:
        fh.write("spam\n")
    service = SpamService(replace(settings, abort_on_malformed_row=False))
    assert service.train().ready


def test_lenient_training_does_not_relax_strict_policy(settings):
    with settings.train_data_path.open("a", encoding="utf-8") as fh:
        fh.write("spam\n")
    SpamService(replace(settings, abort_on_malformed_row=False)).train()
    assert not settings.train_cache_path.exists()
    with pytest.raises(InvalidDataError):
        SpamService(settings).train()


def test_junk_training_cache_is_rebuilt(settings):
    cache = settings.train_cache_path
    cache.write_text("not parquet at all", encoding="utf-8")
    raw_mtime = settings.train_data_path.stat().st_mtime
    os.utime(cache, (raw_mtime + 10, raw_mtime + 10))
    assert SpamService(settings).train().ready
    assert len(load_cached(cache)) == 16


def test_missing_test_data(settings):
    service = SpamService(replace(settings, test_data_path=settings.test_data_path.with_name("gone.txt")))
    service.train()
    with pytest.raises(EvaluationError):
        service.evaluate()


def test_concurrent_predictions_agree(settings):
    service = SpamService(settings)
    service.train()
    labels = []

    def worker():
        labels.append(service.predict("u have won the 1 lakh prize").label)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert labels == ["spam"] * 8
