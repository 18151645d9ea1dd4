"""
spam_service.py
Process-wide model state behind the HTTP endpoints.

One SpamService owns the classifier. train/predict/evaluate all run under a
single lock, so a request never sees a half-loaded or half-fitted model.
Training blocks the calling thread until fit and save are done.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from service_config import Settings
from sms_dataset import load_dataset
from spam_classifier import PredictionResult, SpamClassifier
from spam_errors import (
    DatasetIOError,
    EvaluationError,
    InvalidDataError,
    MissingParameterError,
    TrainingError,
)
from text_features import FeaturePipelineConfig

logger = logging.getLogger(__name__)

NOT_TRAINED_MESSAGE = "Train model before evaluating."


class ModelSource(str, Enum):
    FITTED = "fitted"
    LOADED = "loaded"


@dataclass(frozen=True)
class ModelState:
    source: Optional[ModelSource] = None

    @property
    def ready(self) -> bool:
        return self.source is not None

    @property
    def name(self) -> str:
        return self.source.value if self.source else "untrained"


UNTRAINED = ModelState()


class SpamService:
    def __init__(self, settings: Optional[Settings] = None, config: Optional[FeaturePipelineConfig] = None):
        self.settings = settings or Settings()
        self.config = config or FeaturePipelineConfig()
        self._lock = threading.Lock()
        self._classifier: Optional[SpamClassifier] = None
        self._state = UNTRAINED

    @property
    def state(self) -> ModelState:
        return self._state

    def train(self) -> ModelState:
        with self._lock:
            self._train_locked()
            return self._state

    def predict(self, text: Optional[str]) -> PredictionResult:
        if text is None or not text.strip():
            raise MissingParameterError()
        with self._lock:
            self._ensure_ready_locked(train_if_missing=True)
            return self._classifier.predict_result(text)

    def evaluate(self) -> str:
        with self._lock:
            self._ensure_ready_locked(train_if_missing=False)
            s = self.settings
            try:
                test_set = load_dataset(s.test_data_path, s.test_cache_path, s.abort_on_malformed_row)
            except DatasetIOError as exc:
                raise EvaluationError(f"TestData not available: {exc}") from exc
            except InvalidDataError as exc:
                raise EvaluationError(f"Invalid test data: {exc}") from exc
            return self._classifier.evaluate(test_set)

    def _ensure_ready_locked(self, *, train_if_missing: bool) -> None:
        if self._state.ready:
            return
        if self.settings.model_path.exists():
            self._load_locked()
        elif train_if_missing:
            logger.info("No saved model at %s, training one", self.settings.model_path)
            self._train_locked()
        else:
            raise EvaluationError(NOT_TRAINED_MESSAGE)

    def _train_locked(self) -> None:
        s = self.settings
        try:
            train_set = load_dataset(s.train_data_path, s.train_cache_path, s.abort_on_malformed_row)
        except DatasetIOError as exc:
            raise TrainingError(f"Training data not available: {exc}") from exc
        classifier = SpamClassifier(config=self.config)
        classifier.transform()
        classifier.fit(train_set)
        try:
            classifier.save(s.model_path)
        except OSError as exc:
            logger.warning("Couldn't save model %s: %s", s.model_path, exc)
            raise TrainingError("Couldn't save Model file.") from exc
        self._classifier = classifier
        self._state = ModelState(ModelSource.FITTED)

    def _load_locked(self) -> None:
        classifier = SpamClassifier().load(self.settings.model_path)
        self._classifier = classifier
        self._state = ModelState(ModelSource.LOADED)
