"""
spam_classifier.py
Multinomial Naive Bayes SMS spam classifier on top of scikit-learn.

Lifecycle:
  clf = SpamClassifier()
  clf.transform()            # attach the bag-of-words pipeline
  clf.fit(train_df)
  clf.predict("how are you ?")   -> "ham"
  clf.evaluate(test_df)      -> summary text
  clf.save(path) / SpamClassifier().load(path)
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    classification_report,
    cohen_kappa_score,
    confusion_matrix,
    mean_absolute_error,
    mean_squared_error,
)
from sklearn.pipeline import Pipeline

import model_store
import text_features
from sms_dataset import LABEL_ATTRIBUTE, LABELS, TEXT_ATTRIBUTE, validate_schema
from spam_errors import (
    CorruptModelError,
    EvaluationError,
    InvalidDataError,
    PredictionError,
    TrainingError,
)
from text_features import FeaturePipelineConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionResult:
    input_text: str
    label: str


class SpamClassifier:
    """
    Holds the feature pipeline config and the fitted sklearn Pipeline
    (CountVectorizer -> MultinomialNB) as one unit.
    """

    def __init__(self, config: Optional[FeaturePipelineConfig] = None, alpha: float = 1.0):
        self.alpha = alpha
        self.config: Optional[FeaturePipelineConfig] = config
        self.pipeline: Optional[Pipeline] = None
        self.fitted = False

    @property
    def is_fitted(self) -> bool:
        return self.fitted and self.pipeline is not None

    @property
    def classes(self) -> List[str]:
        if not self.is_fitted:
            return []
        return [str(c) for c in self.pipeline.classes_]

    def transform(self, config: Optional[FeaturePipelineConfig] = None) -> "SpamClassifier":
        return text_features.attach(self, config or self.config)

    def fit(self, dataset: pd.DataFrame) -> "SpamClassifier":
        if self.pipeline is None:
            raise TrainingError("Couldn't train the classifier: no feature pipeline attached.")
        try:
            dataset = validate_schema(dataset, source="training data")
        except InvalidDataError as exc:
            raise TrainingError(f"Couldn't train the classifier: {exc}") from exc
        if dataset.empty:
            raise TrainingError("Couldn't train the classifier: training data is empty.")
        labels = dataset[LABEL_ATTRIBUTE].astype(str)
        if labels.nunique() < 2:
            raise TrainingError(
                f"Couldn't train the classifier: need examples of both {' and '.join(LABELS)}."
            )

        try:
            self.pipeline.fit(dataset[TEXT_ATTRIBUTE].tolist(), labels.tolist())
        except ValueError as exc:
            logger.warning("Training failed: %s", exc)
            raise TrainingError(f"Couldn't train the classifier: {exc}") from exc
        self.fitted = True
        vocab = self.pipeline.named_steps["vectorizer"].vocabulary_
        logger.info("Fitted classifier on %d examples, vocabulary size %d", len(dataset), len(vocab))
        return self

    def predict(self, text: str) -> str:
        if not self.is_fitted:
            raise PredictionError("Couldn't perform prediction: the model is not trained.")
        try:
            label = self.pipeline.predict([str(text)])[0]
        except Exception as exc:
            logger.warning("Prediction failed: %s", exc)
            raise PredictionError() from exc
        logger.debug("text %r is %s", text, label)
        return str(label)

    def predict_result(self, text: str) -> PredictionResult:
        return PredictionResult(input_text=text, label=self.predict(text))

    def evaluate(self, test_set: pd.DataFrame) -> str:
        if not self.is_fitted:
            raise EvaluationError("Train model before evaluating.")
        try:
            test_set = validate_schema(test_set, source="test data")
        except InvalidDataError as exc:
            raise EvaluationError(f"Test data not usable: {exc}") from exc
        if test_set.empty:
            raise EvaluationError("Test data is empty.")

        texts = test_set[TEXT_ATTRIBUTE].tolist()
        y_true = test_set[LABEL_ATTRIBUTE].astype(str).to_numpy()
        try:
            y_pred = self.pipeline.predict(texts)
            proba = self.pipeline.predict_proba(texts)
        except Exception as exc:
            logger.warning("Evaluation failed: %s", exc)
            raise EvaluationError() from exc
        return summarize(y_true, y_pred, proba, classes=self.pipeline.classes_)

    def save(self, path: Path) -> None:
        if not self.is_fitted:
            raise TrainingError("Couldn't save the model: the classifier is not trained.")
        blob = model_store.make_blob(self.config.to_dict(), self.classes, self.pipeline)
        model_store.save_model(blob, path)

    def load(self, path: Path) -> "SpamClassifier":
        blob = model_store.load_model(path)
        estimator = blob["estimator"]
        if not isinstance(estimator, Pipeline) or not hasattr(estimator, "classes_"):
            raise CorruptModelError("Invalid Model: no fitted pipeline in model file.")
        try:
            config = FeaturePipelineConfig.from_dict(blob["pipeline_config"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptModelError("Invalid Model: bad pipeline config.") from exc
        self.config = config
        self.pipeline = estimator
        self.fitted = True
        return self


def _row(name: str, count: int, total: int) -> str:
    pct = 100.0 * count / total if total else 0.0
    return f"{name:<33}{count:>8d}{pct:>19.4f} %"


def summarize(y_true, y_pred, proba, classes) -> str:
    """Evaluation summary: overall statistics, per-class report and confusion matrix."""
    total = len(y_true)
    correct = int(np.sum(np.asarray(y_true) == np.asarray(y_pred)))
    classes = [str(c) for c in classes]
    actual = (np.asarray(y_true)[:, None] == np.asarray(classes)[None, :]).astype(float)

    kappa = float(cohen_kappa_score(y_true, y_pred, labels=list(LABELS)))
    if kappa != kappa:  # NaN
        kappa = 0.0
    mae = float(mean_absolute_error(actual, proba))
    rmse = math.sqrt(float(mean_squared_error(actual, proba)))
    accuracy = float(accuracy_score(y_true, y_pred))

    lines = [
        "",
        "Results",
        "======",
        "",
        _row("Correctly Classified Instances", correct, total),
        _row("Incorrectly Classified Instances", total - correct, total),
        f"{'Accuracy':<33}{accuracy:>27.4f}",
        f"{'Kappa statistic':<33}{kappa:>27.4f}",
        f"{'Mean absolute error':<33}{mae:>27.4f}",
        f"{'Root mean squared error':<33}{rmse:>27.4f}",
        f"{'Total Number of Instances':<33}{total:>8d}",
        "",
        "Classification Report",
        classification_report(y_true, y_pred, labels=list(LABELS), digits=4, zero_division=0),
        "Confusion Matrix (rows = actual, columns = predicted: " + ", ".join(LABELS) + ")",
        str(confusion_matrix(y_true, y_pred, labels=list(LABELS))),
        "",
    ]
    return "\n".join(lines)
