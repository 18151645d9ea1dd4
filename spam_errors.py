"""
spam_errors.py
Errors raised by the dataset loader, classifier, model store and service.
The API turns every one of them into {"status": "error", "message": ...}.
"""
from __future__ import annotations


class SpamClassifierError(Exception):
    default_message = "Spam classifier error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class DatasetIOError(SpamClassifierError, OSError):
    default_message = "Dataset file not available."


class InvalidDataError(SpamClassifierError, ValueError):
    default_message = "Invalid row in dataset."


class TrainingError(SpamClassifierError):
    default_message = "Couldn't train the classifier!"


class PredictionError(SpamClassifierError):
    default_message = "Couldn't perform prediction!"


class EvaluationError(SpamClassifierError):
    default_message = "Couldn't evaluate the classifier!"


class ModelNotFoundError(SpamClassifierError, FileNotFoundError):
    default_message = "Model file not found."


class CorruptModelError(SpamClassifierError):
    default_message = "Invalid Model."


class MissingParameterError(SpamClassifierError):
    default_message = "missing query string message"
