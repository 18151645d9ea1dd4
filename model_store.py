"""
model_store.py
Saves and loads the fitted classifier as a single joblib file.

The file holds a dict: the feature pipeline config as plain data plus the
fitted sklearn estimator, tagged with a format version. Old or foreign files
are rejected with CorruptModelError instead of failing later at predict time.
"""
from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import joblib
import sklearn

from spam_errors import CorruptModelError, ModelNotFoundError
from text_features import PIPELINE_CONFIG_VERSION

logger = logging.getLogger(__name__)

MODEL_FORMAT_VERSION = 1
REQUIRED_KEYS = ("format_version", "pipeline_config", "labels", "estimator")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def make_blob(pipeline_config: Dict[str, Any], labels, estimator) -> Dict[str, Any]:
    return {
        "format_version": MODEL_FORMAT_VERSION,
        "pipeline_config": dict(pipeline_config),
        "sklearn_version": sklearn.__version__,
        "labels": list(labels),
        "saved_at": _utc_now(),
        "estimator": estimator,
    }


def save_model(blob: Dict[str, Any], path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=path.parent)
    os.close(fd)
    try:
        joblib.dump(blob, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    logger.info("Saved model: %s", path)


def load_model(path: Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise ModelNotFoundError(f"Model file not found: {path}")
    try:
        blob = joblib.load(path)
    except OSError as exc:
        logger.warning("Couldn't open saved model %s: %s", path, exc)
        raise CorruptModelError("Couldn't open saved Model file.") from exc
    except Exception as exc:
        logger.warning("Couldn't deserialize model %s: %s", path, exc)
        raise CorruptModelError("Invalid Model.") from exc

    if not isinstance(blob, dict) or any(key not in blob for key in REQUIRED_KEYS):
        raise CorruptModelError("Invalid Model: unrecognised model file layout.")
    if blob["format_version"] != MODEL_FORMAT_VERSION:
        raise CorruptModelError(
            f"Invalid Model: format version {blob['format_version']!r}, expected {MODEL_FORMAT_VERSION}."
        )
    pipeline_config = blob["pipeline_config"]
    if not isinstance(pipeline_config, dict):
        raise CorruptModelError("Invalid Model: pipeline config is missing.")
    config_version = pipeline_config.get("version")
    if config_version != PIPELINE_CONFIG_VERSION:
        raise CorruptModelError(
            f"Invalid Model: pipeline config version {config_version!r}, expected {PIPELINE_CONFIG_VERSION}."
        )

    saved_with = blob.get("sklearn_version")
    if saved_with and saved_with != sklearn.__version__:
        logger.warning(
            "Model %s was saved with scikit-learn %s, running %s", path, saved_with, sklearn.__version__
        )
    logger.info("Loaded model: %s", path)
    return blob
