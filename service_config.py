"""
service_config.py
Runtime settings, read from SMS_SPAM_* environment variables.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

ENV_PREFIX = "SMS_SPAM_"
TRUE_VALUES = {"1", "true", "yes", "on"}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _get_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in TRUE_VALUES


def _get_path(environ: Mapping[str, str], name: str, default: str) -> Path:
    raw = (environ.get(ENV_PREFIX + name) or "").strip()
    return Path(raw or default)


def cache_path_for(raw_path: Path) -> Path:
    return raw_path.with_suffix(".parquet")


@dataclass(frozen=True)
class Settings:
    train_data_path: Path = Path("data/train.txt")
    test_data_path: Path = Path("data/test.txt")
    model_path: Path = Path("models/sms.joblib")
    use_cache: bool = True
    abort_on_malformed_row: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            train_data_path=_get_path(env, "TRAIN_DATA", "data/train.txt"),
            test_data_path=_get_path(env, "TEST_DATA", "data/test.txt"),
            model_path=_get_path(env, "MODEL_PATH", "models/sms.joblib"),
            use_cache=_get_bool(env, "USE_CACHE", True),
            abort_on_malformed_row=_get_bool(env, "ABORT_ON_MALFORMED_ROW", True),
            log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or "INFO").strip().upper(),
        )

    @property
    def train_cache_path(self) -> Optional[Path]:
        return cache_path_for(self.train_data_path) if self.use_cache else None

    @property
    def test_cache_path(self) -> Optional[Path]:
        return cache_path_for(self.test_data_path) if self.use_cache else None

    def to_env(self) -> Dict[str, str]:
        return {
            ENV_PREFIX + "TRAIN_DATA": str(self.train_data_path),
            ENV_PREFIX + "TEST_DATA": str(self.test_data_path),
            ENV_PREFIX + "MODEL_PATH": str(self.model_path),
            ENV_PREFIX + "USE_CACHE": "true" if self.use_cache else "false",
            ENV_PREFIX + "ABORT_ON_MALFORMED_ROW": "true" if self.abort_on_malformed_row else "false",
            ENV_PREFIX + "LOG_LEVEL": self.log_level,
        }

    def with_overrides(self, **changes) -> "Settings":
        """Copy with the given non-None fields replaced (used by the CLI)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
