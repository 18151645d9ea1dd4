"""
text_features.py
Bag-of-words feature pipeline shared by training and prediction.

The vectorizer learns its vocabulary once, when the classifier is fitted, and
is reused unchanged afterwards: unseen tokens in new messages are ignored.
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Dict, List

from sklearn.feature_extraction.text import CountVectorizer
from sklearn.naive_bayes import MultinomialNB
from sklearn.pipeline import Pipeline

from spam_errors import TrainingError

if TYPE_CHECKING:
    from spam_classifier import SpamClassifier

PIPELINE_CONFIG_VERSION = 1


@dataclass(frozen=True)
class FeaturePipelineConfig:
    min_gram: int = 1
    max_gram: int = 1
    delimiter_pattern: str = r"\W"
    lowercase: bool = True
    target_attribute: str = "text"
    version: int = PIPELINE_CONFIG_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeaturePipelineConfig":
        return cls(
            min_gram=int(data["min_gram"]),
            max_gram=int(data["max_gram"]),
            delimiter_pattern=str(data["delimiter_pattern"]),
            lowercase=bool(data["lowercase"]),
            target_attribute=str(data["target_attribute"]),
            version=int(data["version"]),
        )


class DelimiterTokenizer:
    """Splits text on a delimiter regex and drops empty tokens."""

    def __init__(self, delimiter_pattern: str = r"\W"):
        self.delimiter_pattern = delimiter_pattern
        self._regex = re.compile(delimiter_pattern)

    def __call__(self, text: str) -> List[str]:
        return [token for token in self._regex.split(text) if token]

    def __getstate__(self):
        return {"delimiter_pattern": self.delimiter_pattern}

    def __setstate__(self, state):
        self.__init__(state["delimiter_pattern"])


def build_vectorizer(config: FeaturePipelineConfig) -> CountVectorizer:
    return CountVectorizer(
        tokenizer=DelimiterTokenizer(config.delimiter_pattern),
        token_pattern=None,
        lowercase=config.lowercase,
        ngram_range=(config.min_gram, config.max_gram),
    )


def build_pipeline(config: FeaturePipelineConfig, alpha: float = 1.0) -> Pipeline:
    return Pipeline(
        steps=[
            ("vectorizer", build_vectorizer(config)),
            ("nb", MultinomialNB(alpha=alpha)),
        ]
    )


def attach(classifier: "SpamClassifier", config: FeaturePipelineConfig | None = None) -> "SpamClassifier":
    """Give the classifier a fresh, unfitted feature pipeline."""
    config = config or FeaturePipelineConfig()
    if config.min_gram < 1 or config.max_gram < config.min_gram:
        raise TrainingError(f"Invalid n-gram range: ({config.min_gram}, {config.max_gram})")
    classifier.config = config
    classifier.pipeline = build_pipeline(config, alpha=classifier.alpha)
    classifier.fitted = False
    return classifier
