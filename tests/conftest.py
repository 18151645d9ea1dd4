"""Shared fixtures: a tiny spam/ham corpus written to temporary files."""

from __future__ import annotations

from pathlib import Path

import pytest

from service_config import Settings
from sms_dataset import from_examples, LabeledExample
from spam_classifier import SpamClassifier

HAM_MESSAGES = [
    "hi how are you doing today",
    "how are you my friend",
    "are you coming home for dinner",
    "see you at the meeting tomorrow",
    "how are you feeling now",
    "ok i will call you later",
    "thanks for the lovely evening",
    "can you pick up some milk",
]

SPAM_MESSAGES = [
    "u have won the 1 lakh prize call now",
    "congratulations u have won a cash prize",
    "claim your free prize now txt win",
    "you have won 1 lakh rupees claim now",
    "winner u have been selected for a prize",
    "free entry win cash txt now",
    "urgent call now to claim your reward",
    "won a lucky draw prize claim it",
]

TEST_LINES = [
    "ham\thow are you today",
    "ham\tsee you at dinner",
    "spam\tyou have won a cash prize claim now",
    "spam\tfree prize txt win now",
]


def _train_lines() -> list[str]:
    lines = []
    for ham, spam in zip(HAM_MESSAGES, SPAM_MESSAGES):
        lines.append(f"ham\t{ham}")
        lines.append(f"spam  {spam}")
    return lines


@pytest.fixture
def train_file(tmp_path: Path) -> Path:
    path = tmp_path / "data" / "train.txt"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(_train_lines()) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def test_file(tmp_path: Path) -> Path:
    path = tmp_path / "data" / "test.txt"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(TEST_LINES) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def train_dataset():
    examples = [LabeledExample("ham", text) for text in HAM_MESSAGES]
    examples += [LabeledExample("spam", text) for text in SPAM_MESSAGES]
    return from_examples(examples)


@pytest.fixture
def test_dataset():
    examples = []
    for line in TEST_LINES:
        label, text = line.split("\t", 1)
        examples.append(LabeledExample(label, text))
    return from_examples(examples)


@pytest.fixture
def fitted_classifier(train_dataset) -> SpamClassifier:
    classifier = SpamClassifier()
    classifier.transform()
    return classifier.fit(train_dataset)


@pytest.fixture
def settings(tmp_path: Path, train_file: Path, test_file: Path) -> Settings:
    return Settings(
        train_data_path=train_file,
        test_data_path=test_file,
        model_path=tmp_path / "models" / "sms.joblib",
    )
