"""
sms_dataset.py
Loads SMS spam/ham datasets.

Raw format, one example per line:
  <label><whitespace><message>
e.g.
  ham   Ok lar... Joking wif u oni...
  spam  WINNER!! As a valued network customer you have been selected

Parsed datasets can be cached as Parquet so later runs skip re-parsing.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

import pandas as pd

from spam_errors import DatasetIOError, InvalidDataError

logger = logging.getLogger(__name__)

LABELS = ("spam", "ham")
LABEL_ATTRIBUTE = "label"
TEXT_ATTRIBUTE = "text"
ATTRIBUTES = (LABEL_ATTRIBUTE, TEXT_ATTRIBUTE)
LABEL_DTYPE = pd.CategoricalDtype(categories=list(LABELS), ordered=False)

_FIRST_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class LabeledExample:
    label: str
    text: str

    def __post_init__(self):
        if self.label not in LABELS:
            raise InvalidDataError(f"Unknown label {self.label!r}, expected one of {', '.join(LABELS)}.")
        if not self.text:
            raise InvalidDataError("Message text must not be empty.")


def empty_dataset() -> pd.DataFrame:
    return from_examples([])


def from_examples(examples: Iterable[LabeledExample]) -> pd.DataFrame:
    rows = [(ex.label, ex.text) for ex in examples]
    df = pd.DataFrame(rows, columns=list(ATTRIBUTES))
    df[LABEL_ATTRIBUTE] = df[LABEL_ATTRIBUTE].astype(LABEL_DTYPE)
    df[TEXT_ATTRIBUTE] = df[TEXT_ATTRIBUTE].astype(object)
    return df


def to_examples(dataset: pd.DataFrame) -> Iterator[LabeledExample]:
    for label, text in dataset[list(ATTRIBUTES)].itertuples(index=False, name=None):
        yield LabeledExample(label=str(label), text=str(text))


def validate_schema(dataset: pd.DataFrame, source: str = "dataset") -> pd.DataFrame:
    """Check columns and label values, and return the frame with a categorical label."""
    if list(dataset.columns) != list(ATTRIBUTES):
        raise InvalidDataError(
            f"{source}: expected attributes {list(ATTRIBUTES)}, found {list(dataset.columns)}."
        )
    labels = dataset[LABEL_ATTRIBUTE].astype(str)
    unknown = sorted(set(labels) - set(LABELS))
    if unknown:
        raise InvalidDataError(f"{source}: unknown labels {unknown}.")
    texts = dataset[TEXT_ATTRIBUTE]
    if texts.isna().any() or (texts.astype(str).str.len() == 0).any():
        raise InvalidDataError(f"{source}: empty message text.")
    out = pd.DataFrame(
        {
            LABEL_ATTRIBUTE: labels.astype(LABEL_DTYPE),
            TEXT_ATTRIBUTE: texts.astype(str).astype(object),
        }
    )
    return out.reset_index(drop=True)


def parse_line(line: str) -> Optional[LabeledExample]:
    """Split a raw line at the first whitespace run. Blank lines give None."""
    stripped = line.strip()
    if not stripped:
        return None
    parts = _FIRST_WHITESPACE_RUN.split(stripped, maxsplit=1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidDataError("Invalid row in dataset: expected '<label> <message>'.")
    return LabeledExample(label=parts[0], text=parts[1])


def _parse_raw(path: Path, abort_on_malformed_row: bool) -> Tuple[pd.DataFrame, int]:
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        logger.warning("Couldn't read dataset %s: %s", path, exc)
        raise DatasetIOError(f"Dataset not available: {path}") from exc
    except UnicodeDecodeError as exc:
        raise DatasetIOError(f"Dataset is not valid UTF-8 text: {path}") from exc

    examples: List[LabeledExample] = []
    skipped = 0
    for lineno, line in enumerate(lines, start=1):
        try:
            example = parse_line(line)
        except InvalidDataError as exc:
            if abort_on_malformed_row:
                logger.info("Invalid row %d in dataset %s", lineno, path)
                raise InvalidDataError(f"Invalid row in dataset {path.name} at line {lineno}: {exc}") from exc
            skipped += 1
            logger.warning("Skipping invalid row %d in dataset %s: %s", lineno, path, exc)
            continue
        if example is not None:
            examples.append(example)

    dataset = from_examples(examples)
    logger.info("Loaded %d rows from %s (%d skipped)", len(dataset), path, skipped)
    return dataset, skipped


def load_raw(path: Path, abort_on_malformed_row: bool = True) -> pd.DataFrame:
    dataset, _skipped = _parse_raw(path, abort_on_malformed_row)
    return dataset


def load_cached(path: Path) -> pd.DataFrame:
    path = Path(path)
    if not path.is_file():
        raise DatasetIOError(f"Cached dataset not available: {path}")
    try:
        df = pd.read_parquet(path)
    except OSError as exc:
        raise DatasetIOError(f"Couldn't read cached dataset: {path}") from exc
    except Exception as exc:
        raise InvalidDataError(f"Cached dataset is not readable: {path}") from exc
    dataset = validate_schema(df, source=str(path))
    logger.info("Loaded %d rows from cache %s", len(dataset), path)
    return dataset


def save_cached(dataset: pd.DataFrame, path: Path) -> None:
    path = Path(path)
    dataset = validate_schema(dataset)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        dataset.to_parquet(path, index=False)
    except OSError as exc:
        logger.warning("Couldn't save cached dataset %s: %s", path, exc)
        raise DatasetIOError(f"Couldn't save cached dataset: {path}") from exc
    except ValueError as exc:
        raise DatasetIOError(f"Couldn't write cached dataset: {path}") from exc
    logger.info("Saved %d rows to cache %s", len(dataset), path)


def _cache_is_fresh(raw_path: Path, cache_path: Path) -> bool:
    if not cache_path.is_file():
        return False
    if not raw_path.exists():
        return True
    return cache_path.stat().st_mtime >= raw_path.stat().st_mtime


def load_dataset(
    raw_path: Path,
    cache_path: Optional[Path] = None,
    abort_on_malformed_row: bool = True,
) -> pd.DataFrame:
    """
    Load from the cache when it is up to date, otherwise parse the raw file and refresh the cache.

    The cache only ever holds a parse with no skipped rows, so it reads the
    same under either malformed-row policy. A cache that can't be read or
    written is logged and the raw file is used instead.
    """
    raw_path = Path(raw_path)
    if cache_path is not None:
        cache_path = Path(cache_path)
        if _cache_is_fresh(raw_path, cache_path):
            try:
                return load_cached(cache_path)
            except (DatasetIOError, InvalidDataError) as exc:
                logger.warning("Ignoring cached dataset %s: %s", cache_path, exc)

    dataset, skipped = _parse_raw(raw_path, abort_on_malformed_row)
    if cache_path is None:
        return dataset
    if skipped:
        logger.info("Not caching %s: %d rows were skipped", raw_path, skipped)
        _discard_cache(cache_path)
        return dataset
    try:
        save_cached(dataset, cache_path)
    except (DatasetIOError, InvalidDataError) as exc:
        logger.warning("Dataset cache not updated: %s", exc)
    return dataset


def _discard_cache(cache_path: Path) -> None:
    if not cache_path.is_file():
        return
    try:
        cache_path.unlink()
    except OSError as exc:
        logger.warning("Couldn't remove cached dataset %s: %s", cache_path, exc)
