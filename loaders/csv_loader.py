"""
CSV loader: turns uploaded CSV text or files into a Dataset.

pandas does the tokenizing: the header row gives the columns, blank
lines are skipped and quoting is honoured.  Every cell is read as text
and typed on its own afterwards, so one stray word in a column does not
keep the numbers around it from being numbers.  Only empty cells are
missing; text such as ``NA`` or ``None`` is kept as written.
"""

from __future__ import annotations

import io
import logging
import math
import re
from pathlib import Path
from typing import IO, Any, List, Optional, Union

import pandas as pd

from dto.dataset import Dataset, Row, Scalar
from errors import DataParseError

logger = logging.getLogger(__name__)

CsvSource = Union[str, Path, IO[str], IO[bytes]]

EXAMPLE_DATASET_NAME = "Titanic Dataset"

_INT_RE = re.compile(r"^\s*-?\d+\s*$")
_FLOAT_RE = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
_TRUE = {"true", "TRUE", "True"}
_FALSE = {"false", "FALSE", "False"}

# A small subset of the Titanic data, loaded on start.
_TITANIC_CSV = """PassengerId,Survived,Pclass,Name,Sex,Age,SibSp,Parch,Ticket,Fare,Cabin,Embarked
1,0,3,"Braund, Mr. Owen Harris",male,22,1,0,A/5 21171,7.25,,S
2,1,1,"Cumings, Mrs. John Bradley (Florence Briggs Thayer)",female,38,1,0,PC 17599,71.2833,C85,C
3,1,3,"Heikkinen, Miss. Laina",female,26,0,0,STON/O2. 3101282,7.925,,S
4,1,1,"Futrelle, Mrs. Jacques Heath (Lily May Peel)",female,35,1,0,113803,53.1,C123,S
5,0,3,"Allen, Mr. William Henry",male,35,0,0,373450,8.05,,S
6,0,3,"Moran, Mr. James",male,,0,0,330877,8.4583,,Q"""


def _to_scalar(value: Any) -> Scalar:
    """Type one cell: numbers and booleans are converted, empty is None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value)
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        return float(text)
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    return text


def _frame_to_rows(frame: pd.DataFrame, columns: List[str]) -> List[Row]:
    rows: List[Row] = []
    for record in frame.itertuples(index=False, name=None):
        rows.append({col: _to_scalar(v) for col, v in zip(columns, record)})
    return rows


def parse_csv(source: CsvSource, name: Optional[str] = None) -> Dataset:
    """
    Parse CSV text, a path or an open file into a Dataset.

    A plain ``str`` is treated as CSV text; pass a ``Path`` to read from
    disk.  Raises ``DataParseError`` when pandas cannot make sense of
    the input.
    """
    if isinstance(source, str):
        buffer: Any = io.StringIO(source)
        default_name = "data.csv"
    elif isinstance(source, Path):
        buffer = source
        default_name = source.name
    else:
        buffer = source
        default_name = Path(getattr(source, "name", "data.csv")).name

    try:
        frame = pd.read_csv(
            buffer,
            dtype=str,
            keep_default_na=False,
            na_values=[""],
            skip_blank_lines=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise DataParseError("Could not parse columns from CSV") from exc

    columns = [str(c) for c in frame.columns]
    if not columns:
        raise DataParseError("Could not parse columns from CSV")

    rows = _frame_to_rows(frame, columns)
    dataset = Dataset(name=name or default_name, data=rows, columns=columns)
    logger.info(
        "Loaded dataset '%s' -> %s", dataset.name, dataset.summary()
    )
    return dataset


def load_csv_file(path: Union[str, Path]) -> Dataset:
    """Load a CSV file from disk, naming the dataset after the file."""
    p = Path(path)
    if not p.is_file():
        raise DataParseError(f"CSV file not found: {p}")
    return parse_csv(p, name=p.name)


def load_example_titanic() -> Dataset:
    """The embedded Titanic sample used before anything is uploaded."""
    return parse_csv(_TITANIC_CSV, name=EXAMPLE_DATASET_NAME)
