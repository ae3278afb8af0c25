"""
Dataset DTO: the loaded CSV as ordered rows plus column names.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

# A single cell: numbers where the CSV parser could type them, text
# otherwise, None for missing values.
Scalar = Optional[Union[bool, int, float, str]]

Row = Dict[str, Scalar]


class Dataset(BaseModel):
    """A parsed table.  Replaced wholesale on every upload, never edited."""

    model_config = ConfigDict(frozen=True)

    name: str
    data: List[Row] = []
    columns: List[str] = []

    @property
    def row_count(self) -> int:
        return len(self.data)

    def sample(self, n: int = 3) -> List[Row]:
        """First *n* rows, as sent to the model."""
        return self.data[:n]

    def summary(self) -> str:
        return f"{len(self.data)} rows, {len(self.columns)} columns loaded."
