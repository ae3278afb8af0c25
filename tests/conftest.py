import json
from typing import Any, Dict, List, Optional

import pytest

from ai.service import AIService
from dto.dataset import Dataset
from dto.visualization import VisualizationConfig


def make_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "chartType": "bar",
        "xAxisKey": "Pclass",
        "yAxisKey": "Fare",
        "title": "Fare by class",
        "description": "Average fare paid per passenger class",
        "rCode": "library(ggplot2)\nggplot(df, aes(Pclass, Fare)) + geom_col()",
        "pythonCode": "import seaborn as sns\nsns.barplot(data=df, x='Pclass', y='Fare')",
    }
    payload.update(overrides)
    return payload


def make_config(**overrides: Any) -> VisualizationConfig:
    return VisualizationConfig.model_validate(make_payload(**overrides))


class FakeAIService(AIService):
    """Records calls and answers with a canned response (or raises)."""

    def __init__(self, response: Optional[str] = None, error: Optional[Exception] = None):
        self.response = json.dumps(make_payload()) if response is None else response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def _answer(self) -> str:
        if self.error is not None:
            raise self.error
        return self.response

    def get_decision(self, prompt, response_schema=None):
        self.calls.append(
            {"kind": "text", "prompt": prompt, "response_schema": response_schema}
        )
        return self._answer()

    def get_decision_for_media(self, prompt, image_bytes, mime_type="image/png", response_schema=None):
        self.calls.append(
            {
                "kind": "media",
                "prompt": prompt,
                "image_bytes": image_bytes,
                "mime_type": mime_type,
                "response_schema": response_schema,
            }
        )
        return self._answer()


@pytest.fixture
def fake_service():
    return FakeAIService()


@pytest.fixture
def category_rows():
    """25 rows, Category split 10 / 10 / 5."""
    rows = []
    for i in range(25):
        if i < 10:
            cat = "A"
        elif i < 20:
            cat = "B"
        else:
            cat = "C"
        rows.append({"Category": cat, "Amount": i})
    return rows


@pytest.fixture
def small_dataset():
    return Dataset(
        name="small.csv",
        columns=["Pclass", "Fare"],
        data=[
            {"Pclass": 1, "Fare": 71.28},
            {"Pclass": 1, "Fare": 53.1},
            {"Pclass": 2, "Fare": 13.0},
            {"Pclass": 3, "Fare": 7.25},
            {"Pclass": 3, "Fare": 7.92},
            {"Pclass": 3, "Fare": 8.05},
        ],
    )
