"""
Actions understood by the state reducer.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict

from dto.dataset import Dataset
from dto.state import ActiveTab
from dto.visualization import VisualizationConfig


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True)


class DatasetLoaded(_Action):
    """A new dataset replaces the old one; any generated config is dropped."""
    dataset: Dataset


class PromptChanged(_Action):
    prompt: str


class ImageSelected(_Action):
    image_preview: Optional[str] = None


class TabSelected(_Action):
    tab: ActiveTab


class GenerationStarted(_Action):
    prompt: str = ""


class GenerationSucceeded(_Action):
    config: VisualizationConfig
    request_id: Optional[int] = None


class ConfigRestored(_Action):
    """A previously generated config brought back (e.g. from a saved file)."""
    config: VisualizationConfig


class GenerationFailed(_Action):
    message: str
    request_id: Optional[int] = None


class MessagePosted(_Action):
    role: Literal["user", "model"]
    text: str


Action = Union[
    DatasetLoaded,
    PromptChanged,
    ImageSelected,
    TabSelected,
    GenerationStarted,
    GenerationSucceeded,
    GenerationFailed,
    ConfigRestored,
    MessagePosted,
]
