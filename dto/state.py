"""
UI state DTOs.

    AppState
      ├─ dataset:  Dataset | None
      ├─ config:   VisualizationConfig | None
      ├─ status / error_message / request_id
      ├─ prompt, image_preview, active_tab
      └─ history:  (ChatMessage, ...)

Every field is immutable; the store swaps in a new snapshot per update.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from dto.dataset import Dataset
from dto.visualization import VisualizationConfig


class ActiveTab(str, Enum):
    CHART = "chart"
    R = "r"
    PYTHON = "python"


class RequestStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str
    timestamp: float = Field(default_factory=time.time)


class AppState(BaseModel):
    model_config = ConfigDict(frozen=True)

    dataset: Optional[Dataset] = None
    config: Optional[VisualizationConfig] = None
    status: RequestStatus = RequestStatus.IDLE
    error_message: Optional[str] = None
    prompt: str = ""
    image_preview: Optional[str] = None  # data URL
    active_tab: ActiveTab = ActiveTab.CHART
    history: Tuple[ChatMessage, ...] = ()
    # Bumped by every GenerationStarted and by a DatasetLoaded mid-request.
    request_id: int = 0

    @property
    def loading(self) -> bool:
        return self.status == RequestStatus.LOADING
