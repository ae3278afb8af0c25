"""
Visualization session: the control flow between data, AI and chart.

    upload data → (optional) reference image → instruction → generate
      → request builder calls the AI → config lands in the store
      → chart plan / code panels reflect the new config

A follow-up instruction with no image refines the current config
instead of generating from scratch.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from ai.service import AIService
from dto.chart_plan import ChartPlan
from dto.dataset import Dataset
from dto.state import ActiveTab, AppState
from dto.visualization import VisualizationConfig
from errors import GenerationInProgressError
from generation.request_builder import analyze_image_and_data, refine_config
from loaders.csv_loader import load_csv_file, load_example_titanic
from prompts.visualization import DEFAULT_USER_PROMPT
from rendering import build_chart_plan, render_chart
from state.actions import (
    ConfigRestored,
    DatasetLoaded,
    GenerationFailed,
    GenerationStarted,
    GenerationSucceeded,
    ImageSelected,
    PromptChanged,
    TabSelected,
)
from state.store import Store
from utils.code_view import panel_text
from utils.images import read_image_as_data_url

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "AI Generation failed. Please check your API Key or try again."

ServiceFactory = Callable[[], AIService]


class VizSession:
    """
    One user's workspace: a Store plus the operations the UI triggers.

    *service_factory*, when given, supplies the AIService for every call
    instead of the provider factory (tests pass a fake here).
    """

    def __init__(
        self,
        store: Optional[Store] = None,
        service_factory: Optional[ServiceFactory] = None,
    ) -> None:
        self.store = store or Store()
        self._service_factory = service_factory

    @property
    def state(self) -> AppState:
        return self.store.state

    # ------------------------------------------------------------------
    # Data & inputs
    # ------------------------------------------------------------------

    def start(self) -> AppState:
        """Load the example dataset."""
        return self.load_dataset(load_example_titanic())

    def load_dataset(self, dataset: Dataset) -> AppState:
        return self.store.dispatch(DatasetLoaded(dataset=dataset))

    def upload_csv(self, path: Union[str, Path]) -> AppState:
        """
        Replace the dataset with the CSV at *path*.  A DataParseError
        propagates and the state is left as it was.
        """
        dataset = load_csv_file(path)
        return self.load_dataset(dataset)

    def restore_config(self, config: VisualizationConfig) -> AppState:
        return self.store.dispatch(ConfigRestored(config=config))

    def upload_image(self, path: Union[str, Path]) -> AppState:
        return self.store.dispatch(ImageSelected(image_preview=read_image_as_data_url(path)))

    def clear_image(self) -> AppState:
        return self.store.dispatch(ImageSelected(image_preview=None))

    def set_prompt(self, prompt: str) -> AppState:
        return self.store.dispatch(PromptChanged(prompt=prompt))

    def select_tab(self, tab: Union[ActiveTab, str]) -> AppState:
        return self.store.dispatch(TabSelected(tab=ActiveTab(tab)))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _service(self) -> Optional[AIService]:
        return self._service_factory() if self._service_factory else None

    def generate(self) -> bool:
        """
        Generate (or refine) a visualization from the current inputs.

        Returns True when a new config was stored.  Returns False when
        nothing was done (no dataset, or a request is already in flight),
        when the dataset changed while the call ran, or when the call
        failed; failures are recorded in the state as the generic notice
        and the previous config is kept.
        """
        state = self.state
        if state.dataset is None:
            logger.warning("No dataset loaded, nothing to visualize")
            return False

        try:
            request_id = self.store.dispatch(GenerationStarted(prompt=state.prompt)).request_id
        except GenerationInProgressError:
            logger.warning("Generation already in progress, request ignored")
            return False

        try:
            config = self._request(state)
        except Exception:
            logger.exception("Visualization generation failed")
            self.store.dispatch(
                GenerationFailed(message=GENERATION_FAILED_MESSAGE, request_id=request_id)
            )
            return False

        new_state = self.store.dispatch(GenerationSucceeded(config=config, request_id=request_id))
        return new_state.config is config

    def _request(self, state: AppState) -> VisualizationConfig:
        dataset = state.dataset
        if state.config is not None and state.prompt and not state.image_preview:
            logger.info("Refining '%s'", state.config.title)
            return refine_config(state.config, state.prompt, service=self._service())

        logger.info(
            "Generating visualization for '%s'%s",
            dataset.name,
            " with reference image" if state.image_preview else "",
        )
        return analyze_image_and_data(
            state.image_preview,
            dataset.data,
            dataset.columns,
            state.prompt or DEFAULT_USER_PROMPT,
            service=self._service(),
        )

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def chart_plan(self) -> Optional[ChartPlan]:
        state = self.state
        if state.config is None or state.dataset is None:
            return None
        return build_chart_plan(state.dataset.data, state.config)

    def render_chart(self, output_path: Union[str, Path]) -> Optional[Path]:
        plan = self.chart_plan()
        if plan is None:
            logger.warning("No visualization generated yet, nothing to render")
            return None
        return render_chart(plan, output_path)

    def panel_text(self, tab: Optional[Union[ActiveTab, str]] = None) -> str:
        return panel_text(self.state, ActiveTab(tab) if tab else None)
