"""
Explicit state container for a visualization session.

``reduce`` is a pure function from (snapshot, action) to the next
snapshot.  ``Store`` keeps the current snapshot, applies actions one at
a time and tells subscribers about every new snapshot.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from dto.state import AppState, ChatMessage, RequestStatus
from errors import GenerationInProgressError
from state.actions import (
    Action,
    ConfigRestored,
    DatasetLoaded,
    GenerationFailed,
    GenerationStarted,
    GenerationSucceeded,
    ImageSelected,
    MessagePosted,
    PromptChanged,
    TabSelected,
)

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]


def _append(state: AppState, role: str, text: str) -> tuple:
    return state.history + (ChatMessage(role=role, text=text),)


def _is_stale(state: AppState, action) -> bool:
    return action.request_id is not None and action.request_id != state.request_id


def reduce(state: AppState, action: Action) -> AppState:
    """
    Return the snapshot that follows *state* after *action*.

    Raises ``GenerationInProgressError`` for a GenerationStarted while
    a request is already outstanding.
    """
    if isinstance(action, DatasetLoaded):
        # An in-flight request was built for the old dataset; its result
        # no longer matches the request_id and will be dropped.
        return state.model_copy(
            update={
                "dataset": action.dataset,
                "config": None,
                "status": RequestStatus.LOADING if state.loading else RequestStatus.IDLE,
                "error_message": None,
                "request_id": state.request_id + 1 if state.loading else state.request_id,
            }
        )

    if isinstance(action, PromptChanged):
        return state.model_copy(update={"prompt": action.prompt})

    if isinstance(action, ImageSelected):
        return state.model_copy(update={"image_preview": action.image_preview})

    if isinstance(action, TabSelected):
        return state.model_copy(update={"active_tab": action.tab})

    if isinstance(action, GenerationStarted):
        if state.loading:
            raise GenerationInProgressError("A generation request is already in flight")
        update = {
            "status": RequestStatus.LOADING,
            "error_message": None,
            "request_id": state.request_id + 1,
        }
        if action.prompt:
            update["history"] = _append(state, "user", action.prompt)
        return state.model_copy(update=update)

    if isinstance(action, (GenerationSucceeded, GenerationFailed)) and _is_stale(state, action):
        logger.info("  [Store] Dropping result of superseded request %s", action.request_id)
        return state.model_copy(update={"status": RequestStatus.IDLE})

    if isinstance(action, GenerationSucceeded):
        config = action.config
        reply = config.title
        if config.description:
            reply = f"{reply}: {config.description}"
        return state.model_copy(
            update={
                "config": config,
                "status": RequestStatus.IDLE,
                "error_message": None,
                "history": _append(state, "model", reply),
            }
        )

    if isinstance(action, ConfigRestored):
        return state.model_copy(update={"config": action.config})

    if isinstance(action, GenerationFailed):
        return state.model_copy(
            update={"status": RequestStatus.ERROR, "error_message": action.message}
        )

    if isinstance(action, MessagePosted):
        return state.model_copy(
            update={"history": _append(state, action.role, action.text)}
        )

    raise TypeError(f"Unknown action: {type(action).__name__}")


class Store:
    """Holds the current AppState snapshot."""

    def __init__(self, initial: Optional[AppState] = None) -> None:
        self._state = initial or AppState()
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> AppState:
        with self._lock:
            new_state = reduce(self._state, action)
            self._state = new_state
        logger.debug("  [Store] %s -> status=%s", type(action).__name__, new_state.status.value)
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; the returned callable unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
