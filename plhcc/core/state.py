"""Explicit application state container.

State is an immutable dataclass. Changes go through ``Store.dispatch`` which
runs the reducer and notifies subscribers, so import progress can be observed
by whichever surface drives the import (CLI progress bar, HTTP handler, tests).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from uuid import UUID

logger = logging.getLogger(__name__)


class ImportStage(str, Enum):
    IDLE = "idle"
    IMPORTING = "importing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ImportState:
    is_importing: bool = False
    progress: int = 0
    stage: ImportStage = ImportStage.IDLE
    import_type: str | None = None


@dataclass(frozen=True)
class AppState:
    imports: ImportState = field(default_factory=ImportState)
    selected_project_id: UUID | None = None


# Actions


@dataclass(frozen=True)
class ImportStarted:
    import_type: str


@dataclass(frozen=True)
class ImportProgressed:
    progress: int


@dataclass(frozen=True)
class ImportFinished:
    pass


@dataclass(frozen=True)
class ProjectSelected:
    project_id: UUID | None


Action = ImportStarted | ImportProgressed | ImportFinished | ProjectSelected
Listener = Callable[[AppState], None]


def reduce(state: AppState, action: Action) -> AppState:
    """Pure transition function."""
    if isinstance(action, ImportStarted):
        return replace(
            state,
            imports=ImportState(
                is_importing=True,
                progress=0,
                stage=ImportStage.IMPORTING,
                import_type=action.import_type,
            ),
        )
    if isinstance(action, ImportProgressed):
        progress = max(0, min(100, action.progress))
        return replace(state, imports=replace(state.imports, progress=progress))
    if isinstance(action, ImportFinished):
        # Progress resets once the run is over
        return replace(
            state,
            imports=replace(
                state.imports, is_importing=False, progress=0, stage=ImportStage.COMPLETE
            ),
        )
    if isinstance(action, ProjectSelected):
        return replace(state, selected_project_id=action.project_id)

    raise TypeError(f"Unknown action: {type(action).__name__}")


class Store:
    """Holds the current ``AppState`` and fans out changes."""

    def __init__(self, initial: AppState | None = None):
        self._state = initial or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: Action) -> AppState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
