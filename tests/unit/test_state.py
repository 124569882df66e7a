"""Tests for the application state store."""

from __future__ import annotations

from uuid import uuid4

import pytest

from plhcc.core.state import (
    AppState,
    ImportFinished,
    ImportProgressed,
    ImportStage,
    ImportStarted,
    ProjectSelected,
    Store,
    reduce,
)


class TestReduce:
    def test_import_lifecycle(self):
        state = reduce(AppState(), ImportStarted("projects"))
        assert state.imports.is_importing
        assert state.imports.stage == ImportStage.IMPORTING
        assert state.imports.import_type == "projects"
        assert state.imports.progress == 0

        state = reduce(state, ImportProgressed(40))
        assert state.imports.progress == 40

        state = reduce(state, ImportFinished())
        assert not state.imports.is_importing
        assert state.imports.stage == ImportStage.COMPLETE
        assert state.imports.progress == 0

    @pytest.mark.parametrize(("value", "expected"), [(-5, 0), (150, 100), (55, 55)])
    def test_progress_is_clamped(self, value, expected):
        state = reduce(AppState(), ImportProgressed(value))

        assert state.imports.progress == expected

    def test_does_not_mutate_input(self):
        before = AppState()

        reduce(before, ImportStarted("tasks"))

        assert before == AppState()

    def test_project_selection(self):
        project_id = uuid4()

        state = reduce(AppState(), ProjectSelected(project_id))

        assert state.selected_project_id == project_id
        assert reduce(state, ProjectSelected(None)).selected_project_id is None

    def test_unknown_action(self):
        with pytest.raises(TypeError):
            reduce(AppState(), object())


class TestStore:
    def test_dispatch_notifies_subscribers(self):
        store = Store()
        seen = []
        store.subscribe(lambda state: seen.append(state.imports.progress))

        store.dispatch(ImportStarted("vendors"))
        store.dispatch(ImportProgressed(50))

        assert seen == [0, 50]
        assert store.state.imports.progress == 50

    def test_unsubscribe(self):
        store = Store()
        seen = []
        unsubscribe = store.subscribe(seen.append)

        store.dispatch(ImportStarted("vendors"))
        unsubscribe()
        store.dispatch(ImportFinished())

        assert len(seen) == 1
