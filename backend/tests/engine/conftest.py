"""Fixtures for graph engine tests."""

from __future__ import annotations

import pytest

from canvas.engine.coordinates import ViewState, Viewport
from canvas.engine.operations import NodeOperations
from canvas.engine.store import GraphStore
from canvas.engine.validator import ConnectionValidator
from canvas.nodes.registry import create_default_registry

from tests.engine.doubles import (
    RecordingAnalytics,
    RecordingFileStorage,
    RecordingNotifier,
)


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry():
    return create_default_registry()


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def validator(store, registry):
    return ConnectionValidator(store, registry)


@pytest.fixture
def view():
    return ViewState(viewport=Viewport(x=0.0, y=0.0, zoom=1.0), screen_width=1000, screen_height=800)


@pytest.fixture
def analytics():
    return RecordingAnalytics()


@pytest.fixture
def file_storage():
    return RecordingFileStorage()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def operations(store, registry, validator, view, analytics, file_storage):
    return NodeOperations(
        store, registry, validator, view=view, analytics=analytics, file_storage=file_storage,
    )
