"""
Pytest fixtures for nextnav tests.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from nextnav.config import EngineConfig
from nextnav.engine import PredictionEngine
from nextnav.mock import MockNavigationGenerator
from nextnav.models import NavigationEvent, SuggestedItem, TrainingMode
from nextnav.store import InMemoryHistoryStore, InMemoryPreferencesStore

BASE_TIME = datetime(2026, 1, 20, 10, 0, tzinfo=timezone.utc)


def make_event(
    user_id: str,
    page: str,
    previous: Optional[str] = None,
    minutes: int = 0,
) -> NavigationEvent:
    """Navigation event at BASE_TIME + minutes."""
    return NavigationEvent(
        user_id=user_id,
        current_page_or_feature=page,
        previous_page_or_feature=previous,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
    )


class RecordingReporter:
    """ProgressReporter that keeps every report."""

    def __init__(self):
        self.reports: list[tuple] = []

    def report_progress(self, algorithm_name, current_step, percentage, is_completed=False, message=None):
        self.reports.append((algorithm_name, current_step, percentage, is_completed, message))


class StaticAlgorithm:
    """Algorithm returning fixed (name, score) pairs; counts training calls."""

    def __init__(self, name: str, suggestions: list[tuple[str, float]], weight: float = 1.0):
        self.name = name
        self.weight = weight
        self.suggestions = suggestions
        self.train_calls = 0
        self.trained_on: list[NavigationEvent] = []

    async def train(self, events, reporter):
        reporter.report_progress(self.name, "start", 0)
        self.train_calls += 1
        self.trained_on = list(events)
        reporter.report_progress(self.name, "done", 100, True)

    async def predict(self, user_id, current_context, max_results, context_data=None):
        return [SuggestedItem(name, score, self.name) for name, score in self.suggestions][:max_results]


class FailingAlgorithm(StaticAlgorithm):
    """Algorithm whose training always raises."""

    async def train(self, events, reporter):
        self.train_calls += 1
        raise RuntimeError("model exploded")


class BlockingAlgorithm(StaticAlgorithm):
    """Algorithm whose training waits until released."""

    def __init__(self, name: str = "Blocking"):
        super().__init__(name, [])
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def train(self, events, reporter):
        self.train_calls += 1
        self.started.set()
        await self.release.wait()


@pytest.fixture
def model_path(tmp_path):
    """Temporary classifier model path."""
    return tmp_path / "models" / "navigation_model.pkl"


@pytest.fixture
def config(model_path):
    """Manual-training configuration."""
    return EngineConfig(training_mode=TrainingMode.MANUAL, model_path=model_path)


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def preferences_store():
    return InMemoryPreferencesStore()


@pytest.fixture
def engine(history_store, preferences_store, config):
    """Engine with no algorithms registered."""
    return PredictionEngine(history_store, preferences_store, config)


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def mock_generator():
    """Mock navigation generator with fixed seed."""
    return MockNavigationGenerator(seed=42)


@pytest.fixture
def sample_history(mock_generator):
    """Generated history for a handful of users."""
    return mock_generator.generate_batch(5, sessions_per_user=6)
