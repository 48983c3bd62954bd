"""
NextNav - pluggable next-navigation suggestion engine.

Records where users go inside an application, trains several independent
prediction algorithms on that history and blends their suggestions with
user-defined shortcuts into one ranked list.

Usage:
    from nextnav import (
        EngineConfig, NavigationEvent, TrainingMode,
        NavigationConfigProvider, create_engine,
    )

    config = EngineConfig(training_mode=TrainingMode.BATCH_SCHEDULED)
    provider = NavigationConfigProvider.from_json_file(Path("navigation.json"))

    engine = await create_engine(
        config,
        rules_provider=provider,
        catalog=provider,
    )

    # Record navigations as they happen
    await engine.record_navigation(NavigationEvent(
        user_id="alice",
        current_page_or_feature="Dashboard",
        previous_page_or_feature="Home",
    ))

    # Ask for suggestions
    suggestions = await engine.get_suggestions("alice", current_context="Dashboard")

    await engine.close()
"""

__version__ = "0.4.0"

from .config import EngineConfig
from .exceptions import (
    NextNavError,
    InvalidInputError,
    ConfigurationError,
    ModelPersistenceError,
)
from .models import (
    NavigationEvent,
    SuggestedItem,
    UserCustomMenuItem,
    TrainingMode,
    TrainingProgress,
)
from .algorithms import (
    FrequencyAlgorithm,
    MarkovChainAlgorithm,
    DesignFlowAlgorithm,
    ClassifierAlgorithm,
    NavigationClassifier,
)
from .store import InMemoryHistoryStore, InMemoryPreferencesStore, SQLiteHistoryStore
from .engine import PredictionEngine, create_engine, default_algorithms
from .menu import UserMenuBuilder
from .providers import NavigationConfigProvider
from .api import create_app

__all__ = [
    # Config
    "EngineConfig",
    # Errors
    "NextNavError",
    "InvalidInputError",
    "ConfigurationError",
    "ModelPersistenceError",
    # Models
    "NavigationEvent",
    "SuggestedItem",
    "UserCustomMenuItem",
    "TrainingMode",
    "TrainingProgress",
    # Algorithms
    "FrequencyAlgorithm",
    "MarkovChainAlgorithm",
    "DesignFlowAlgorithm",
    "ClassifierAlgorithm",
    "NavigationClassifier",
    # Stores
    "InMemoryHistoryStore",
    "InMemoryPreferencesStore",
    "SQLiteHistoryStore",
    # Engine
    "PredictionEngine",
    "create_engine",
    "default_algorithms",
    "UserMenuBuilder",
    "NavigationConfigProvider",
    # API
    "create_app",
]
