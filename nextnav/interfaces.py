"""
Contracts between the engine, its algorithms and the host application.

The host supplies stores, catalog, rules provider, notifier and action
handler; any object with matching methods satisfies these protocols.
"""

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from .models import NavigationEvent, SuggestedItem, UserCustomMenuItem


@runtime_checkable
class ProgressReporter(Protocol):
    """Sink for training progress emitted by algorithms."""

    def report_progress(
        self,
        algorithm_name: str,
        current_step: str,
        percentage: int,
        is_completed: bool = False,
        message: Optional[str] = None,
    ) -> None: ...


class HistoryStore(Protocol):
    """Source of recorded navigation events."""

    async def add_event(self, event: NavigationEvent) -> None: ...

    async def get_user_history(
        self, user_id: str, since: Optional[datetime] = None
    ) -> list[NavigationEvent]: ...

    async def get_all_history(self, since: Optional[datetime] = None) -> list[NavigationEvent]: ...


class PreferencesStore(Protocol):
    """Per-user custom shortcuts."""

    async def add_or_update(self, item: UserCustomMenuItem) -> None: ...

    async def remove(self, user_id: str, item_name: str) -> None: ...

    async def get_all(self, user_id: str) -> list[UserCustomMenuItem]: ...


class NavigationCatalog(Protocol):
    """Every destination the application can navigate to."""

    def get_all_available_navigation_items(self) -> Sequence[str]: ...


class DesignFlowRulesProvider(Protocol):
    """Static context -> related pages rules, keys matched case-insensitively."""

    async def get_design_flow_rules(self) -> dict[str, list[str]]: ...


class NavigationNotifier(Protocol):
    """Receives the final suggestion list for display. May return an awaitable."""

    def update_suggestions_display(self, user_id: str, items: list[SuggestedItem]) -> Any: ...


class NavigationActionHandler(Protocol):
    """Performs a real navigation in the host application."""

    def perform_navigation(self, user_id: str, item_name: str) -> bool: ...


@runtime_checkable
class PredictionAlgorithm(Protocol):
    """A trainable, queryable prediction strategy."""

    name: str
    weight: float

    async def train(
        self, events: Sequence[NavigationEvent], reporter: ProgressReporter
    ) -> None: ...

    async def predict(
        self,
        user_id: str,
        current_context: Optional[str],
        max_results: int,
        context_data: Optional[dict[str, str]] = None,
    ) -> list[SuggestedItem]: ...


@runtime_checkable
class CatalogConsumer(Protocol):
    """Optional capability for algorithms that enumerate catalog destinations."""

    def set_navigation_catalog(self, catalog: NavigationCatalog) -> None: ...
