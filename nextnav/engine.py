"""
Prediction Engine - orchestrates training and blends algorithm suggestions.

The engine:
1. Records navigation events into the history store
2. Decides when to retrain, according to the active TrainingMode
3. Trains every registered algorithm on the full history, reporting progress
4. Merges per-algorithm candidates with the user's custom shortcuts

Automatic training is always launched as a background task; failures are
reported through progress listeners, never raised to the caller that
recorded the event.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

from .algorithms import (
    ClassifierAlgorithm,
    DesignFlowAlgorithm,
    FrequencyAlgorithm,
    MarkovChainAlgorithm,
)
from .config import EngineConfig
from .exceptions import ConfigurationError
from .interfaces import (
    CatalogConsumer,
    DesignFlowRulesProvider,
    HistoryStore,
    NavigationActionHandler,
    NavigationCatalog,
    NavigationNotifier,
    PredictionAlgorithm,
    PreferencesStore,
)
from .models import NavigationEvent, SuggestedItem, TrainingMode, TrainingProgress
from .store import InMemoryHistoryStore, InMemoryPreferencesStore

logger = logging.getLogger(__name__)

GLOBAL_PROGRESS_NAME = "Global"
CUSTOM_PROGRESS_NAME = "CustomLogic"
USER_CUSTOM_REASON = "UserCustom"

CustomTrainingLogic = Callable[["PredictionEngine"], Awaitable[None]]
ProgressListener = Callable[[TrainingProgress], Any]
TrainedListener = Callable[["PredictionEngine"], Any]


class PredictionEngine:
    """
    Ensemble of prediction algorithms plus the training-mode state machine.

    The engine is the progress reporter handed to each algorithm during
    training; hosts observe progress through listeners.
    """

    def __init__(
        self,
        history_store: HistoryStore,
        preferences_store: PreferencesStore,
        config: Optional[EngineConfig] = None,
    ):
        """
        Initialize the engine.

        Args:
            history_store: Store of recorded navigation events
            preferences_store: Store of user custom shortcuts
            config: Configuration options
        """
        self.config = config or EngineConfig()
        self.history_store = history_store
        self.preferences_store = preferences_store

        self._algorithms: list[PredictionAlgorithm] = []

        # Client integration
        self._notifier: Optional[NavigationNotifier] = None
        self._action_handler: Optional[NavigationActionHandler] = None
        self._catalog: Optional[NavigationCatalog] = None

        # Observers
        self._progress_listeners: list[ProgressListener] = []
        self._trained_listeners: list[TrainedListener] = []

        # Training strategy
        self._training_mode = self.config.training_mode
        self._custom_training_logic: Optional[CustomTrainingLogic] = None
        self._batch_interval = self.config.batch_interval_seconds
        self._batch_threshold = self.config.batch_threshold

        # Shared training state, guarded by _lock
        self._lock = asyncio.Lock()
        self._is_training_in_progress = False
        self._events_since_training = 0

        self._training_cycles_completed = 0
        self._training_task: Optional[asyncio.Task] = None
        self._batch_timer: Optional[asyncio.Task] = None
        self._background_tasks: set[asyncio.Task] = set()
        self._running = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def algorithms(self) -> tuple[PredictionAlgorithm, ...]:
        return tuple(self._algorithms)

    @property
    def training_mode(self) -> TrainingMode:
        return self._training_mode

    @property
    def is_training_in_progress(self) -> bool:
        return self._is_training_in_progress

    @property
    def events_since_training(self) -> int:
        return self._events_since_training

    @property
    def training_cycles_completed(self) -> int:
        return self._training_cycles_completed

    @property
    def running(self) -> bool:
        return self._running

    # =========================================================================
    # Setup
    # =========================================================================

    def add_algorithm(self, algorithm: PredictionAlgorithm) -> None:
        """Register an algorithm; it contributes to every later prediction."""
        self._algorithms.append(algorithm)
        logger.info(f"Algorithm '{algorithm.name}' added (weight {algorithm.weight})")

        if self._catalog is not None and isinstance(algorithm, CatalogConsumer):
            algorithm.set_navigation_catalog(self._catalog)

    def configure_client_integration(
        self,
        notifier: Optional[NavigationNotifier] = None,
        action_handler: Optional[NavigationActionHandler] = None,
        catalog: Optional[NavigationCatalog] = None,
    ) -> None:
        """
        Wire the host application's collaborators into the engine.

        Args:
            notifier: Receives every final suggestion list
            action_handler: Performs navigations on behalf of the engine
            catalog: Enumerates all destinations (pushed to catalog consumers)
        """
        self._notifier = notifier
        self._action_handler = action_handler
        self._catalog = catalog

        if notifier is None:
            logger.warning("No navigation notifier configured, suggestions will not be pushed")
        if action_handler is None:
            logger.warning("No navigation action handler configured, suggested navigation is disabled")
        if catalog is None:
            logger.warning("No navigation catalog configured, classifier falls back to trained labels")
        else:
            for algorithm in self._algorithms:
                if isinstance(algorithm, CatalogConsumer):
                    algorithm.set_navigation_catalog(catalog)

        logger.info("Client integration configured")

    def set_training_strategy(
        self,
        mode: TrainingMode,
        custom_logic: Optional[CustomTrainingLogic] = None,
        batch_interval: Optional[float] = None,
        batch_threshold: Optional[int] = None,
    ) -> None:
        """
        Choose when algorithms are retrained.

        Args:
            mode: Training mode
            custom_logic: Async routine replacing the standard loop (CUSTOM)
            batch_interval: Seconds between scheduled retrains (BATCH_SCHEDULED)
            batch_threshold: Pending events that force a retrain (BATCH_SCHEDULED)
        """
        if batch_interval is not None and batch_interval <= 0:
            raise ConfigurationError("batch_interval", batch_interval, "must be positive")
        if batch_threshold is not None and batch_threshold < 1:
            raise ConfigurationError("batch_threshold", batch_threshold, "must be at least 1")

        self._training_mode = TrainingMode(mode)
        self._custom_training_logic = custom_logic
        if batch_interval is not None:
            self._batch_interval = batch_interval
        if batch_threshold is not None:
            self._batch_threshold = batch_threshold

        if self._training_mode == TrainingMode.CUSTOM and custom_logic is None:
            logger.warning("CUSTOM training mode without custom logic, using the standard training loop")

        if self._running:
            self._restart_batch_timer()

        logger.info(f"Training strategy set to: {self._training_mode.value}")

    # =========================================================================
    # Observers
    # =========================================================================

    def add_progress_listener(self, listener: ProgressListener) -> None:
        self._progress_listeners.append(listener)

    def remove_progress_listener(self, listener: ProgressListener) -> None:
        if listener in self._progress_listeners:
            self._progress_listeners.remove(listener)

    def add_trained_listener(self, listener: TrainedListener) -> None:
        self._trained_listeners.append(listener)

    def remove_trained_listener(self, listener: TrainedListener) -> None:
        if listener in self._trained_listeners:
            self._trained_listeners.remove(listener)

    def report_progress(
        self,
        algorithm_name: str,
        current_step: str,
        percentage: int,
        is_completed: bool = False,
        message: Optional[str] = None,
    ) -> None:
        """Progress sink used by algorithms during training."""
        self._emit_progress(TrainingProgress(
            algorithm_name=algorithm_name,
            current_step=current_step,
            percentage=percentage,
            is_completed=is_completed,
            message=message,
        ))

    def _emit_progress(self, progress: TrainingProgress) -> None:
        logger.debug(
            f"Training progress: {progress.algorithm_name} {progress.percentage}% "
            f"({progress.current_step})"
        )
        for listener in list(self._progress_listeners):
            self._invoke_callback(listener, progress, "Progress listener")

    def _notify_trained(self) -> None:
        for listener in list(self._trained_listeners):
            self._invoke_callback(listener, self, "Training-completed listener")

    def _invoke_callback(self, callback: Callable[..., Any], arg: Any, label: str) -> None:
        """Call a host callback; awaitable results run as tracked background tasks."""
        try:
            result = callback(arg)
        except Exception as e:
            logger.error(f"{label} failed: {e}", exc_info=True)
            return

        if inspect.isawaitable(result):
            self._track(asyncio.ensure_future(self._await_callback(result, label)))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """
        Start automatic training according to the training mode.

        ON_STARTUP_ONCE launches a single background training pass;
        BATCH_SCHEDULED starts the interval timer.
        """
        if self._running:
            logger.warning("PredictionEngine already running")
            return

        self._running = True

        if self._training_mode == TrainingMode.ON_STARTUP_ONCE:
            logger.info("Launching startup training pass")
            self._launch_training()

        self._restart_batch_timer()
        logger.info(f"PredictionEngine started ({self._training_mode.value})")

    async def close(self) -> None:
        """Stop the batch timer and wait for background work to finish."""
        self._running = False

        if self._batch_timer:
            self._batch_timer.cancel()
            try:
                await self._batch_timer
            except asyncio.CancelledError:
                pass
            self._batch_timer = None

        await self.wait_until_idle()
        logger.info(f"PredictionEngine stopped after {self._training_cycles_completed} training cycles")

    async def wait_until_idle(self) -> None:
        """Wait for all background training and notification tasks."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def __aenter__(self) -> "PredictionEngine":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    def _restart_batch_timer(self) -> None:
        if self._batch_timer:
            self._batch_timer.cancel()
            self._batch_timer = None

        if self._running and self._training_mode == TrainingMode.BATCH_SCHEDULED:
            self._batch_timer = asyncio.create_task(self._batch_timer_loop())

    async def _batch_timer_loop(self) -> None:
        while True:
            await asyncio.sleep(self._batch_interval)
            async with self._lock:
                if self._events_since_training == 0:
                    continue
                if not self._can_schedule_training():
                    continue
                logger.info(
                    f"Batch interval elapsed with {self._events_since_training} pending events, "
                    f"triggering training"
                )
                self._launch_training()

    def _can_schedule_training(self) -> bool:
        if self._is_training_in_progress:
            return False
        return self._training_task is None or self._training_task.done()

    def _launch_training(self) -> None:
        """Fire-and-forget training cycle."""
        task = asyncio.create_task(self.train_algorithms())
        self._training_task = task
        self._track(task)

    def _track(self, task: asyncio.Task) -> None:
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # =========================================================================
    # Recording & training
    # =========================================================================

    async def record_navigation(self, event: NavigationEvent) -> None:
        """
        Record a navigation event, possibly triggering a background retrain.

        Raises:
            InvalidInputError: If the store rejects the event
        """
        await self.history_store.add_event(event)

        async with self._lock:
            if self._training_mode == TrainingMode.CONTINUOUS_DEVELOPMENT:
                if self._can_schedule_training():
                    self._launch_training()

            elif self._training_mode == TrainingMode.BATCH_SCHEDULED:
                self._events_since_training += 1
                if (
                    self._events_since_training >= self._batch_threshold
                    and self._can_schedule_training()
                ):
                    logger.info(
                        f"Batch threshold reached ({self._events_since_training} events), "
                        f"triggering training"
                    )
                    self._launch_training()

    async def train_algorithms(self) -> bool:
        """
        Run one training cycle over the complete history.

        A call while another cycle is in flight is skipped. Failures are
        reported as a terminal "Global" progress event and swallowed.

        Returns:
            True if the cycle ran and succeeded
        """
        async with self._lock:
            if self._is_training_in_progress:
                logger.info("Training already in progress, skipping request")
                return False
            self._is_training_in_progress = True
            self._events_since_training = 0

        logger.info("Starting training cycle")
        try:
            self._emit_progress(TrainingProgress(
                GLOBAL_PROGRESS_NAME, "Starting training cycle", 0, False,
                "Preparing historical data...",
            ))

            if self._training_mode == TrainingMode.CUSTOM and self._custom_training_logic is not None:
                await self._custom_training_logic(self)
                self._emit_progress(TrainingProgress(
                    CUSTOM_PROGRESS_NAME, "Custom training finished", 100, True,
                ))
            else:
                history = list(await self.history_store.get_all_history())
                algorithms = list(self._algorithms)
                total = len(algorithms)

                for completed, algorithm in enumerate(algorithms, start=1):
                    logger.info(f"Training algorithm: {algorithm.name}")
                    await algorithm.train(history, self)
                    self._emit_progress(TrainingProgress(
                        algorithm.name,
                        "Training finished",
                        int(completed / total * 100),
                        True,
                        f"Algorithm {algorithm.name} finished.",
                    ))

            self._training_cycles_completed += 1
            logger.info("All algorithms retrained successfully")
            self._notify_trained()
            return True

        except Exception as e:
            logger.error(f"Training cycle failed: {e}", exc_info=True)
            self._emit_progress(TrainingProgress(
                GLOBAL_PROGRESS_NAME, "Training failed", 100, True, f"Error: {e}",
            ))
            return False

        finally:
            async with self._lock:
                self._is_training_in_progress = False

    # =========================================================================
    # Suggestions
    # =========================================================================

    async def get_suggestions(
        self,
        user_id: str,
        current_context: Optional[str] = None,
        count: Optional[int] = None,
        context_data: Optional[dict[str, str]] = None,
    ) -> list[SuggestedItem]:
        """
        Blend algorithm predictions and custom shortcuts into one ranking.

        Args:
            user_id: User to suggest for
            current_context: Page the user is on
            count: Maximum suggestions (defaults to config)
            context_data: Extra context passed to every algorithm

        Returns:
            Suggestions ordered by descending score
        """
        if count is None:
            count = self.config.default_suggestion_count

        merged: dict[str, SuggestedItem] = {}

        for algorithm in self._algorithms:
            for suggestion in await algorithm.predict(user_id, current_context, count, context_data):
                self._merge(merged, suggestion)

        custom_items = await self.preferences_store.get_all(user_id)
        n_custom = len(custom_items)
        for item in custom_items:
            self._merge(merged, SuggestedItem(
                name=item.item_name,
                score=self.config.custom_item_base_score + (n_custom - item.order),
                reason=USER_CUSTOM_REASON,
            ))

        final = sorted(merged.values(), key=lambda s: s.score, reverse=True)[:max(count, 0)]

        logger.info(
            f"Final suggestions for '{user_id}' ({len(final)} items): "
            + ", ".join(f"{s.name} ({s.score:.2f}, {s.reason})" for s in final)
        )

        self._push_to_notifier(user_id, final)
        return final

    @staticmethod
    def _merge(merged: dict[str, SuggestedItem], suggestion: SuggestedItem) -> None:
        # Strictly greater: on ties the first-seen suggestion is kept
        existing = merged.get(suggestion.name)
        if existing is None or existing.score < suggestion.score:
            merged[suggestion.name] = suggestion

    def _push_to_notifier(self, user_id: str, items: list[SuggestedItem]) -> None:
        if self._notifier is None:
            return

        try:
            result = self._notifier.update_suggestions_display(user_id, list(items))
        except Exception as e:
            logger.error(f"Navigation notifier failed: {e}", exc_info=True)
            return

        if inspect.isawaitable(result):
            self._track(asyncio.ensure_future(self._await_callback(result, "Navigation notifier")))

    @staticmethod
    async def _await_callback(result: Awaitable, label: str) -> None:
        try:
            await result
        except Exception as e:
            logger.error(f"{label} failed: {e}", exc_info=True)

    def perform_suggested_navigation(self, user_id: str, item_name: str) -> bool:
        """
        Ask the host's action handler to navigate to a suggestion.

        Returns:
            False when no handler is configured, else the handler's result
        """
        if self._action_handler is None:
            logger.warning("No navigation action handler registered, cannot navigate")
            return False
        return bool(self._action_handler.perform_navigation(user_id, item_name))

    def get_stats(self) -> dict:
        """Get engine statistics."""
        return {
            "training_mode": self._training_mode.value,
            "training_in_progress": self._is_training_in_progress,
            "events_since_training": self._events_since_training,
            "training_cycles_completed": self._training_cycles_completed,
            "algorithms": {
                algorithm.name: (
                    algorithm.get_stats() if hasattr(algorithm, "get_stats")
                    else {"weight": algorithm.weight}
                )
                for algorithm in self._algorithms
            },
        }


def default_algorithms(
    config: EngineConfig,
    rules_provider: Optional[DesignFlowRulesProvider] = None,
) -> list[PredictionAlgorithm]:
    """Frequency, Markov, DesignFlow (if rules are available) and Classifier."""
    algorithms: list[PredictionAlgorithm] = [
        FrequencyAlgorithm(weight=config.frequency_weight),
        MarkovChainAlgorithm(weight=config.markov_weight),
    ]
    if rules_provider is not None:
        algorithms.append(DesignFlowAlgorithm(rules_provider, weight=config.design_flow_weight))
    algorithms.append(ClassifierAlgorithm(model_path=config.model_path, weight=config.classifier_weight))
    return algorithms


async def create_engine(
    config: Optional[EngineConfig] = None,
    *,
    history_store: Optional[HistoryStore] = None,
    preferences_store: Optional[PreferencesStore] = None,
    algorithms: Optional[list[PredictionAlgorithm]] = None,
    rules_provider: Optional[DesignFlowRulesProvider] = None,
    notifier: Optional[NavigationNotifier] = None,
    action_handler: Optional[NavigationActionHandler] = None,
    catalog: Optional[NavigationCatalog] = None,
    custom_training_logic: Optional[CustomTrainingLogic] = None,
) -> PredictionEngine:
    """
    Build, wire and start a PredictionEngine.

    Args:
        config: Configuration (uses defaults if None)
        history_store: Defaults to an InMemoryHistoryStore
        preferences_store: Defaults to an InMemoryPreferencesStore
        algorithms: Defaults to default_algorithms(config, rules_provider)
        rules_provider: Design-flow rules for the default DesignFlowAlgorithm
        notifier: Host notifier
        action_handler: Host navigation handler
        catalog: Host navigation catalog
        custom_training_logic: Routine for TrainingMode.CUSTOM

    Returns:
        Started PredictionEngine
    """
    config = config or EngineConfig()
    engine = PredictionEngine(
        history_store if history_store is not None else InMemoryHistoryStore(),
        preferences_store if preferences_store is not None else InMemoryPreferencesStore(),
        config,
    )

    if notifier is not None or action_handler is not None or catalog is not None:
        engine.configure_client_integration(notifier, action_handler, catalog)

    if algorithms is None:
        algorithms = default_algorithms(config, rules_provider)
    for algorithm in algorithms:
        engine.add_algorithm(algorithm)

    engine.set_training_strategy(config.training_mode, custom_training_logic)
    await engine.start()
    return engine
