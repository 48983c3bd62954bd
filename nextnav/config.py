"""
Configuration for the navigation prediction engine.
"""

from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigurationError
from .models import TrainingMode


@dataclass
class EngineConfig:
    """Configuration for the PredictionEngine and its default algorithms."""

    # Training strategy
    training_mode: TrainingMode = TrainingMode.CONTINUOUS_DEVELOPMENT
    batch_interval_seconds: float = 300.0  # 5 minutes
    batch_threshold: int = 50  # events since last training

    # Suggestions
    default_suggestion_count: int = 5
    custom_item_base_score: float = 1000.0

    # Algorithm weights
    frequency_weight: float = 1.0
    markov_weight: float = 1.5
    design_flow_weight: float = 0.7
    classifier_weight: float = 2.0

    # Classifier persistence
    model_path: Path = field(default_factory=lambda: Path("navigation_model.pkl"))

    def __post_init__(self):
        """Normalise paths and enum values, reject nonsensical settings."""
        if isinstance(self.model_path, str):
            self.model_path = Path(self.model_path)
        if isinstance(self.training_mode, str):
            try:
                self.training_mode = TrainingMode(self.training_mode)
            except ValueError:
                raise ConfigurationError(
                    "training_mode", self.training_mode, "unknown training mode"
                ) from None

        if self.batch_interval_seconds <= 0:
            raise ConfigurationError(
                "batch_interval_seconds", self.batch_interval_seconds, "must be positive"
            )
        if self.batch_threshold < 1:
            raise ConfigurationError(
                "batch_threshold", self.batch_threshold, "must be at least 1"
            )
        if self.default_suggestion_count < 0:
            raise ConfigurationError(
                "default_suggestion_count", self.default_suggestion_count, "must not be negative"
            )
