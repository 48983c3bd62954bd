"""
Data models for the navigation prediction engine.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def _as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC so timestamps always compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str):
        return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    return datetime.now(timezone.utc)


class TrainingMode(Enum):
    """When the engine retrains its algorithms automatically."""

    ON_STARTUP_ONCE = "on_startup_once"
    CONTINUOUS_DEVELOPMENT = "continuous_development"
    BATCH_SCHEDULED = "batch_scheduled"
    MANUAL = "manual"
    CUSTOM = "custom"


@dataclass(frozen=True)
class NavigationEvent:
    """One observed user transition between pages or features."""

    user_id: str
    current_page_or_feature: str
    previous_page_or_feature: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: Optional[str] = None
    context_data: Optional[dict[str, str]] = None
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        object.__setattr__(self, "timestamp", _as_utc(self.timestamp))
        if self.context_data is not None:
            object.__setattr__(self, "context_data", dict(self.context_data))

    def __hash__(self) -> int:
        # context_data is a dict; equal events always share an event_id
        return hash(self.event_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_id": self.event_id,
            "user_id": self.user_id,
            "current_page_or_feature": self.current_page_or_feature,
            "previous_page_or_feature": self.previous_page_or_feature,
            "timestamp": self.timestamp.isoformat(),
            "session_id": self.session_id,
            "context_data": self.context_data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NavigationEvent":
        """Create from dictionary."""
        kwargs = {}
        if data.get("event_id"):
            kwargs["event_id"] = data["event_id"]

        return cls(
            user_id=data.get("user_id", ""),
            current_page_or_feature=data.get("current_page_or_feature", ""),
            previous_page_or_feature=data.get("previous_page_or_feature"),
            timestamp=_parse_timestamp(data.get("timestamp")),
            session_id=data.get("session_id"),
            context_data=data.get("context_data"),
            **kwargs,
        )


@dataclass
class SuggestedItem:
    """A scored candidate destination."""

    name: str
    score: float
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "score": self.score, "reason": self.reason}


@dataclass
class UserCustomMenuItem:
    """A user-defined shortcut. Lower order means higher priority."""

    user_id: str
    item_name: str
    order: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"user_id": self.user_id, "item_name": self.item_name, "order": self.order}


@dataclass
class TrainingProgress:
    """Granular training progress, emitted by algorithms and the engine."""

    algorithm_name: str
    current_step: str
    percentage: int
    is_completed: bool = False
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "algorithm_name": self.algorithm_name,
            "current_step": self.current_step,
            "percentage": self.percentage,
            "is_completed": self.is_completed,
            "message": self.message,
        }
