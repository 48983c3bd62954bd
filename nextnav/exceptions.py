"""
Custom exception hierarchy for nextnav.

Missing prerequisites (untrained models, absent collaborators) are never
raised; only invalid input, bad configuration and model persistence
failures surface as exceptions.
"""


class NextNavError(Exception):
    """Base exception for all nextnav errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidInputError(NextNavError):
    """Raised at the store boundary when a record fails validation."""

    def __init__(self, message: str, field: str | None = None):
        details = {}
        if field:
            details["field"] = field
        super().__init__(message, details=details)
        self.field = field


class ConfigurationError(NextNavError):
    """Raised when engine or training-strategy settings are invalid."""

    def __init__(self, setting: str, value: object, reason: str):
        super().__init__(
            f"Invalid value for {setting}: {value!r} ({reason})",
            details={"setting": setting, "value": repr(value)},
        )
        self.setting = setting


class ModelPersistenceError(NextNavError):
    """Raised when the classifier model cannot be written to disk."""

    def __init__(self, operation: str, path: str, cause: str):
        super().__init__(
            f"Model {operation} failed for {path}: {cause}",
            details={"operation": operation, "path": path, "cause": cause},
        )
        self.path = path
