"""Index persistence errors."""


class StateError(Exception):
    """Base exception for index repository operations."""


class MissingStateError(StateError):
    """Raised when no persisted index is available."""
