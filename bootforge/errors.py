"""
Error types for the job pipeline.

All errors inherit from BootforgeError for easy catching.
Recoverable conditions (nothing to claim, no provider, failed dispatch)
are absorbed by the orchestrator; PersistenceError is the one that escapes.
"""

from typing import List


class BootforgeError(Exception):
    """Base exception for all pipeline failures."""
    pass


class NotFoundError(BootforgeError):
    """Raised when a job or post record does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class ValidationError(BootforgeError):
    """Raised when an inbound payload does not match its schema."""

    def __init__(self, issues: List[str]):
        self.issues = issues
        super().__init__("Invalid input schema:\n" + "\n".join(issues))


class ProviderUnavailable(BootforgeError):
    """No CI provider has capacity right now."""
    pass


class DispatchError(BootforgeError):
    """Raised when a provider rejects or cannot receive a dispatch."""

    def __init__(self, provider_id: str, reason: str):
        self.provider_id = provider_id
        self.reason = reason
        super().__init__(f"Dispatch via {provider_id} failed: {reason}")


class PersistenceError(BootforgeError):
    """Raised when the backing store is unreachable or rejects a write."""
    pass


class DuplicateRecordError(PersistenceError):
    """Raised when an insert violates a unique constraint."""
    pass


class ConfigurationError(BootforgeError):
    """Raised when a component is built from incomplete settings."""
    pass
