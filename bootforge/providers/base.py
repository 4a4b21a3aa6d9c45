"""Base CI provider interface and dispatch result type."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class DispatchResult:
    """Outcome of handing a job to a provider."""
    success: bool
    message: str
    # Only set when the provider returns one synchronously (GitHub doesn't)
    run_id: Optional[str] = None


class CIProvider(ABC):
    """Abstract base class for external execution backends.

    To add a backend:
    1. Subclass CIProvider in bootforge/providers/
    2. Implement is_available() and trigger_workflow()
    3. Add its settings block and wire it in registry.build_registry()

    Neither method raises for ordinary conditions: a busy backend is
    ``False`` and a rejected dispatch is ``DispatchResult(success=False)``.
    Transport errors and bad configuration do propagate.
    """

    id: str = "provider"

    @abstractmethod
    async def is_available(self) -> bool:
        """Cheap capacity probe."""
        ...

    @abstractmethod
    async def trigger_workflow(self, inputs: Dict[str, Any]) -> DispatchResult:
        """Start the external workflow for one job."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
