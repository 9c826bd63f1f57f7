"""Base ticket client interface."""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class TicketResult(BaseModel):
    """Outcome of one ticket creation call."""

    success: bool
    key: Optional[str] = None  # Issue key of the created ticket, e.g. "PROJ-42"
    error: Optional[str] = None

    @classmethod
    def created(cls, key: Optional[str]) -> "TicketResult":
        return cls(success=True, key=key)

    @classmethod
    def failed(cls, error: str) -> "TicketResult":
        return cls(success=False, error=error)


class TicketClient(ABC):
    """Abstract base class for ticket creation clients."""

    @abstractmethod
    def create_story(self, summary: str, description: str, component: str) -> TicketResult:
        """Create a story."""
        pass

    @abstractmethod
    def create_sub_task(
        self,
        parent: str,
        summary: str,
        description: str,
        component: str,
        label: str,
        estimate: int,
    ) -> TicketResult:
        """Create a sub-task under ``parent``."""
        pass

    def close(self) -> None:
        """Release any held resources."""
