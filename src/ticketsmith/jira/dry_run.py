"""Client that records ticket creation calls instead of sending them."""

import logging
from typing import Any, Optional

from .base import TicketClient, TicketResult

logger = logging.getLogger(__name__)


class DryRunClient(TicketClient):
    """Records every call and answers with synthetic issue keys."""

    def __init__(self, prefix: str = "DRY", fail_on: Optional[set[int]] = None):
        self.prefix = prefix
        self.fail_on = fail_on or set()  # 1-based call numbers that fail
        self.calls: list[dict[str, Any]] = []

    def create_story(self, summary: str, description: str, component: str) -> TicketResult:
        return self._record(
            "story", summary=summary, description=description, component=component
        )

    def create_sub_task(
        self,
        parent: str,
        summary: str,
        description: str,
        component: str,
        label: str,
        estimate: int,
    ) -> TicketResult:
        return self._record(
            "sub_task",
            parent=parent,
            summary=summary,
            description=description,
            component=component,
            label=label,
            estimate=estimate,
        )

    def _record(self, kind: str, **fields: Any) -> TicketResult:
        self.calls.append({"kind": kind, **fields})
        number = len(self.calls)
        if number in self.fail_on:
            return TicketResult.failed(f"Dry run failure on call {number}")
        key = f"{self.prefix}-{number}"
        logger.info(f"[dry run] {kind} {key}: {fields.get('summary', '')}")
        return TicketResult.created(key)
