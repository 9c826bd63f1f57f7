"""Jira ticket creation clients."""

from .base import TicketClient, TicketResult
from .client import JiraClient, client_from_settings, normalize_base_url
from .dry_run import DryRunClient

__all__ = [
    "TicketClient",
    "TicketResult",
    "JiraClient",
    "DryRunClient",
    "client_from_settings",
    "normalize_base_url",
]
