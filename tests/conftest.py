"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable
from unittest.mock import Mock

import pytest

from ticketsmith.config import Settings
from ticketsmith.jira import TicketClient, TicketResult


SUBTASK_HEADER = ["Summary", "Desc", "Comp", "Parent", "Label", "SP"]


@pytest.fixture
def mock_settings() -> Settings:
    """Create settings with test values."""
    return Settings(
        jira_domain="acme.atlassian.net",
        jira_email="dev@acme.test",
        jira_token="test-token-123",
        jira_project="PROJ",
        dry_run=False,
        default_delimiter=";",
        debug=False,
        log_level="WARNING",
    )


@pytest.fixture
def mock_ticket_client() -> Mock:
    """Create a mocked ticket client where every call succeeds."""
    client = Mock(spec=TicketClient)
    client.create_story = Mock(return_value=TicketResult.created("PROJ-1"))
    client.create_sub_task = Mock(return_value=TicketResult.created("PROJ-2"))
    return client


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write rows to a CSV file joined with the given delimiter."""

    def _write(rows: list[list[str]], delimiter: str = ";", name: str = "tickets.csv") -> Path:
        path = tmp_path / name
        path.write_text(
            "\n".join(delimiter.join(row) for row in rows) + "\n", encoding="utf-8"
        )
        return path

    return _write


@pytest.fixture
def subtask_csv(write_csv) -> Path:
    """Semicolon CSV with one sub-task row."""
    return write_csv(
        [
            SUBTASK_HEADER,
            ["Fix bug", "Null pointer", "Auth", "PROJ-1", "bug", "3,0"],
        ]
    )
