"""Configuration management for TicketSmith."""

import logging
import os
from pathlib import Path
from typing import Optional

import javaproperties
from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

logger = logging.getLogger(__name__)

# jira.properties key -> Settings attribute
PROPERTIES_KEYS = {
    "jira.domain": "jira_domain",
    "jira.email": "jira_email",
    "jira.token": "jira_token",
    "jira.project": "jira_project",
    "jira.storyPointsField": "jira_story_points_field",
}


class ConfigurationError(Exception):
    """Exception raised when required connection settings are missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing Jira configuration: {', '.join(missing)}")


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


def load_properties(path: Path) -> dict[str, str]:
    """
    Read a ``jira.properties`` file in Java properties format.

    Handles comments, ``=``, ``:`` and whitespace separators, backslash
    escapes and line continuations.
    """
    with open(path, "r", encoding="utf-8") as f:
        props = javaproperties.load(f)
    logger.info(f"Loaded {len(props)} properties from {path}")
    return props


def export_jira_environment(settings: "Settings"):
    """Copy the ``jira.*`` settings into ``JIRA_*`` environment variables."""
    for attr in PROPERTIES_KEYS.values():
        value = getattr(settings, attr)
        if value:
            os.environ[attr.upper()] = value


class Settings(BaseModel):
    """Application settings."""

    # Jira connection
    jira_domain: Optional[str] = os.getenv("JIRA_DOMAIN")
    jira_email: Optional[str] = os.getenv("JIRA_EMAIL")
    jira_token: Optional[str] = os.getenv("JIRA_TOKEN")
    jira_project: Optional[str] = os.getenv("JIRA_PROJECT")
    jira_timeout_seconds: float = float(os.getenv("JIRA_TIMEOUT_SECONDS", "30"))

    # Issue type names and the story points custom field differ between Jira sites
    jira_story_issue_type: str = os.getenv("JIRA_STORY_ISSUE_TYPE", "Story")
    jira_subtask_issue_type: str = os.getenv("JIRA_SUBTASK_ISSUE_TYPE", "Sub-task")
    jira_story_points_field: str = os.getenv("JIRA_STORY_POINTS_FIELD", "customfield_10016")

    # CSV defaults
    default_delimiter: str = os.getenv("DEFAULT_DELIMITER", ";")

    # Create nothing, only record what would be sent
    dry_run: bool = os.getenv("DRY_RUN", "false").lower() == "true"

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()

    @property
    def jira_credentials_present(self) -> bool:
        return bool(self.jira_email and self.jira_token)

    def missing_jira_settings(self) -> list[str]:
        """Return the names of connection settings that are not set."""
        required = {
            "JIRA_DOMAIN": self.jira_domain,
            "JIRA_EMAIL": self.jira_email,
            "JIRA_TOKEN": self.jira_token,
            "JIRA_PROJECT": self.jira_project,
        }
        return [name for name, value in required.items() if not value]

    def with_properties(self, props: dict[str, str]) -> "Settings":
        """Return a copy with ``jira.*`` properties applied over these settings."""
        updates = {
            attr: props[key] for key, attr in PROPERTIES_KEYS.items() if props.get(key)
        }
        return self.model_copy(update=updates)


settings = Settings()
