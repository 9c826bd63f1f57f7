"""Jira REST API client."""

import logging
from typing import Any, Optional

import httpx

from ..config import ConfigurationError, Settings
from .base import TicketClient, TicketResult

logger = logging.getLogger(__name__)


def normalize_base_url(domain: str) -> str:
    """Turn 'acme.atlassian.net' or 'https://acme.atlassian.net/' into a base URL."""
    domain = domain.strip().rstrip("/")
    if not domain.startswith(("http://", "https://")):
        domain = f"https://{domain}"
    return domain


def _error_message(response: httpx.Response) -> str:
    """Flatten Jira's errorMessages / errors payload into one line."""
    try:
        data = response.json()
    except ValueError:
        text = response.text.strip()
        return f"HTTP {response.status_code}: {text[:300]}" if text else f"HTTP {response.status_code}"

    parts: list[str] = []
    if isinstance(data, dict):
        parts.extend(str(m) for m in data.get("errorMessages") or [])
        for field, message in (data.get("errors") or {}).items():
            parts.append(f"{field}: {message}")
    if not parts:
        return f"HTTP {response.status_code}"
    return f"HTTP {response.status_code}: " + "; ".join(parts)


def _created_key(response: httpx.Response) -> Optional[str]:
    """Issue key from a create response; the issue exists even if the body is unreadable."""
    try:
        data = response.json()
    except ValueError:
        logger.warning(f"Jira returned HTTP {response.status_code} without a JSON body")
        return None
    return data.get("key") if isinstance(data, dict) else None


class JiraClient(TicketClient):
    """Creates stories and sub-tasks through the Jira REST API v2."""

    def __init__(
        self,
        domain: str,
        email: str,
        token: str,
        project_key: str,
        story_points_field: str = "customfield_10016",
        story_issue_type: str = "Story",
        subtask_issue_type: str = "Sub-task",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = normalize_base_url(domain)
        self.project_key = project_key
        self.story_points_field = story_points_field
        self.story_issue_type = story_issue_type
        self.subtask_issue_type = subtask_issue_type
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=(email, token),
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> "JiraClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def create_story(self, summary: str, description: str, component: str) -> TicketResult:
        fields = self._base_fields(self.story_issue_type, summary, description, component)
        return self._create_issue(fields)

    def create_sub_task(
        self,
        parent: str,
        summary: str,
        description: str,
        component: str,
        label: str,
        estimate: int,
    ) -> TicketResult:
        fields = self._base_fields(self.subtask_issue_type, summary, description, component)
        fields["parent"] = {"key": parent.strip()}
        label = label.strip()
        if label:
            # Jira labels cannot contain spaces
            fields["labels"] = [label.replace(" ", "-")]
        fields[self.story_points_field] = estimate
        return self._create_issue(fields)

    def _base_fields(
        self, issue_type: str, summary: str, description: str, component: str
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "project": {"key": self.project_key},
            "issuetype": {"name": issue_type},
            "summary": summary,
            "description": description,
        }
        component = component.strip()
        if component:
            fields["components"] = [{"name": component}]
        return fields

    def _create_issue(self, fields: dict[str, Any]) -> TicketResult:
        issue_type = fields["issuetype"]["name"]
        try:
            response = self._client.post("/rest/api/2/issue", json={"fields": fields})
        except httpx.HTTPError as e:
            logger.warning(f"Jira request failed: {e}")
            return TicketResult.failed(f"Could not reach Jira at {self.base_url}: {e}")

        if response.status_code not in (200, 201):
            message = _error_message(response)
            logger.warning(f"Jira rejected {issue_type} '{fields['summary']}': {message}")
            return TicketResult.failed(message)

        key = _created_key(response)
        logger.info(f"Created {issue_type} {key}: {fields['summary']}")
        return TicketResult.created(key)


def client_from_settings(settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> JiraClient:
    """Build a JiraClient from settings, raising ConfigurationError if incomplete."""
    missing = settings.missing_jira_settings()
    if missing:
        raise ConfigurationError(missing)
    return JiraClient(
        domain=settings.jira_domain,
        email=settings.jira_email,
        token=settings.jira_token,
        project_key=settings.jira_project,
        story_points_field=settings.jira_story_points_field,
        story_issue_type=settings.jira_story_issue_type,
        subtask_issue_type=settings.jira_subtask_issue_type,
        timeout=settings.jira_timeout_seconds,
        transport=transport,
    )
