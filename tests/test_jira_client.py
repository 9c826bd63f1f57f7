"""Tests for the Jira REST client."""

import base64
import json

import httpx
import pytest

from ticketsmith.config import ConfigurationError, Settings
from ticketsmith.jira import DryRunClient, JiraClient, client_from_settings, normalize_base_url


class RecordingTransport(httpx.MockTransport):
    """Mock transport that keeps every request and answers with one response."""

    def __init__(self, status_code: int = 201, payload=None, error: Exception = None):
        self.requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if error is not None:
                raise error
            return httpx.Response(status_code, json=payload if payload is not None else {})

        super().__init__(handler)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def make_client(transport: httpx.MockTransport) -> JiraClient:
    return JiraClient(
        domain="acme.atlassian.net",
        email="dev@acme.test",
        token="secret",
        project_key="PROJ",
        transport=transport,
    )


class TestNormalizeBaseUrl:
    """Test Jira domain handling."""

    def test_adds_scheme(self):
        assert normalize_base_url("acme.atlassian.net") == "https://acme.atlassian.net"

    def test_keeps_scheme_and_strips_slash(self):
        assert normalize_base_url("http://jira.local:8080/") == "http://jira.local:8080"


class TestJiraClient:
    """Test issue creation payloads and error handling."""

    def test_create_story_payload(self):
        transport = RecordingTransport(payload={"id": "10001", "key": "PROJ-7"})
        client = make_client(transport)

        result = client.create_story("Login page", "Build it", "Auth")

        assert result.success is True
        assert result.key == "PROJ-7"
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://acme.atlassian.net/rest/api/2/issue"
        assert transport.body() == {
            "fields": {
                "project": {"key": "PROJ"},
                "issuetype": {"name": "Story"},
                "summary": "Login page",
                "description": "Build it",
                "components": [{"name": "Auth"}],
            }
        }

    def test_basic_auth_header(self):
        transport = RecordingTransport(payload={"key": "PROJ-1"})
        make_client(transport).create_story("a", "b", "c")

        expected = base64.b64encode(b"dev@acme.test:secret").decode()
        assert transport.requests[0].headers["Authorization"] == f"Basic {expected}"

    def test_create_sub_task_payload(self):
        transport = RecordingTransport(payload={"key": "PROJ-8"})
        client = make_client(transport)

        result = client.create_sub_task("PROJ-1", "Fix bug", "Null pointer", "Auth", "tech debt", 3)

        assert result.key == "PROJ-8"
        fields = transport.body()["fields"]
        assert fields["issuetype"] == {"name": "Sub-task"}
        assert fields["parent"] == {"key": "PROJ-1"}
        assert fields["labels"] == ["tech-debt"]
        assert fields["customfield_10016"] == 3

    def test_empty_component_and_label_are_omitted(self):
        transport = RecordingTransport(payload={"key": "PROJ-9"})
        client = make_client(transport)

        client.create_sub_task("PROJ-1", "s", "d", " ", "", 0)

        fields = transport.body()["fields"]
        assert "components" not in fields
        assert "labels" not in fields

    def test_custom_issue_types_and_points_field(self):
        transport = RecordingTransport(payload={"key": "PROJ-2"})
        client = JiraClient(
            domain="acme.atlassian.net",
            email="e",
            token="t",
            project_key="PROJ",
            story_points_field="customfield_10028",
            subtask_issue_type="Subtarefa",
            transport=transport,
        )

        client.create_sub_task("PROJ-1", "s", "d", "c", "l", 5)

        fields = transport.body()["fields"]
        assert fields["issuetype"] == {"name": "Subtarefa"}
        assert fields["customfield_10028"] == 5

    def test_rejection_becomes_failed_result(self):
        transport = RecordingTransport(
            status_code=400,
            payload={
                "errorMessages": ["Issue type is invalid"],
                "errors": {"components": "Component name 'Nope' is not valid"},
            },
        )
        client = make_client(transport)

        result = client.create_story("a", "b", "Nope")

        assert result.success is False
        assert result.key is None
        assert result.error == (
            "HTTP 400: Issue type is invalid; components: Component name 'Nope' is not valid"
        )

    def test_unauthorized_without_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text=""))
        client = make_client(transport)

        result = client.create_story("a", "b", "c")

        assert result.success is False
        assert result.error == "HTTP 401"

    def test_created_without_json_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(201, text="created"))
        client = make_client(transport)

        result = client.create_story("a", "b", "c")

        assert result.success is True
        assert result.key is None

    def test_transport_error_becomes_failed_result(self):
        transport = RecordingTransport(error=httpx.ConnectError("connection refused"))
        client = make_client(transport)

        result = client.create_story("a", "b", "c")

        assert result.success is False
        assert "Could not reach Jira" in result.error

    def test_context_manager_closes(self):
        with make_client(RecordingTransport()) as client:
            assert client._client.is_closed is False
        assert client._client.is_closed is True


class TestClientFromSettings:
    """Test building a client from configuration."""

    def test_builds_client(self, mock_settings):
        client = client_from_settings(mock_settings)

        assert client.base_url == "https://acme.atlassian.net"
        assert client.project_key == "PROJ"
        client.close()

    def test_missing_settings(self):
        settings = Settings(jira_domain="acme.atlassian.net", jira_email=None, jira_token=None, jira_project=None)

        with pytest.raises(ConfigurationError) as exc_info:
            client_from_settings(settings)

        assert exc_info.value.missing == ["JIRA_EMAIL", "JIRA_TOKEN", "JIRA_PROJECT"]


class TestDryRunClient:
    """Test the recording client."""

    def test_records_calls_and_numbers_keys(self):
        client = DryRunClient()

        first = client.create_story("a", "b", "c")
        second = client.create_sub_task("PROJ-1", "s", "d", "c", "l", 2)

        assert first.key == "DRY-1"
        assert second.key == "DRY-2"
        assert client.calls[1] == {
            "kind": "sub_task",
            "parent": "PROJ-1",
            "summary": "s",
            "description": "d",
            "component": "c",
            "label": "l",
            "estimate": 2,
        }

    def test_fail_on(self):
        client = DryRunClient(fail_on={1})

        result = client.create_story("a", "b", "c")

        assert result.success is False
        assert result.error == "Dry run failure on call 1"
