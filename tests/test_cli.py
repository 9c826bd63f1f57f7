"""Tests for the command-line interface."""

import os
from unittest.mock import Mock, patch

import pytest

from ticketsmith import config
from ticketsmith.api import create_app
from ticketsmith.cli import apply_mappings, build_client, main, run_interactive, run_once
from ticketsmith.jira import DryRunClient, JiraClient
from ticketsmith.mapping import TargetField
from ticketsmith.session import ImportSession


@pytest.fixture
def isolated_config(monkeypatch):
    """Undo the module settings and environment changes --properties makes."""
    monkeypatch.setattr(config, "settings", config.settings)
    monkeypatch.setattr(os, "environ", dict(os.environ))


class TestApplyMappings:
    """Test HEADER=FIELD overrides."""

    def test_binds_by_header_name(self, subtask_csv):
        session = ImportSession()
        session.load(subtask_csv)

        apply_mappings(session, ["desc=description", "COMP=component", "SP = estimate"])

        assert session.resolver.field_column_index(TargetField.DESCRIPTION) == 1
        assert session.resolver.field_column_index(TargetField.COMPONENT) == 2
        assert session.resolver.field_column_index(TargetField.ESTIMATE) == 5

    def test_unknown_header(self, subtask_csv):
        session = ImportSession()
        session.load(subtask_csv)

        with pytest.raises(ValueError, match="No column named 'Points'"):
            apply_mappings(session, ["Points=estimate"])

    def test_malformed(self, subtask_csv):
        session = ImportSession()
        session.load(subtask_csv)

        with pytest.raises(ValueError, match="HEADER=FIELD"):
            apply_mappings(session, ["estimate"])


class TestBuildClient:
    """Test client selection."""

    def test_dry_run_flag(self, mock_settings):
        assert isinstance(build_client(mock_settings, True), DryRunClient)

    def test_dry_run_setting(self, mock_settings):
        settings = mock_settings.model_copy(update={"dry_run": True})
        assert isinstance(build_client(settings, False), DryRunClient)

    def test_jira_client(self, mock_settings):
        client = build_client(mock_settings, False)
        assert isinstance(client, JiraClient)
        client.close()


class TestRunOnce:
    """Test the one-shot run command."""

    def test_dry_run_success(self, mock_settings, subtask_csv, capsys):
        code = run_once(
            mock_settings,
            str(subtask_csv),
            "subtask",
            None,
            ["Desc=description", "Comp=component", "SP=estimate"],
            True,
        )

        assert code == 0
        assert capsys.readouterr().out.strip() == "1 tickets created"

    def test_missing_mapping_exit_code(self, mock_settings, subtask_csv, capsys):
        code = run_once(mock_settings, str(subtask_csv), "story", ";", [], True)

        assert code == 1
        assert "'description'" in capsys.readouterr().out

    def test_bad_variant(self, mock_settings, subtask_csv, capsys):
        code = run_once(mock_settings, str(subtask_csv), "epic", None, [], True)

        assert code == 1
        assert "Unknown ticket variant" in capsys.readouterr().out

    def test_missing_file(self, mock_settings, tmp_path, capsys):
        code = run_once(mock_settings, str(tmp_path / "x.csv"), "story", None, [], True)

        assert code == 1
        assert "file not found" in capsys.readouterr().out


class TestMain:
    """Test argument parsing."""

    def test_run_command_with_properties(self, tmp_path, subtask_csv, capsys, isolated_config):
        props = tmp_path / "jira.properties"
        props.write_text("jira.project=PROJ\n", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(
                [
                    "--properties",
                    str(props),
                    "run",
                    str(subtask_csv),
                    "--variant",
                    "SubTask",
                    "-m",
                    "Desc=description",
                    "-m",
                    "Comp=component",
                    "-m",
                    "SP=estimate",
                    "--dry-run",
                ]
            )

        assert exc_info.value.code == 0
        assert "1 tickets created" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        assert "usage" in capsys.readouterr().out

    def test_serve_uses_uvicorn(self):
        with patch("uvicorn.run") as uvicorn_run:
            main(["serve", "--port", "9001"])

        uvicorn_run.assert_called_once()
        assert uvicorn_run.call_args.args[0] == "ticketsmith.api:create_app"
        assert uvicorn_run.call_args.kwargs["port"] == 9001
        assert uvicorn_run.call_args.kwargs["factory"] is True

    def test_serve_sees_properties(self, tmp_path, isolated_config):
        props = tmp_path / "jira.properties"
        props.write_text(
            "jira.project=FROMPROPS\njira.domain=https\\://props.atlassian.net\n", encoding="utf-8"
        )
        seen = {}

        def fake_run(*args, **kwargs):
            seen["project"] = config.settings.jira_project

        with patch("uvicorn.run", side_effect=fake_run):
            main(["--properties", str(props), "serve"])

        assert seen["project"] == "FROMPROPS"
        # A reloaded server process rebuilds settings from the environment
        assert os.environ["JIRA_PROJECT"] == "FROMPROPS"
        assert os.environ["JIRA_DOMAIN"] == "https://props.atlassian.net"


class TestInteractive:
    """Test the interactive session loop."""

    def test_map_and_run(self, mock_settings, subtask_csv, capsys):
        commands = iter(
            [
                "show",
                "set 1 description",
                "set 2 component",
                "check SubTask",
                "set 5 estimate",
                "check SubTask",
                "run SubTask",
                "quit",
            ]
        )

        with patch("builtins.input", side_effect=lambda prompt: next(commands)):
            run_interactive(mock_settings, str(subtask_csv), None, dry_run=True)

        out = capsys.readouterr().out
        assert "Missing: estimate" in out
        assert "All required fields are mapped." in out
        assert "1/1 DRY-1" in out
        assert "1 tickets created" in out
        assert "Goodbye!" in out

    def test_errors_do_not_end_session(self, mock_settings, capsys):
        commands = iter(["set 0 summary", "open /does/not/exist.csv", "delimiter #", "bogus"])

        def fake_input(prompt):
            try:
                return next(commands)
            except StopIteration:
                raise EOFError

        with patch("builtins.input", side_effect=fake_input):
            run_interactive(mock_settings)

        out = capsys.readouterr().out
        assert "Column index 0 out of range" in out
        assert "file not found" in out
        assert "Unsupported delimiter" in out
        assert "Unknown command: bogus" in out


class TestCreateApp:
    """Test the application factory."""

    def test_routes_are_mounted(self):
        app = create_app()
        paths = {route.path for route in app.routes}

        assert "/api/health" in paths
        assert "/api/sessions/{session_id}/run" in paths
