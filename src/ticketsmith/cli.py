"""Command-line interface for TicketSmith."""

import argparse
import logging
import shlex
import sys
from pathlib import Path
from typing import Optional

from .config import ConfigurationError, Settings, export_jira_environment, load_properties
from .csvio import FileReadError
from .jira import DryRunClient, TicketClient, client_from_settings
from .mapping import TicketVariant
from .session import ImportSession

logger = logging.getLogger(__name__)

INTERACTIVE_HELP = """Commands:
  open PATH          load a CSV file
  delimiter D        change delimiter (; , | TAB) and reload the file
  show               list columns, their fields and available choices
  set INDEX FIELD    bind column INDEX to FIELD (summary, description, ...)
  check VARIANT      list fields still missing for Story or SubTask
  run VARIANT        create tickets for every data row
  help               show this help
  quit / exit        leave"""


def main(argv: Optional[list[str]] = None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="TicketSmith - Bulk Jira ticket creation from CSV exports"
    )
    parser.add_argument(
        "--properties", "-p", help="Read Jira connection settings from a jira.properties file"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=None, help="Host to bind to (default: HOST or 127.0.0.1)"
    )
    server_parser.add_argument(
        "--port", type=int, default=None, help="Port to bind to (default: PORT or 8000)"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Interactive command
    interactive_parser = subparsers.add_parser(
        "interactive", help="Map columns and create tickets in an interactive session"
    )
    interactive_parser.add_argument("csv", nargs="?", help="CSV file to open")
    interactive_parser.add_argument("--delimiter", "-d", help="CSV delimiter (; , | TAB)")
    interactive_parser.add_argument(
        "--dry-run", action="store_true", help="Record tickets instead of creating them"
    )

    # One-shot run command
    run_parser = subparsers.add_parser("run", help="Create tickets from a CSV file")
    run_parser.add_argument("csv", help="CSV file to read")
    run_parser.add_argument(
        "--variant", "-v", required=True, help="Ticket variant: Story or SubTask"
    )
    run_parser.add_argument("--delimiter", "-d", help="CSV delimiter (; , | TAB)")
    run_parser.add_argument(
        "--map",
        "-m",
        action="append",
        default=[],
        metavar="HEADER=FIELD",
        help="Bind a column to a field (repeatable); overrides header-name matches",
    )
    run_parser.add_argument(
        "--dry-run", action="store_true", help="Record tickets instead of creating them"
    )

    args = parser.parse_args(argv)

    from . import config

    settings = config.settings
    if args.properties:
        try:
            settings = settings.with_properties(load_properties(Path(args.properties)))
        except OSError as e:
            print(f"Could not read properties file: {e}")
            sys.exit(1)
        # The API handlers and a reloaded server process read these, not the local copy
        config.settings = settings
        export_jira_environment(settings)

    configure_logging(settings)

    if args.command == "serve":
        run_server(args.host or settings.host, args.port or settings.port, args.reload)
    elif args.command == "interactive":
        run_interactive(settings, args.csv, args.delimiter, args.dry_run)
    elif args.command == "run":
        sys.exit(run_once(settings, args.csv, args.variant, args.delimiter, args.map, args.dry_run))
    else:
        parser.print_help()
        sys.exit(1)


def configure_logging(settings: Settings):
    """Configure root logging from settings."""
    level = logging.INFO if settings.debug else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    import uvicorn

    uvicorn.run(
        "ticketsmith.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


def build_client(settings: Settings, dry_run: bool) -> TicketClient:
    """Jira client for the configured site, or a recording client for dry runs."""
    if dry_run or settings.dry_run:
        return DryRunClient()
    return client_from_settings(settings)


def apply_mappings(session: ImportSession, mappings: list[str]):
    """Apply HEADER=FIELD overrides; headers match case-insensitively."""
    header = [h.lower() for h in session.resolver.header]
    for item in mappings:
        name, sep, field = item.partition("=")
        if not sep:
            raise ValueError(f"Mapping '{item}' must look like HEADER=FIELD")
        try:
            index = header.index(name.strip().lower())
        except ValueError:
            raise ValueError(f"No column named '{name.strip()}' in the CSV header")
        session.set_selection(index, field.strip())


def run_once(
    settings: Settings,
    csv_path: str,
    variant: str,
    delimiter: Optional[str],
    mappings: list[str],
    dry_run: bool,
) -> int:
    """Load, map and submit in one go. Returns the process exit code."""
    try:
        session = ImportSession(delimiter or settings.default_delimiter)
        session.load(csv_path)
        apply_mappings(session, mappings)
        variant = TicketVariant.parse(variant)
        client = build_client(settings, dry_run)
    except (ValueError, FileReadError, ConfigurationError) as e:
        print(f"Error: {e}")
        return 1

    try:
        outcome = session.run(variant, client)
    finally:
        client.close()

    print(outcome.message)
    return 0 if outcome.success else 1


def print_bindings(session: ImportSession):
    """Print the session's columns as a table."""
    info = session.describe()
    if not info["path"]:
        print("No CSV loaded. Use: open PATH")
        return
    print(f"{info['path']}  (delimiter {info['delimiter']}, {info['row_count']} rows)")
    width = max([len(b["header"]) for b in info["bindings"]] + [6])
    for b in info["bindings"]:
        print(
            f"  [{b['column_index']}] {b['header']:<{width}} -> {b['field']:<12}"
            f" choices: {', '.join(b['choices'])}"
        )


def run_interactive(
    settings: Settings,
    csv_path: Optional[str] = None,
    delimiter: Optional[str] = None,
    dry_run: bool = False,
):
    """Run an interactive mapping session."""
    print("TicketSmith Interactive Mode")
    print("=" * 40)
    print("Type 'help' for commands, 'quit' or 'exit' to exit.")
    print()

    try:
        session = ImportSession(delimiter or settings.default_delimiter)
    except ValueError as e:
        print(f"Error: {e}")
        return

    if csv_path:
        try:
            session.load(csv_path)
        except FileReadError as e:
            print(f"Error: {e}")
        print_bindings(session)

    while True:
        try:
            line = input("ticketsmith> ").strip()
        except EOFError:
            break

        if not line:
            continue

        try:
            parts = shlex.split(line)
        except ValueError as e:
            print(f"Error: {e}")
            continue

        command, params = parts[0].lower(), parts[1:]

        if command in ("quit", "exit"):
            print("Goodbye!")
            break

        try:
            if command == "help":
                print(INTERACTIVE_HELP)
            elif command == "open" and len(params) == 1:
                session.load(params[0])
                print_bindings(session)
            elif command == "delimiter" and len(params) == 1:
                session.set_delimiter(params[0])
                print_bindings(session)
            elif command == "show":
                print_bindings(session)
            elif command == "set" and len(params) == 2:
                session.set_selection(int(params[0]), params[1])
                print_bindings(session)
            elif command == "check" and len(params) == 1:
                missing = session.missing_fields(params[0])
                if missing:
                    print("Missing: " + ", ".join(f.value for f in missing))
                else:
                    print("All required fields are mapped.")
            elif command == "run" and len(params) == 1:
                variant = TicketVariant.parse(params[0])
                client = build_client(settings, dry_run)
                try:
                    outcome = session.run(
                        variant,
                        client,
                        on_progress=lambda n, total, result: print(f"  {n}/{total} {result.key}"),
                    )
                finally:
                    client.close()
                print(outcome.message)
            else:
                print(f"Unknown command: {line}. Type 'help' for commands.")
        except (ValueError, IndexError, FileReadError, ConfigurationError) as e:
            print(f"Error: {e}")


if __name__ == "__main__":
    main()
