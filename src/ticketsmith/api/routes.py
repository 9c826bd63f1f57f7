"""API routes for TicketSmith."""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..config import ConfigurationError
from ..csvio import FileReadError
from ..jira import DryRunClient, TicketClient, client_from_settings
from ..mapping import TicketVariant
from ..session import ImportSession, RunOutcome

logger = logging.getLogger(__name__)

router = APIRouter()

# Live import sessions by id
_sessions: dict[str, ImportSession] = {}


def get_session(session_id: str) -> ImportSession:
    """Look up a session or answer 404."""
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return session


def clear_sessions() -> None:
    """Drop every session."""
    _sessions.clear()


def _parse_variant(value: str) -> TicketVariant:
    try:
        return TicketVariant.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


def _snapshot(session_id: str, session: ImportSession) -> dict:
    return {"session_id": session_id, **session.describe()}


class SessionCreateRequest(BaseModel):
    """Request to open a CSV file in a new session."""

    path: str
    delimiter: Optional[str] = None


class DelimiterRequest(BaseModel):
    """Request to change the delimiter of a session."""

    delimiter: str


class SelectionRequest(BaseModel):
    """Request to bind a column to a ticket field."""

    field: str


class VariantRequest(BaseModel):
    """Request naming a ticket variant."""

    variant: str


class RunRequest(BaseModel):
    """Request to create tickets from a session."""

    variant: str
    dry_run: Optional[bool] = None  # None means use the DRY_RUN setting


@router.get("/health")
def health_check():
    """Health check endpoint with non-secret configuration."""
    from ..config import settings

    return {
        "status": "ok",
        "service": "ticketsmith",
        "config": {
            "jira_domain": settings.jira_domain,
            "jira_project": settings.jira_project,
            "jira_credentials_present": bool(settings.jira_email and settings.jira_token),
            "dry_run": settings.dry_run,
        },
    }


@router.post("/sessions", status_code=201)
def create_session(request: SessionCreateRequest):
    """Open a CSV file and build its column bindings."""
    from ..config import settings

    try:
        session = ImportSession(request.delimiter or settings.default_delimiter)
        session.load(request.path)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except FileReadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session_id = uuid.uuid4().hex
    _sessions[session_id] = session
    logger.info(f"Opened session {session_id} for {request.path}")
    return _snapshot(session_id, session)


@router.get("/sessions/{session_id}")
def read_session(session_id: str):
    """Current bindings and choices of a session."""
    return _snapshot(session_id, get_session(session_id))


@router.put("/sessions/{session_id}/delimiter")
def change_delimiter(session_id: str, request: DelimiterRequest):
    """Re-parse the session's file with another delimiter."""
    session = get_session(session_id)
    with session.lock:
        try:
            session.set_delimiter(request.delimiter)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except FileReadError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _snapshot(session_id, session)


@router.put("/sessions/{session_id}/bindings/{column_index}")
def select_field(session_id: str, column_index: int, request: SelectionRequest):
    """Bind one column to a field; other columns' choices follow."""
    session = get_session(session_id)
    with session.lock:
        try:
            session.set_selection(column_index, request.field)
        except IndexError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return _snapshot(session_id, session)


@router.post("/sessions/{session_id}/validate")
def validate_session(session_id: str, request: VariantRequest):
    """Report which fields the variant still needs."""
    session = get_session(session_id)
    variant = _parse_variant(request.variant)
    with session.lock:
        missing = session.missing_fields(variant)
    return {
        "variant": variant.value,
        "valid": not missing,
        "missing": [f.value for f in missing],
    }


@router.post("/sessions/{session_id}/run", response_model=RunOutcome)
def run_session(session_id: str, request: RunRequest):
    """Create one ticket per row of the session's file."""
    from ..config import settings

    session = get_session(session_id)
    variant = _parse_variant(request.variant)
    dry_run = settings.dry_run if request.dry_run is None else request.dry_run

    client: TicketClient
    if dry_run:
        client = DryRunClient()
    else:
        try:
            client = client_from_settings(settings)
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    with session.lock:
        try:
            return session.run(variant, client)
        finally:
            client.close()


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    """Forget a session."""
    get_session(session_id)
    del _sessions[session_id]
    return {"status": "ok"}
