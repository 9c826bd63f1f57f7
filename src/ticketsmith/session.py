"""Import session: one CSV file, its column bindings, and submission runs."""

import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel

from .csvio import CsvDocument, Delimiter, FileReadError, parse_delimiter, read_csv
from .jira import TicketClient
from .mapping import MappingResolver, MissingMappingError, TargetField, TicketVariant
from .pipeline import ClientSubmissionError, ProgressCallback, SubmissionPipeline

logger = logging.getLogger(__name__)


class NoFileSelectedError(Exception):
    """Exception raised when a run is requested before any CSV was loaded."""

    def __init__(self):
        super().__init__("Select a CSV file first")


class RunOutcome(BaseModel):
    """Single user-facing outcome of a submission run."""

    success: bool
    created: int = 0
    message: str
    error_kind: Optional[str] = None
    failed_row: Optional[int] = None  # 1-based data row number


class ImportSession:
    """
    State of one file-load/run cycle.

    Loading a file, or changing the delimiter while a file is chosen, rebuilds
    every column binding from the header. Runs re-read the rows from disk.
    """

    def __init__(self, delimiter: Union[Delimiter, str] = Delimiter.SEMICOLON):
        self.delimiter = parse_delimiter(delimiter)
        self.path: Optional[Path] = None
        self.document: Optional[CsvDocument] = None
        self.resolver = MappingResolver()
        self.lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self.document is not None

    def load(self, path: Union[str, Path], delimiter: Union[Delimiter, str, None] = None) -> CsvDocument:
        """
        Choose and parse a CSV file.

        Raises:
            FileReadError: if the file cannot be read; the session is left
                without a document or bindings
        """
        if delimiter is not None:
            self.delimiter = parse_delimiter(delimiter)
        self.path = Path(path)
        return self._reload()

    def set_delimiter(self, delimiter: Union[Delimiter, str]) -> Optional[CsvDocument]:
        """Change the delimiter; re-parses the chosen file from disk, if any."""
        self.delimiter = parse_delimiter(delimiter)
        if self.path is None:
            return None
        return self._reload()

    def _reload(self) -> CsvDocument:
        try:
            document = read_csv(self.path, self.delimiter)
        except FileReadError:
            self.document = None
            self.resolver.initialize([])
            raise
        self.document = document
        self.resolver.initialize(document.header)
        return document

    def set_selection(self, column_index: int, field: Union[TargetField, str]) -> bool:
        return self.resolver.set_selection(column_index, field)

    def missing_fields(self, variant: Union[TicketVariant, str]) -> list[TargetField]:
        """Required fields of ``variant`` that no column is bound to."""
        try:
            SubmissionPipeline.validate_coverage(self.resolver, TicketVariant.parse(variant))
        except MissingMappingError as e:
            return e.missing
        return []

    def run(
        self,
        variant: Union[TicketVariant, str],
        client: TicketClient,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RunOutcome:
        """Create one ticket per data row and describe the result in one message."""
        variant = TicketVariant.parse(variant)
        try:
            if self.path is None:
                raise NoFileSelectedError()
            # Coverage is checked before touching the file again
            SubmissionPipeline.validate_coverage(self.resolver, variant)
            rows = read_csv(self.path, self.delimiter).rows
            created = SubmissionPipeline(client, on_progress=on_progress).run(
                self.resolver, variant, rows
            )
        except (NoFileSelectedError, FileReadError, MissingMappingError) as e:
            logger.warning(f"Run not started: {e}")
            return RunOutcome(success=False, message=str(e), error_kind=type(e).__name__)
        except ClientSubmissionError as e:
            logger.warning(f"Run aborted: {e}")
            return RunOutcome(
                success=False,
                created=e.created,
                message=f"Error creating tickets (row {e.row_index + 1}): {e.message}. "
                f"{e.created} tickets created before the error.",
                error_kind=type(e).__name__,
                failed_row=e.row_index + 1,
            )

        return RunOutcome(success=True, created=created, message=f"{created} tickets created")

    def describe(self) -> dict[str, Any]:
        """Snapshot of the session for display."""
        return {
            "path": str(self.path) if self.path else None,
            "delimiter": self.delimiter.label,
            "header": self.resolver.header,
            "row_count": self.document.row_count if self.document else 0,
            "bindings": [
                {
                    "column_index": b.column_index,
                    "header": b.source_header_name,
                    "field": b.selected_field.value,
                    "choices": [c.value for c in b.available_choices],
                }
                for b in self.resolver.bindings
            ],
        }
