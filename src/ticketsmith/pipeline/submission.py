"""Batch creation of tickets from mapped CSV rows."""

import logging
from typing import Callable, Optional, Sequence

from ..jira import TicketClient, TicketResult
from ..mapping import MappingResolver, MissingMappingError, TargetField, TicketVariant
from .coercion import coerce_estimate

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, TicketResult], None]


class ClientSubmissionError(Exception):
    """Exception raised when the ticket client fails for a row."""

    def __init__(self, row_index: int, message: str, created: int):
        self.row_index = row_index  # 0-based index into the data rows
        self.message = message
        self.created = created  # Tickets committed before the failing row
        super().__init__(
            f"Row {row_index + 1} failed after {created} tickets created: {message}"
        )


def cell(row: Optional[Sequence[str]], index: Optional[int]) -> str:
    """Positional lookup where anything missing reads as an empty string."""
    if row is None or index is None or index < 0 or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else value


class SubmissionPipeline:
    """Creates one ticket per data row through a ticket client."""

    def __init__(self, client: TicketClient, on_progress: Optional[ProgressCallback] = None):
        self.client = client
        self.on_progress = on_progress

    @staticmethod
    def validate_coverage(resolver: MappingResolver, variant: TicketVariant) -> None:
        """
        Check that every field the variant needs has a column.

        Raises:
            MissingMappingError: naming every unbound required field
        """
        missing = [
            field
            for field in variant.required_fields
            if resolver.field_column_index(field) is None
        ]
        if missing:
            raise MissingMappingError(variant, missing)

    def run(
        self,
        resolver: MappingResolver,
        variant: TicketVariant,
        rows: Sequence[Sequence[str]],
    ) -> int:
        """
        Create a ticket for each row in order and return how many were created.

        The whole run is validated before the first row. The first failing row
        aborts the run with ClientSubmissionError.
        """
        self.validate_coverage(resolver, variant)
        columns = {field: resolver.field_column_index(field) for field in variant.required_fields}
        total = len(rows)
        logger.info(f"Creating {total} {variant.value} tickets")

        created = 0
        for row_index, row in enumerate(rows):
            values = {field: cell(row, index) for field, index in columns.items()}
            try:
                result = self._submit(variant, values)
            except Exception as e:
                logger.warning(f"Row {row_index + 1}: client raised {e!r}")
                raise ClientSubmissionError(row_index, str(e) or type(e).__name__, created) from e

            if not result.success:
                logger.warning(f"Row {row_index + 1}: {result.error}")
                raise ClientSubmissionError(row_index, result.error or "unknown error", created)

            created += 1
            if self.on_progress is not None:
                self.on_progress(row_index + 1, total, result)

        logger.info(f"Created {created} {variant.value} tickets")
        return created

    def _submit(self, variant: TicketVariant, values: dict[TargetField, str]) -> TicketResult:
        summary = values[TargetField.SUMMARY]
        description = values[TargetField.DESCRIPTION]
        component = values[TargetField.COMPONENT]

        if variant is TicketVariant.STORY:
            return self.client.create_story(summary, description, component)

        return self.client.create_sub_task(
            values[TargetField.PARENT],
            summary,
            description,
            component,
            values[TargetField.LABEL],
            coerce_estimate(values[TargetField.ESTIMATE]),
        )
