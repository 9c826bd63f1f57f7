"""Interactive mapping of CSV columns to ticket fields."""

from .models import (
    ALL_FIELDS,
    ColumnBinding,
    MissingMappingError,
    TargetField,
    TicketVariant,
)
from .resolver import MappingResolver

__all__ = [
    "ALL_FIELDS",
    "ColumnBinding",
    "MissingMappingError",
    "TargetField",
    "TicketVariant",
    "MappingResolver",
]
