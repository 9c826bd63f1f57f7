"""CSV input."""

from .loader import CsvDocument, Delimiter, FileReadError, parse_delimiter, read_csv

__all__ = [
    "CsvDocument",
    "Delimiter",
    "FileReadError",
    "parse_delimiter",
    "read_csv",
]
