"""Reading delimited exports into a header and data rows."""

import csv
import logging
from enum import Enum
from pathlib import Path
from typing import Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Delimiter(str, Enum):
    """Delimiters offered for CSV exports."""

    SEMICOLON = ";"
    COMMA = ","
    PIPE = "|"
    TAB = "\t"

    @property
    def label(self) -> str:
        return "TAB" if self is Delimiter.TAB else self.value


_DELIMITER_NAMES = {
    "semicolon": Delimiter.SEMICOLON,
    "comma": Delimiter.COMMA,
    "pipe": Delimiter.PIPE,
    "tab": Delimiter.TAB,
    "\\t": Delimiter.TAB,
}


def parse_delimiter(value: Union[Delimiter, str]) -> Delimiter:
    """Parse a delimiter given as the character itself or by name."""
    if isinstance(value, Delimiter):
        return value
    if value in ("\t", ";", ",", "|"):
        return Delimiter(value)
    named = _DELIMITER_NAMES.get(str(value).strip().lower())
    if named is None:
        raise ValueError(f"Unsupported delimiter '{value}' (use ;  ,  |  or TAB)")
    return named


class FileReadError(Exception):
    """Exception raised when a CSV file is missing, unreadable or empty."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not load CSV '{self.path}': {reason}")


class CsvDocument(BaseModel):
    """Header and data rows of one CSV file parsed with one delimiter."""

    path: Path
    delimiter: Delimiter
    header: list[str]
    rows: list[list[str]] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def read_csv(path: Union[str, Path], delimiter: Union[Delimiter, str] = Delimiter.SEMICOLON) -> CsvDocument:
    """
    Read ``path`` with ``delimiter``. The first row is the header.

    Raises:
        FileReadError: if the file is missing, cannot be decoded or parsed,
            or has no rows at all
    """
    path = Path(path)
    delimiter = parse_delimiter(delimiter)

    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.reader(f, delimiter=delimiter.value)
            # Blank lines come back as [] and carry no cells at all
            rows = [["" if cell is None else cell for cell in row] for row in reader if row]
    except FileNotFoundError:
        raise FileReadError(path, "file not found")
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise FileReadError(path, str(e))

    if not rows:
        raise FileReadError(path, "CSV is empty")

    header = rows[0]
    logger.info(
        f"Read {len(rows) - 1} data rows with {len(header)} columns from {path} "
        f"(delimiter {delimiter.label})"
    )
    return CsvDocument(path=path, delimiter=delimiter, header=header, rows=rows[1:])
