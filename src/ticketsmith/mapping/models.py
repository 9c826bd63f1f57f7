"""Data models for CSV column to ticket field mapping."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class TargetField(str, Enum):
    """Ticket fields a CSV column can feed. Declaration order is choice order."""

    SUMMARY = "summary"
    DESCRIPTION = "description"
    COMPONENT = "component"
    PARENT = "parent"
    LABEL = "label"
    ESTIMATE = "estimate"
    SKIP = "skip"  # Column maps to nothing; may be selected by any number of columns

    @classmethod
    def match(cls, name: str) -> Optional["TargetField"]:
        """Case-insensitive exact match of a header name against field names."""
        if name is None:
            return None
        lowered = name.strip().lower()
        for field in cls:
            if field.value == lowered:
                return field
        return None

    @classmethod
    def parse(cls, value: Union["TargetField", str]) -> "TargetField":
        """Parse a field or field name, raising ValueError for unknown names."""
        if isinstance(value, TargetField):
            return value
        field = cls.match(value)
        if field is None:
            choices = ", ".join(f.value for f in cls)
            raise ValueError(f"Unknown target field '{value}' (expected one of: {choices})")
        return field


ALL_FIELDS: tuple[TargetField, ...] = tuple(TargetField)

_STORY_FIELDS = (TargetField.SUMMARY, TargetField.DESCRIPTION, TargetField.COMPONENT)


class TicketVariant(str, Enum):
    """Kind of ticket a submission run creates."""

    STORY = "Story"
    SUB_TASK = "SubTask"

    @property
    def required_fields(self) -> tuple[TargetField, ...]:
        if self is TicketVariant.STORY:
            return _STORY_FIELDS
        return _STORY_FIELDS + (TargetField.PARENT, TargetField.LABEL, TargetField.ESTIMATE)

    @classmethod
    def parse(cls, value: Union["TicketVariant", str]) -> "TicketVariant":
        """Parse user input such as 'story', 'UserStory' or 'sub-task'."""
        if isinstance(value, TicketVariant):
            return value
        key = str(value).strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        if key in ("story", "userstory"):
            return cls.STORY
        if key == "subtask":
            return cls.SUB_TASK
        raise ValueError(f"Unknown ticket variant '{value}' (expected Story or SubTask)")


class ColumnBinding(BaseModel):
    """Binding of one CSV header column to a ticket field."""

    model_config = ConfigDict(frozen=True)

    column_index: int
    source_header_name: str
    selected_field: TargetField = TargetField.SKIP
    available_choices: tuple[TargetField, ...] = ALL_FIELDS

    @property
    def is_skipped(self) -> bool:
        return self.selected_field is TargetField.SKIP


class MissingMappingError(Exception):
    """Exception raised when fields required by a ticket variant have no column."""

    def __init__(self, variant: TicketVariant, missing: list[TargetField]):
        self.variant = variant
        self.missing = missing
        names = ", ".join(f"'{f.value}'" for f in missing)
        super().__init__(f"Map {names} before creating {variant.value} tickets")
