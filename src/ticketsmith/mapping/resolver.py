"""Column to field resolver keeping every binding's choices consistent."""

import logging
from typing import Callable, Optional, Union

from .models import ALL_FIELDS, ColumnBinding, TargetField

logger = logging.getLogger(__name__)

ChoicesListener = Callable[[ColumnBinding], None]


class MappingResolver:
    """
    Owns the column bindings of one loaded CSV header.

    No two bindings may hold the same field, except ``skip``. Every change runs
    a single recompute pass that settles all choice lists before returning.
    A listener, if given, is told about each binding whose choices changed;
    selections it makes while the pass is running are ignored.
    """

    def __init__(self, listener: Optional[ChoicesListener] = None):
        self._bindings: list[ColumnBinding] = []
        self._recomputing = False
        self.listener = listener

    @property
    def bindings(self) -> tuple[ColumnBinding, ...]:
        return tuple(self._bindings)

    @property
    def header(self) -> list[str]:
        return [b.source_header_name for b in self._bindings]

    def __len__(self) -> int:
        return len(self._bindings)

    def initialize(self, header: list[str]) -> tuple[ColumnBinding, ...]:
        """
        Create one binding per header column, replacing any previous bindings.

        A header that case-insensitively names a field is pre-selected to that
        field unless an earlier column already claimed it.
        """
        claimed: set[TargetField] = set()
        bindings = []
        for index, raw_name in enumerate(header):
            name = "" if raw_name is None else raw_name.strip()
            match = TargetField.match(name)
            selected = TargetField.SKIP
            if match is not None and match is not TargetField.SKIP and match not in claimed:
                selected = match
                claimed.add(match)
            bindings.append(
                ColumnBinding(
                    column_index=index,
                    source_header_name=name,
                    selected_field=selected,
                )
            )

        self._bindings = bindings
        self.recompute()
        logger.info(
            f"Initialized {len(bindings)} column bindings "
            f"({len(claimed)} pre-selected from header names)"
        )
        return self.bindings

    def set_selection(self, column_index: int, field: Union[TargetField, str]) -> bool:
        """
        Select a field for one column and settle every choice list.

        Returns False when the call was ignored because a recompute pass is in
        progress.
        """
        field = TargetField.parse(field)
        if not 0 <= column_index < len(self._bindings):
            raise IndexError(
                f"Column index {column_index} out of range (0-{len(self._bindings) - 1})"
            )

        if self._recomputing:
            logger.debug(f"Ignoring selection of '{field.value}' for column {column_index} during recompute")
            return False

        if field is not TargetField.SKIP:
            # The field moves: whoever held it before falls back to skip
            for i, binding in enumerate(self._bindings):
                if i != column_index and binding.selected_field is field:
                    logger.info(
                        f"Column '{binding.source_header_name}' released '{field.value}'"
                    )
                    self._bindings[i] = binding.model_copy(
                        update={"selected_field": TargetField.SKIP}
                    )

        current = self._bindings[column_index]
        self._bindings[column_index] = current.model_copy(update={"selected_field": field})
        logger.debug(f"Column '{current.source_header_name}' -> '{field.value}'")
        self.recompute()
        return True

    def recompute(self) -> int:
        """
        Rebuild every binding's available choices from the current selections.

        A binding keeps skip, its own selection and every field nobody else
        holds. Returns the number of bindings whose choices changed.
        """
        if self._recomputing:
            return 0

        self._recomputing = True
        changed: list[ColumnBinding] = []
        try:
            taken = {b.selected_field for b in self._bindings if not b.is_skipped}

            for i, binding in enumerate(self._bindings):
                current = binding.selected_field
                choices = tuple(
                    field
                    for field in ALL_FIELDS
                    if field is TargetField.SKIP or field is current or field not in taken
                )

                updates = {}
                if choices != binding.available_choices:
                    updates["available_choices"] = choices
                if current not in choices:
                    updates["selected_field"] = TargetField.SKIP
                if updates:
                    self._bindings[i] = binding.model_copy(update=updates)
                    if "available_choices" in updates:
                        changed.append(self._bindings[i])

            if self.listener is not None:
                for binding in changed:
                    self.listener(binding)
        finally:
            self._recomputing = False

        return len(changed)

    def field_column_index(self, field: Union[TargetField, str]) -> Optional[int]:
        """Index of the first column bound to ``field``, or None."""
        field = TargetField.parse(field)
        for binding in self._bindings:
            if binding.selected_field is field:
                return binding.column_index
        return None

    def mapping(self) -> dict[TargetField, str]:
        """Bound fields (skip excluded) to the header name feeding them."""
        result: dict[TargetField, str] = {}
        for binding in self._bindings:
            if not binding.is_skipped and binding.selected_field not in result:
                result[binding.selected_field] = binding.source_header_name
        return result

    def reset(self) -> None:
        """Set every column back to skip."""
        self._bindings = [
            b.model_copy(update={"selected_field": TargetField.SKIP}) for b in self._bindings
        ]
        self.recompute()
