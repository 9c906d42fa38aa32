from __future__ import annotations

from collections.abc import Mapping as AbcMapping, Sequence
from typing import Any

from ..errors import InvalidMappingError
from ..models.field_schema import FieldConfig, Operation, for_each_field, get_field
from ..models.mapping import (
    ColumnDescriptor,
    FieldMapping,
    FieldSelection,
    Mapping,
    column_code_to_index,
)

"""Turn per-field column selections into a validated Mapping.

Fields are visited in registry order. A field whose selection is empty is left
out of the Mapping altogether. An operator that the field's kind does not
allow is rejected with InvalidMappingError, never coerced.
"""

__all__ = [
    "build_mapping",
    "build_from_preset",
    "selections_from_preset",
    "parse_column_ref",
]


def _coerce_operation(field: FieldConfig, raw: Operation | str | None) -> Operation:
    if raw is None:
        return field.default_operation
    if isinstance(raw, Operation):
        op = raw
    else:
        try:
            op = Operation(str(raw).strip().lower())
        except ValueError as e:
            raise InvalidMappingError(
                f"field '{field.key}': unknown operation {raw!r}"
            ) from e
    if op not in field.operations:
        allowed = ", ".join(o.value for o in field.operations)
        raise InvalidMappingError(
            f"field '{field.key}' ({field.kind.value}) does not allow "
            f"operation '{op.value}'; allowed: {allowed}"
        )
    return op


def _coerce_indices(field: FieldConfig, raw: Any) -> tuple[int, ...]:
    indices: list[int] = []
    for item in raw or ():
        # bool 是 int 的子类, 需要排除
        if isinstance(item, bool) or not isinstance(item, int):
            raise InvalidMappingError(
                f"field '{field.key}': column index must be an int, got {item!r}"
            )
        if item < 0:
            raise InvalidMappingError(f"field '{field.key}': negative column index {item}")
        indices.append(item)
    return tuple(indices)


def build_mapping(
    selections: AbcMapping[str, FieldSelection],
    columns: Sequence[ColumnDescriptor] | None = None,
) -> Mapping:
    """Build a Mapping from the user's per-field selections.

    Args:
        selections: field key -> FieldSelection. Fields missing from the dict
            are treated like an empty selection.
        columns: loaded column descriptors; when given, every chosen index must
            name one of them

    Returns:
        Mapping holding only the fields with at least one chosen column, the
        indices kept in the order the caller chose them

    Raises:
        InvalidMappingError: unknown field key, bad index, or an operator not
            allowed for the field's kind
    """
    unknown = [k for k in selections if k not in {f.key for f in for_each_field()}]
    if unknown:
        raise InvalidMappingError(f"unknown field(s): {sorted(unknown)}")
    known_indices = {c.index for c in columns} if columns is not None else None

    entries: list[tuple[str, FieldMapping]] = []
    for field in for_each_field():
        selection = selections.get(field.key)
        if selection is None:
            continue
        indices = _coerce_indices(field, selection.chosen_indices)
        if not indices:
            continue
        op = _coerce_operation(field, selection.chosen_operation)
        if known_indices is not None:
            missing = [i for i in indices if i not in known_indices]
            if missing:
                raise InvalidMappingError(
                    f"field '{field.key}': column index {missing} not in loaded columns"
                )
        entries.append((field.key, FieldMapping(source_indices=indices, operation=op)))
    return Mapping(entries=tuple(entries))


def parse_column_ref(field_key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidMappingError(f"field '{field_key}': invalid column {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        try:
            return column_code_to_index(text)
        except ValueError as e:
            raise InvalidMappingError(f"field '{field_key}': {e}") from e
    raise InvalidMappingError(f"field '{field_key}': invalid column {value!r}")


def selections_from_preset(preset: AbcMapping[str, Any]) -> dict[str, FieldSelection]:
    """Translate the config preset format into field selections.

    ``{"quantity": {"columns": ["C", 3], "operation": "add"}}``; columns are
    zero-based indices or letter codes, a missing operation falls back to the
    field's default operator.
    """
    selections: dict[str, FieldSelection] = {}
    for key, entry in preset.items():
        try:
            get_field(key)
        except KeyError as e:
            raise InvalidMappingError(f"unknown field in preset: {key!r}") from e
        if not isinstance(entry, AbcMapping):
            raise InvalidMappingError(
                f"preset for '{key}' must be a mapping, got {type(entry).__name__}"
            )
        columns = tuple(parse_column_ref(key, c) for c in entry.get("columns", []))
        selections[key] = FieldSelection(
            chosen_indices=columns, chosen_operation=entry.get("operation")
        )
    return selections


def build_from_preset(
    preset: AbcMapping[str, Any], columns: Sequence[ColumnDescriptor] | None = None
) -> Mapping:
    return build_mapping(selections_from_preset(preset), columns)
