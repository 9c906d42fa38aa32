from __future__ import annotations

from collections.abc import Iterator, Mapping as AbcMapping
from dataclasses import dataclass, field
from typing import Any

from .field_schema import Operation

"""Column descriptors and the field -> source column Mapping snapshot."""

__all__ = [
    "ColumnDescriptor",
    "FieldSelection",
    "FieldMapping",
    "Mapping",
    "index_to_column_code",
    "column_code_to_index",
]


def index_to_column_code(index: int) -> str:
    """Convert a zero-based column index to its spreadsheet letter code.

    >>> index_to_column_code(0), index_to_column_code(25), index_to_column_code(26)
    ('A', 'Z', 'AA')
    """
    if index < 0:
        raise ValueError(f"column index must be >= 0: {index}")
    code = ""
    n = index
    while True:
        code = chr(ord("A") + n % 26) + code
        if n < 26:
            break
        n = n // 26 - 1
    return code


def column_code_to_index(code: str) -> int:
    """Inverse of :func:`index_to_column_code` (case-insensitive)."""
    text = code.strip().upper()
    if not text or not text.isascii() or not text.isalpha():
        raise ValueError(f"invalid column code: {code!r}")
    n = 0
    for ch in text:
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


@dataclass(frozen=True)
class ColumnDescriptor:
    """One column discovered in the source spreadsheet header.

    Replaced wholesale on every file selection; never mutated.
    """
    index: int  # zero-based, unique within one load
    code: str  # A, B, ... AA
    title: str  # header cell text

    @property
    def display(self) -> str:
        return f"{self.code} - {self.title}"


@dataclass(frozen=True)
class FieldSelection:
    """Raw user choice for one field, before validation."""
    chosen_indices: tuple[int, ...] = ()
    chosen_operation: Operation | str | None = None


@dataclass(frozen=True)
class FieldMapping:
    source_indices: tuple[int, ...]  # evaluation order
    operation: Operation

    def to_payload(self) -> dict[str, Any]:
        return {
            "source_indices": list(self.source_indices),
            "operation": self.operation.value,
        }


@dataclass(frozen=True)
class Mapping(AbcMapping[str, FieldMapping]):
    """Populated fields only.

    A field the user left empty is absent, never present with an empty list;
    the backend defaults absent fields instead of computing them from nothing.
    """
    entries: tuple[tuple[str, FieldMapping], ...] = field(default=())

    def __post_init__(self) -> None:
        keys = [k for k, _ in self.entries]
        if len(keys) != len(set(keys)):
            raise ValueError(f"duplicate field keys in mapping: {keys}")
        for key, fm in self.entries:
            if not fm.source_indices:
                raise ValueError(f"field '{key}' mapped without source columns")

    def __getitem__(self, key: str) -> FieldMapping:
        for k, fm in self.entries:
            if k == key:
                return fm
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return (k for k, _ in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_payload(self) -> dict[str, dict[str, Any]]:
        """Wire form: ``{field: {"source_indices": [...], "operation": "..."}}``."""
        return {k: fm.to_payload() for k, fm in self.entries}
