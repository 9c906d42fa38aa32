from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from .field_schema import FIELD_CONFIGS

"""Converted rows, conversion results and session state.

A ConversionResult is the outcome of one convert or merge call. It always
replaces the previous result as a whole; results are never combined.
"""

__all__ = [
    "Row",
    "ConversionResult",
    "SessionState",
]


class SessionState(Enum):
    """Observable session states.

    EMPTY -> COLUMNS_LOADED -> MAPPED -> CONVERTED <-> MERGED

    MAPPED is reported while a built mapping is being converted.
    """
    EMPTY = "empty"
    COLUMNS_LOADED = "columns_loaded"
    MAPPED = "mapped"
    CONVERTED = "converted"
    MERGED = "merged"


@dataclass(frozen=True)
class Row:
    """One converted order record, every canonical field already aggregated."""
    recipient_name: str = ""
    recipient_phone: str = ""
    delivery_address: str = ""
    product_name: str = ""
    product_spec: str = ""
    quantity: str = "1"
    remarks: str = ""
    group_id: int = 0  # 0 = 无重复组
    unresolved: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.group_id < 0:
            raise ValueError(f"group_id must be >= 0: {self.group_id}")

    def values(self) -> tuple[str, ...]:
        """Field values in canonical field order."""
        return tuple(getattr(self, k) for k in _FIELD_KEYS)

    def with_group(self, group_id: int) -> Row:
        return replace(self, group_id=group_id)


_FIELD_KEYS: tuple[str, ...] = tuple(f.key for f in FIELD_CONFIGS)


@dataclass(frozen=True)
class ConversionResult:
    rows: tuple[Row, ...]  # display order = result order
    total_rows: int
    has_duplicates: bool = False
    duplicate_count: int = 0

    def __post_init__(self) -> None:
        if self.total_rows != len(self.rows):
            raise ValueError(
                f"total_rows={self.total_rows} does not match {len(self.rows)} rows"
            )
        if self.duplicate_count < 0:
            raise ValueError(f"duplicate_count must be >= 0: {self.duplicate_count}")

    @classmethod
    def from_rows(
        cls, rows: list[Row] | tuple[Row, ...], *, duplicate_count: int = 0
    ) -> ConversionResult:
        return cls(
            rows=tuple(rows),
            total_rows=len(rows),
            has_duplicates=duplicate_count > 0,
            duplicate_count=duplicate_count,
        )

    @property
    def unresolved_count(self) -> int:
        return sum(len(r.unresolved) for r in self.rows)
