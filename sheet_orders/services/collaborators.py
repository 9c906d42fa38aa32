from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..models.conversion import ConversionResult, Row
from ..models.mapping import ColumnDescriptor, Mapping

"""Interfaces of the external collaborators the session drives.

SpreadsheetBackend owns parsing, conversion, duplicate detection and writing.
merge_duplicates() and export_file() take no data: they act on the result the
backend itself holds from its last convert/merge call. A session and its
backend therefore have to be paired one-to-one; sharing a backend between two
sessions lets the session-side result and the backend-side result diverge.
"""

__all__ = [
    "FileFilter",
    "SpreadsheetBackend",
    "DialogService",
    "DuplicateDetector",
]


@dataclass(frozen=True)
class FileFilter:
    name: str
    extensions: tuple[str, ...]

    def matches(self, path: str) -> bool:
        lowered = path.lower()
        return any(lowered.endswith("." + ext.lower()) for ext in self.extensions)


@runtime_checkable
class SpreadsheetBackend(Protocol):
    async def read_columns(self, path: str) -> list[ColumnDescriptor]:
        """Raises ColumnReadError on an unreadable or invalid file."""
        ...

    async def convert_with_mapping(self, path: str, mapping: Mapping) -> ConversionResult:
        """Raises ConversionError on a malformed mapping or unreadable data."""
        ...

    async def merge_duplicates(self) -> ConversionResult:
        """Raises MergeError when nothing has been converted yet."""
        ...

    async def export_file(self, output_path: str) -> str:
        """Returns a confirmation message; raises ExportError."""
        ...


@runtime_checkable
class DialogService(Protocol):
    """Host file dialogs. ``None`` means the user cancelled."""

    def select_open_path(self, filters: tuple[FileFilter, ...]) -> str | None: ...

    def select_save_path(
        self, default_name: str, filters: tuple[FileFilter, ...]
    ) -> str | None: ...


@runtime_checkable
class DuplicateDetector(Protocol):
    """Duplicate grouping used by the workbook backend.

    assign_groups() returns the rows in display order with group ids set
    (0 = ungrouped, positive ids shared by rows judged equivalent). merge()
    collapses each group into one row.
    """

    def assign_groups(self, rows: list[Row]) -> list[Row]: ...

    def merge(self, rows: list[Row]) -> list[Row]: ...
