from __future__ import annotations

import html
from dataclasses import dataclass

from ..models.field_schema import OPERATION_LABELS, for_each_field
from ..models.conversion import Row, SessionState
from .session import ImportSession, Transition
from .status import StatusMessage

"""Pure projection of an ImportSession into what the view displays.

project_session() reads the session and never changes it. Every piece of
externally sourced text (file path, column titles, cell values, backend
messages) is HTML-escaped here, so renderers can insert the strings as-is.
"""

__all__ = [
    "TableRow",
    "OptionView",
    "FieldMappingView",
    "SessionView",
    "project_session",
    "project_row",
    "merge_button_label",
    "EMPTY_HINT",
    "GROUP_PALETTE_SIZE",
]

EMPTY_HINT = "没有数据"
GROUP_PALETTE_SIZE = 6  # dup-group-0 .. dup-group-5


def _escape(text: str) -> str:
    return html.escape(text, quote=True)


@dataclass(frozen=True)
class TableRow:
    ordinal: int  # 1-based
    cells: tuple[str, ...]  # escaped, canonical field order
    css_class: str
    unresolved_fields: frozenset[str]


@dataclass(frozen=True)
class OptionView:
    value: str
    label: str  # escaped


@dataclass(frozen=True)
class FieldMappingView:
    key: str
    label: str
    column_options: tuple[OptionView, ...]
    operation_options: tuple[OptionView, ...]


@dataclass(frozen=True)
class SessionView:
    state: SessionState
    file_path_text: str
    table_rows: tuple[TableRow, ...]
    empty_hint: str | None
    row_count_text: str
    status_line: StatusMessage | None
    merge_button_visible: bool
    merge_button_label: str
    export_enabled: bool
    select_enabled: bool
    mapping_panel_visible: bool
    mapping_fields: tuple[FieldMappingView, ...]


def merge_button_label(duplicate_count: int) -> str:
    return f"合并重复项 ({duplicate_count}条)"


def project_row(ordinal: int, row: Row) -> TableRow:
    css_class = (
        f"dup-group-{(row.group_id - 1) % GROUP_PALETTE_SIZE}" if row.group_id > 0 else ""
    )
    return TableRow(
        ordinal=ordinal,
        cells=tuple(_escape(v) for v in row.values()),
        css_class=css_class,
        unresolved_fields=row.unresolved,
    )


def _mapping_fields(session: ImportSession) -> tuple[FieldMappingView, ...]:
    columns = tuple(
        OptionView(value=str(c.index), label=_escape(c.display)) for c in session.columns
    )
    return tuple(
        FieldMappingView(
            key=f.key,
            label=f.label,
            column_options=columns,
            operation_options=tuple(
                OptionView(value=op.value, label=OPERATION_LABELS[op]) for op in f.operations
            ),
        )
        for f in for_each_field()
    )


def project_session(session: ImportSession) -> SessionView:
    result = session.result
    rows = tuple(project_row(i + 1, r) for i, r in enumerate(result.rows)) if result else ()
    status = session.status.current
    if status is not None:
        status = StatusMessage(text=_escape(status.text), severity=status.severity)
    return SessionView(
        state=session.state,
        file_path_text=_escape(session.file_path or ""),
        table_rows=rows,
        empty_hint=None if rows else EMPTY_HINT,
        row_count_text=f"共 {result.total_rows} 条数据" if result else "",
        status_line=status,
        merge_button_visible=bool(result and result.has_duplicates),
        merge_button_label=merge_button_label(result.duplicate_count) if result else "",
        export_enabled=result is not None and not session.is_busy(Transition.EXPORT),
        select_enabled=not session.is_busy(Transition.SELECT_FILE),
        mapping_panel_visible=session.composing_mapping,
        mapping_fields=_mapping_fields(session) if session.composing_mapping else (),
    )
