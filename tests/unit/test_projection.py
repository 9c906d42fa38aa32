from __future__ import annotations

import asyncio

from sheet_orders.models.conversion import ConversionResult, Row, SessionState
from sheet_orders.models.mapping import FieldSelection
from sheet_orders.services.projection import (
    EMPTY_HINT,
    merge_button_label,
    project_row,
    project_session,
)
from sheet_orders.services.session import ImportSession
from sheet_orders.services.status import Severity
from tests.helpers import make_columns, make_result


def test_empty_session_view(fake_backend):
    view = project_session(ImportSession(fake_backend))
    assert view.state is SessionState.EMPTY
    assert view.table_rows == ()
    assert view.empty_hint == EMPTY_HINT
    assert view.row_count_text == ""
    assert not view.merge_button_visible
    assert not view.export_enabled
    assert view.select_enabled
    assert not view.mapping_panel_visible
    assert view.mapping_fields == ()


def test_mapping_panel_lists_columns_and_operators(fake_backend):
    session = ImportSession(fake_backend)
    asyncio.run(session.select_file("orders.xlsx"))
    view = project_session(session)
    assert view.mapping_panel_visible
    assert [f.key for f in view.mapping_fields][0] == "recipient_name"
    name = view.mapping_fields[0]
    assert [o.label for o in name.column_options] == ["A - 收件人", "B - 电话", "C - 地址"]
    assert [o.value for o in name.operation_options] == ["concat"]
    qty = next(f for f in view.mapping_fields if f.key == "quantity")
    assert [o.value for o in qty.operation_options] == ["add", "subtract", "multiply", "divide"]


def test_merge_button_follows_duplicates(fake_backend):
    fake_backend.read_columns.return_value = make_columns("收件人", "电话", "地址")
    fake_backend.convert_with_mapping.return_value = make_result(5, duplicate_count=2, groups=[1, 1, 0, 0, 0])
    session = ImportSession(fake_backend)
    asyncio.run(session.select_file("orders.xlsx"))
    asyncio.run(session.apply_mapping({"recipient_name": FieldSelection(chosen_indices=(0,))}))

    view = project_session(session)
    assert view.state is SessionState.CONVERTED
    assert view.merge_button_visible
    assert view.merge_button_label == "合并重复项 (2条)"
    assert view.row_count_text == "共 5 条数据"
    assert view.export_enabled
    assert view.empty_hint is None
    assert [r.ordinal for r in view.table_rows] == [1, 2, 3, 4, 5]
    assert view.table_rows[0].css_class == "dup-group-0"
    assert view.table_rows[2].css_class == ""

    fake_backend.merge_duplicates.return_value = make_result(4)
    asyncio.run(session.merge_duplicates())
    view = project_session(session)
    assert view.state is SessionState.MERGED
    assert not view.merge_button_visible
    assert view.row_count_text == "共 4 条数据"
    assert view.status_line.text == "合并完成，当前共 4 条数据"
    assert view.status_line.severity is Severity.SUCCESS


def test_zero_row_result_shows_hint(fake_backend):
    fake_backend.convert_with_mapping.return_value = ConversionResult.from_rows([])
    session = ImportSession(fake_backend)
    asyncio.run(session.select_file("orders.xlsx"))
    asyncio.run(session.apply_mapping({"recipient_name": FieldSelection(chosen_indices=(0,))}))
    view = project_session(session)
    assert view.empty_hint == EMPTY_HINT
    assert view.row_count_text == "共 0 条数据"
    assert view.export_enabled


def test_external_text_is_escaped(fake_backend):
    fake_backend.read_columns.return_value = make_columns("<b>name</b>")
    fake_backend.convert_with_mapping.return_value = ConversionResult.from_rows(
        [Row(recipient_name="<script>alert(1)</script>", remarks='"x" & y')]
    )
    session = ImportSession(fake_backend)
    asyncio.run(session.select_file("<evil>.xlsx"))
    view = project_session(session)
    assert view.file_path_text == "&lt;evil&gt;.xlsx"
    assert view.mapping_fields[0].column_options[0].label == "A - &lt;b&gt;name&lt;/b&gt;"

    asyncio.run(session.apply_mapping({"recipient_name": FieldSelection(chosen_indices=(0,))}))
    row = project_session(session).table_rows[0]
    assert row.cells[0] == "&lt;script&gt;alert(1)&lt;/script&gt;"
    assert row.cells[-1] == "&quot;x&quot; &amp; y"
    assert "<" not in "".join(row.cells)


def test_group_colors_cycle():
    assert project_row(1, Row(group_id=1)).css_class == "dup-group-0"
    assert project_row(1, Row(group_id=6)).css_class == "dup-group-5"
    assert project_row(1, Row(group_id=7)).css_class == "dup-group-0"


def test_row_cells_in_canonical_order():
    row = Row(recipient_name="张三", quantity="2", unresolved=frozenset({"remarks"}))
    projected = project_row(3, row)
    assert projected.ordinal == 3
    assert projected.cells == ("张三", "", "", "", "", "2", "")
    assert projected.unresolved_fields == {"remarks"}


def test_merge_button_label():
    assert merge_button_label(3) == "合并重复项 (3条)"


def test_projection_does_not_change_session(fake_backend):
    session = ImportSession(fake_backend)
    asyncio.run(session.select_file("orders.xlsx"))
    state, status = session.state, session.status.current
    project_session(session)
    project_session(session)
    assert session.state is state
    assert session.status.current is status
