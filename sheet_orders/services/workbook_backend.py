from __future__ import annotations

import asyncio
import logging
from collections import Counter
from pathlib import Path

from ..config.loader import DEFAULT_SHEET_NAME
from ..errors import ColumnReadError, ConversionError, ExportError, MergeError
from ..excel.reader import SheetData, SheetReadError, read_columns, read_sheet
from ..excel.writer import SheetWriteError, write_output
from ..logging.error_log import ErrorLogBuffer
from ..models.conversion import ConversionResult, Row
from ..models.error_record import ErrorRecord
from ..models.field_schema import get_field
from ..models.mapping import ColumnDescriptor, Mapping
from .aggregation import REASON_DIVISION_BY_ZERO, REASON_NON_NUMERIC, evaluate
from .collaborators import DuplicateDetector
from .progress import ProgressTracker

"""Local spreadsheet backend built on pandas / openpyxl.

Implements the SpreadsheetBackend protocol in-process. Blocking workbook I/O
runs in a worker thread (asyncio.to_thread) so the session's event loop stays
responsive. The backend keeps the rows of its last convert/merge call; merge
and export operate on those rows.

Duplicate grouping is delegated to an injected DuplicateDetector. Without one,
every row stays ungrouped and merging leaves the rows unchanged.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "WorkbookBackend",
    "KEY_FIELDS",
    "convert_rows",
    "summarize_duplicates",
]

# 三项全空的行视为空行, 不输出
KEY_FIELDS: tuple[str, ...] = ("recipient_name", "recipient_phone", "delivery_address")

_ERROR_TYPES = {
    REASON_NON_NUMERIC: "NON_NUMERIC_OPERAND",
    REASON_DIVISION_BY_ZERO: "DIVISION_BY_ZERO",
}


def summarize_duplicates(rows: list[Row] | tuple[Row, ...]) -> int:
    """Number of rows that belong to a group of two or more rows."""
    sizes = Counter(r.group_id for r in rows if r.group_id > 0)
    return sum(n for n in sizes.values() if n >= 2)


def _validate_mapping(mapping: Mapping) -> None:
    for key, fm in mapping.items():
        try:
            field = get_field(key)
        except KeyError as e:
            raise ConversionError(f"未知字段: {key}") from e
        if fm.operation not in field.operations:
            raise ConversionError(f"字段 {key} 不支持运算 {fm.operation.value}")


def convert_rows(
    sheet: SheetData,
    mapping: Mapping,
    *,
    file_name: str,
    error_log: ErrorLogBuffer | None = None,
) -> list[Row]:
    """Evaluate ``mapping`` over every data row of ``sheet``.

    Unmapped fields keep their defaults ("" and quantity "1"). Rows whose
    recipient name, phone and address all come out empty are dropped.
    Unresolved values are kept in the row (empty text, field listed in
    Row.unresolved) and recorded in ``error_log``.
    """
    rows: list[Row] = []
    unresolved_total = 0
    with ProgressTracker(len(sheet.rows)) as progress:
        for row_number, cells in sheet.rows:
            values: dict[str, str] = {}
            unresolved: set[str] = set()
            records: list[ErrorRecord] = []
            for key, fm in mapping.items():
                agg = evaluate(fm, cells)
                values[key] = agg.text
                if not agg.resolved:
                    unresolved.add(key)
                    records.append(
                        ErrorRecord.create(
                            file=file_name,
                            row=row_number,
                            field=key,
                            error_type=_ERROR_TYPES.get(agg.reason or "", "UNRESOLVED"),
                            message=f"columns={list(fm.source_indices)} operation={fm.operation.value}",
                        )
                    )
            progress.advance()
            if not any(values.get(k) for k in KEY_FIELDS):
                continue
            if unresolved:
                unresolved_total += len(unresolved)
                progress.set_postfix(unresolved=unresolved_total)
            rows.append(Row(**values, unresolved=frozenset(unresolved)))
            if error_log is not None:
                for record in records:
                    error_log.append(record)
    return rows


class WorkbookBackend:
    """SpreadsheetBackend reading and writing xlsx files locally."""

    def __init__(
        self,
        *,
        detector: DuplicateDetector | None = None,
        sheet_name: str = DEFAULT_SHEET_NAME,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self._detector = detector
        self._sheet_name = sheet_name
        # 空 buffer 的 len() 为 0, 不能用 or
        self._error_log = error_log if error_log is not None else ErrorLogBuffer()
        self._rows: list[Row] | None = None
        self._source_path: str | None = None

    @property
    def source_path(self) -> str | None:
        return self._source_path

    @property
    def error_log(self) -> ErrorLogBuffer:
        return self._error_log

    def _result(self, rows: list[Row]) -> ConversionResult:
        return ConversionResult.from_rows(rows, duplicate_count=summarize_duplicates(rows))

    async def read_columns(self, path: str) -> list[ColumnDescriptor]:
        try:
            columns = await asyncio.to_thread(read_columns, Path(path))
        except SheetReadError as e:
            raise ColumnReadError(str(e)) from e
        logger.debug("read_columns %s -> %d columns", path, len(columns))
        return columns

    async def convert_with_mapping(self, path: str, mapping: Mapping) -> ConversionResult:
        _validate_mapping(mapping)
        try:
            sheet = await asyncio.to_thread(read_sheet, Path(path))
        except SheetReadError as e:
            raise ConversionError(str(e)) from e

        rows = convert_rows(sheet, mapping, file_name=Path(path).name, error_log=self._error_log)
        if self._detector is not None:
            rows = self._detector.assign_groups(rows)
        result = self._result(rows)

        self._rows = list(result.rows)
        self._source_path = path
        try:
            log_path = self._error_log.flush()
        except OSError as e:
            logger.warning("failed to write unresolved-value log: %s", e)
            log_path = None
        if log_path is not None:
            logger.warning(
                "%d unresolved value(s) in %s, see %s",
                result.unresolved_count,
                Path(path).name,
                log_path,
            )
        return result

    async def merge_duplicates(self) -> ConversionResult:
        if self._rows is None:
            raise MergeError("没有可合并的数据，请先选择并转换文件")
        if self._detector is None:
            merged = [r.with_group(0) for r in self._rows]
        else:
            # 合并后重新分组, 仍有重复时可再次合并
            merged = self._detector.assign_groups(self._detector.merge(list(self._rows)))
        result = self._result(merged)
        self._rows = list(result.rows)
        return result

    async def export_file(self, output_path: str) -> str:
        if self._rows is None:
            raise ExportError("没有可导出的数据，请先选择并转换文件")
        rows = list(self._rows)
        try:
            await asyncio.to_thread(write_output, rows, Path(output_path), sheet_name=self._sheet_name)
        except SheetWriteError as e:
            raise ExportError(str(e)) from e
        return f"成功导出 {len(rows)} 条数据"
