from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..models.conversion import Row

"""Result spreadsheet writer.

The output follows the import template of the downstream order platform:
one worksheet, a fixed header row and every cell written as text so that
phone numbers and multi-item quantities ("1；1") are kept verbatim.
"""

__all__ = [
    "SheetWriteError",
    "EXPORT_HEADERS",
    "rows_to_frame",
    "write_output",
]

EXPORT_HEADERS: tuple[str, ...] = (
    "收件人姓名（必填）",
    "收件人手机号（必填）",
    "收货地址（必填）",
    "商品名称(必填) -- 多商品用“；”隔开",
    "商品规格(非必填) -- 多商品用“；”隔开",
    "商品数量(必填) -- 多商品用“；”隔开",
    "备注（非必填）",
)


class SheetWriteError(Exception):
    pass


def rows_to_frame(rows: list[Row] | tuple[Row, ...]) -> pd.DataFrame:
    return pd.DataFrame([list(r.values()) for r in rows], columns=list(EXPORT_HEADERS), dtype=object)


def write_output(rows: list[Row] | tuple[Row, ...], output_path: Path, *, sheet_name: str) -> None:
    """Write ``rows`` to a new xlsx workbook at ``output_path``.

    Raises:
        SheetWriteError: the workbook could not be written
    """
    frame = rows_to_frame(rows)
    try:
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
    except Exception as e:
        raise SheetWriteError(f"保存文件失败: {e}") from e
