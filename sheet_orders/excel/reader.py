from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.mapping import ColumnDescriptor, index_to_column_code
from ..services.aggregation import cell_to_text

"""Source spreadsheet reader.

Only the first worksheet is read. Row 1 is the header row and names the
columns; rows 2+ are data rows. Cells are read as raw objects (no dtype
inference) and strings such as "NA" or "null" are kept as text, since they can
be legitimate names or remarks.
"""

__all__ = [
    "SheetReadError",
    "SheetData",
    "read_first_sheet",
    "read_columns",
    "read_sheet",
]


class SheetReadError(Exception):
    """Raised when the workbook cannot be opened or has no worksheet."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[ColumnDescriptor]
    rows: list[tuple[int, list[Any]]]  # (spreadsheet row number, raw cells)


def read_first_sheet(path: Path) -> tuple[str, pd.DataFrame]:
    """Read the first worksheet of ``path`` without a header.

    Raises:
        SheetReadError: unreadable file, unsupported format, or no worksheet
    """
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:
        raise SheetReadError(f"无法打开文件: {e}") from e
    with xls:
        if not xls.sheet_names:
            raise SheetReadError("文件中没有工作表")
        name = xls.sheet_names[0]
        try:
            df = xls.parse(name, header=None, dtype=object, keep_default_na=False)
        except Exception as e:
            raise SheetReadError(f"无法读取工作表: {e}") from e
    return str(name), df


def _header_columns(df: pd.DataFrame) -> list[ColumnDescriptor]:
    if df.shape[0] == 0:
        return []
    header = df.iloc[0].tolist()
    return [
        ColumnDescriptor(index=i, code=index_to_column_code(i), title=cell_to_text(v).strip())
        for i, v in enumerate(header)
    ]


def read_columns(path: Path) -> list[ColumnDescriptor]:
    """Describe the header row of the first worksheet."""
    _, df = read_first_sheet(path)
    return _header_columns(df)


def read_sheet(path: Path) -> SheetData:
    """Read header descriptors plus raw data rows of the first worksheet."""
    name, df = read_first_sheet(path)
    columns = _header_columns(df)
    rows: list[tuple[int, list[Any]]] = []
    for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None)):
        # header is spreadsheet row 1, first data row is row 2
        rows.append((offset + 2, list(raw)))
    return SheetData(sheet_name=name, columns=columns, rows=rows)
