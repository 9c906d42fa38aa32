from __future__ import annotations

from pathlib import Path

import pandas as pd

from sheet_orders.models.conversion import ConversionResult, Row
from sheet_orders.models.mapping import ColumnDescriptor, index_to_column_code

"""Builders shared by the unit and integration tests."""


def write_xlsx(path: Path, rows: list[list[object]], sheet: str = "Sheet1") -> Path:
    """Write ``rows`` (first row = header) as a single-sheet workbook."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


def make_columns(*titles: str) -> list[ColumnDescriptor]:
    return [
        ColumnDescriptor(index=i, code=index_to_column_code(i), title=t)
        for i, t in enumerate(titles)
    ]


def make_result(n_rows: int, *, duplicate_count: int = 0, groups: list[int] | None = None) -> ConversionResult:
    group_ids = groups or [0] * n_rows
    rows = [
        Row(recipient_name=f"客户{i}", recipient_phone=f"1380000000{i}", group_id=group_ids[i])
        for i in range(n_rows)
    ]
    return ConversionResult.from_rows(rows, duplicate_count=duplicate_count)


class KeyDuplicateDetector:
    """Rows with identical name, phone and address form a group."""

    def _key(self, row: Row) -> tuple[str, str, str]:
        return (row.recipient_name, row.recipient_phone, row.delivery_address)

    def assign_groups(self, rows: list[Row]) -> list[Row]:
        counts: dict[tuple[str, str, str], int] = {}
        for r in rows:
            counts[self._key(r)] = counts.get(self._key(r), 0) + 1
        ids: dict[tuple[str, str, str], int] = {}
        out = []
        for r in rows:
            key = self._key(r)
            if counts[key] >= 2:
                gid = ids.setdefault(key, len(ids) + 1)
                out.append(r.with_group(gid))
            else:
                out.append(r.with_group(0))
        return out

    def merge(self, rows: list[Row]) -> list[Row]:
        # 数量相加, 其余取首行
        seen: dict[tuple[str, str, str], Row] = {}
        for r in rows:
            key = self._key(r)
            if key in seen:
                first = seen[key]
                total = int(first.quantity or 0) + int(r.quantity or 0)
                seen[key] = Row(
                    recipient_name=first.recipient_name,
                    recipient_phone=first.recipient_phone,
                    delivery_address=first.delivery_address,
                    product_name=first.product_name,
                    quantity=str(total),
                )
            else:
                seen[key] = r.with_group(0)
        return list(seen.values())
