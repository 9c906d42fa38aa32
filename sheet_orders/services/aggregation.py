from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..models.field_schema import Operation
from ..models.mapping import FieldMapping

"""Aggregation of several source cells into one field value.

Both the session (for previews and tests) and the workbook backend evaluate
mappings through this module so that they agree on operator semantics:

- concat joins cell texts in source order without separator; blank or missing
  cells contribute "".
- add / subtract / multiply / divide fold left-to-right over the source order
  (divide over [a, b, c] is a / b / c). A blank, missing or non-numeric
  operand, or a zero divisor, leaves the value unresolved. Evaluation never
  raises for bad cell data.
"""

__all__ = [
    "AggregatedValue",
    "cell_to_text",
    "format_number",
    "evaluate",
    "REASON_NON_NUMERIC",
    "REASON_DIVISION_BY_ZERO",
]

REASON_NON_NUMERIC = "non_numeric"
REASON_DIVISION_BY_ZERO = "division_by_zero"


@dataclass(frozen=True)
class AggregatedValue:
    text: str
    resolved: bool = True
    reason: str | None = None  # set when resolved is False

    @staticmethod
    def unresolved(reason: str) -> AggregatedValue:
        return AggregatedValue(text="", resolved=False, reason=reason)


def cell_to_text(value: Any) -> str:
    """Render a raw cell value as text.

    None and NaN become "". Integral floats lose their fractional part so that
    phone numbers stored as numbers do not render as ``13800000000.0``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if math.isfinite(value) and value == math.trunc(value):
            return str(int(value))
        return str(value)
    if isinstance(value, str):
        return value
    # pandas Timestamp / numpy scalars
    item = getattr(value, "item", None)
    if callable(item):
        try:
            return cell_to_text(item())
        except (TypeError, ValueError):
            pass
    return str(value)


def format_number(value: float) -> str:
    if math.isfinite(value) and value == math.trunc(value):
        return str(int(value))
    return str(value)


def _parse_number(text: str) -> float | None:
    stripped = text.strip()
    if not stripped:
        return None
    try:
        number = float(stripped)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _cell_at(cells: Sequence[Any], index: int) -> Any:
    if 0 <= index < len(cells):
        return cells[index]
    return None


_FOLDS: dict[Operation, Callable[[float, float], float]] = {
    Operation.ADD: lambda acc, x: acc + x,
    Operation.SUBTRACT: lambda acc, x: acc - x,
    Operation.MULTIPLY: lambda acc, x: acc * x,
    Operation.DIVIDE: lambda acc, x: acc / x,
}


def evaluate(mapping: FieldMapping, cells: Sequence[Any]) -> AggregatedValue:
    """Evaluate one field mapping against one row.

    Args:
        mapping: source indices and operation of the field
        cells: the row's raw cell values addressed by column index; indices past
            the end count as missing cells

    Returns:
        AggregatedValue, unresolved with a reason when an arithmetic operand is
        unusable
    """
    texts = [cell_to_text(_cell_at(cells, i)) for i in mapping.source_indices]

    if mapping.operation is Operation.CONCAT:
        return AggregatedValue(text="".join(texts))

    numbers: list[float] = []
    for text in texts:
        number = _parse_number(text)
        if number is None:
            return AggregatedValue.unresolved(REASON_NON_NUMERIC)
        numbers.append(number)

    fold = _FOLDS[mapping.operation]
    acc = numbers[0]
    for number in numbers[1:]:
        if mapping.operation is Operation.DIVIDE and number == 0:
            return AggregatedValue.unresolved(REASON_DIVISION_BY_ZERO)
        acc = fold(acc, number)
    if not math.isfinite(acc):
        return AggregatedValue.unresolved(REASON_NON_NUMERIC)
    return AggregatedValue(text=format_number(acc))
