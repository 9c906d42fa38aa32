from __future__ import annotations

import math

import numpy as np
import pytest

from sheet_orders.models.field_schema import Operation
from sheet_orders.models.mapping import FieldMapping
from sheet_orders.services.aggregation import (
    REASON_DIVISION_BY_ZERO,
    REASON_NON_NUMERIC,
    cell_to_text,
    evaluate,
    format_number,
)


def _fm(op: Operation, *indices: int) -> FieldMapping:
    return FieldMapping(source_indices=indices, operation=op)


def test_concat_follows_source_order():
    v = evaluate(_fm(Operation.CONCAT, 2, 0, 1), ["A", "B", "C"])
    assert v.text == "CAB"
    assert v.resolved


def test_concat_blank_and_missing_cells_are_empty():
    v = evaluate(_fm(Operation.CONCAT, 0, 1, 5), ["浙江", None, "x"])
    assert v.text == "浙江"
    assert v.resolved


def test_concat_numeric_cells_render_without_fraction():
    assert evaluate(_fm(Operation.CONCAT, 0), [13800000000.0]).text == "13800000000"


def test_divide_folds_left_to_right():
    assert evaluate(_fm(Operation.DIVIDE, 0, 1, 2), [8, 2, 2]).text == "2"


def test_subtract_folds_left_to_right():
    assert evaluate(_fm(Operation.SUBTRACT, 0, 1, 2), [10, 3, 2]).text == "5"


def test_add_and_multiply():
    assert evaluate(_fm(Operation.ADD, 0, 1), ["2", 3.5]).text == "5.5"
    assert evaluate(_fm(Operation.MULTIPLY, 0, 1), [" 4 ", "2.5"]).text == "10"


def test_single_numeric_column_passes_through():
    assert evaluate(_fm(Operation.ADD, 0), [3]).text == "3"


@pytest.mark.parametrize("cells", [["两", 1], [None, 1], ["", 1], [1]])
def test_unusable_operand_is_unresolved(cells):
    v = evaluate(_fm(Operation.ADD, 0, 1), cells)
    assert not v.resolved
    assert v.text == ""
    assert v.reason == REASON_NON_NUMERIC


def test_zero_divisor_is_unresolved():
    v = evaluate(_fm(Operation.DIVIDE, 0, 1), [5, 0])
    assert not v.resolved
    assert v.reason == REASON_DIVISION_BY_ZERO


def test_zero_dividend_is_fine():
    assert evaluate(_fm(Operation.DIVIDE, 0, 1), [0, 5]).text == "0"


def test_infinite_operand_is_unresolved():
    v = evaluate(_fm(Operation.ADD, 0), ["inf"])
    assert not v.resolved


def test_cell_to_text():
    assert cell_to_text(None) == ""
    assert cell_to_text(math.nan) == ""
    assert cell_to_text(2.0) == "2"
    assert cell_to_text(2.5) == "2.5"
    assert cell_to_text(True) == "true"
    assert cell_to_text(np.int64(7)) == "7"
    assert cell_to_text(np.float64(1.0)) == "1"
    assert cell_to_text("NA") == "NA"


def test_format_number():
    assert format_number(4.0) == "4"
    assert format_number(0.25) == "0.25"
    assert format_number(-3.0) == "-3"
