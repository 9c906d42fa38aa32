from __future__ import annotations

import pytest

from sheet_orders.models.field_schema import (
    FIELD_CONFIGS,
    Operation,
    ValueKind,
    allowed_operations,
    for_each_field,
    get_field,
)


def test_registry_order_is_fixed():
    keys = [f.key for f in for_each_field()]
    assert keys == [
        "recipient_name",
        "recipient_phone",
        "delivery_address",
        "product_name",
        "product_spec",
        "quantity",
        "remarks",
    ]
    assert for_each_field() is FIELD_CONFIGS


def test_keys_are_unique():
    keys = [f.key for f in FIELD_CONFIGS]
    assert len(keys) == len(set(keys))


def test_quantity_is_the_only_numeric_field():
    numeric = [f.key for f in FIELD_CONFIGS if f.kind is ValueKind.NUMERIC]
    assert numeric == ["quantity"]


def test_operations_by_kind():
    assert allowed_operations(ValueKind.TEXT) == (Operation.CONCAT,)
    assert allowed_operations(ValueKind.NUMERIC) == (
        Operation.ADD,
        Operation.SUBTRACT,
        Operation.MULTIPLY,
        Operation.DIVIDE,
    )
    assert get_field("quantity").default_operation is Operation.ADD
    assert get_field("remarks").default_operation is Operation.CONCAT


def test_get_field_unknown_key():
    with pytest.raises(KeyError):
        get_field("sku")
