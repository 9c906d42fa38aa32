from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Canonical order-record fields.

The registry is fixed at import time. Its order is the display order of the
mapping editor and of the result table; it carries no other meaning.
"""

__all__ = [
    "ValueKind",
    "Operation",
    "FieldConfig",
    "FIELD_CONFIGS",
    "for_each_field",
    "get_field",
    "allowed_operations",
    "OPERATION_LABELS",
]


class ValueKind(Enum):
    """Value kind of a canonical field."""
    TEXT = "text"
    NUMERIC = "numeric"


class Operation(Enum):
    """How several source columns combine into one field value.

    Text fields only accept CONCAT; numeric fields accept the four arithmetic
    operators, folded left-to-right over the selected columns.
    """
    CONCAT = "concat"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"


OPERATION_LABELS: dict[Operation, str] = {
    Operation.CONCAT: "拼接",
    Operation.ADD: "加",
    Operation.SUBTRACT: "减",
    Operation.MULTIPLY: "乘",
    Operation.DIVIDE: "除",
}

_ALLOWED_OPERATIONS: dict[ValueKind, tuple[Operation, ...]] = {
    ValueKind.TEXT: (Operation.CONCAT,),
    ValueKind.NUMERIC: (
        Operation.ADD,
        Operation.SUBTRACT,
        Operation.MULTIPLY,
        Operation.DIVIDE,
    ),
}


@dataclass(frozen=True)
class FieldConfig:
    key: str  # 字段标识, e.g. recipient_name
    label: str  # 显示名称
    kind: ValueKind

    @property
    def operations(self) -> tuple[Operation, ...]:
        return _ALLOWED_OPERATIONS[self.kind]

    @property
    def default_operation(self) -> Operation:
        return self.operations[0]


FIELD_CONFIGS: tuple[FieldConfig, ...] = (
    FieldConfig("recipient_name", "收件人姓名", ValueKind.TEXT),
    FieldConfig("recipient_phone", "收件人手机号", ValueKind.TEXT),
    FieldConfig("delivery_address", "收货地址", ValueKind.TEXT),
    FieldConfig("product_name", "商品名称", ValueKind.TEXT),
    FieldConfig("product_spec", "商品规格", ValueKind.TEXT),
    FieldConfig("quantity", "商品数量", ValueKind.NUMERIC),
    FieldConfig("remarks", "备注", ValueKind.TEXT),
)

_BY_KEY: dict[str, FieldConfig] = {f.key: f for f in FIELD_CONFIGS}


def for_each_field() -> tuple[FieldConfig, ...]:
    return FIELD_CONFIGS


def get_field(key: str) -> FieldConfig:
    """Return the FieldConfig for ``key``.

    Raises:
        KeyError: if ``key`` is not a canonical field
    """
    return _BY_KEY[key]


def allowed_operations(kind: ValueKind) -> tuple[Operation, ...]:
    return _ALLOWED_OPERATIONS[kind]
