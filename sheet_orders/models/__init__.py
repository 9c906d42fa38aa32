"""Domain models for the sheet-orders import tool.

This package holds the canonical field registry, the column/mapping snapshot
types and the conversion result types shared by the session and the backend.
"""

from .conversion import ConversionResult, Row, SessionState
from .error_record import ErrorRecord
from .field_schema import (
    FIELD_CONFIGS,
    FieldConfig,
    Operation,
    ValueKind,
    allowed_operations,
    for_each_field,
    get_field,
)
from .mapping import ColumnDescriptor, FieldMapping, FieldSelection, Mapping

__all__ = [
    # Field registry
    "FIELD_CONFIGS",
    "FieldConfig",
    "Operation",
    "ValueKind",
    "allowed_operations",
    "for_each_field",
    "get_field",
    # Mapping snapshot
    "ColumnDescriptor",
    "FieldMapping",
    "FieldSelection",
    "Mapping",
    # Results
    "ConversionResult",
    "ErrorRecord",
    "Row",
    "SessionState",
]
