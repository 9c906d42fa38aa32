from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the unresolved-value log.

One record per field value that could not be aggregated during conversion
(non-numeric operand, division by zero). The row stays in the result; the
record only documents why the field is unresolved.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: source spreadsheet file name
        row: spreadsheet row number (1-based, header is row 1). -1 when unknown
        field: canonical field key
        error_type: UPPER_SNAKE_CASE classification
        message: human readable detail
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int
    field: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, field: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 只输出固定字段
        return json.dumps(asdict(self), ensure_ascii=False)
