from __future__ import annotations

import re

import pytest

from sheet_orders.models.conversion import ConversionResult, Row
from sheet_orders.services.summary import format_seconds, render_summary_line

SUMMARY_RE = re.compile(r"^SUMMARY rows=\d+ duplicates=\d+ unresolved=\d+ elapsed_sec=[0-9.]+$")


def test_summary_line_fields():
    rows = [
        Row(recipient_name="a", group_id=1),
        Row(recipient_name="a", group_id=1),
        Row(recipient_name="b", unresolved=frozenset({"quantity"})),
    ]
    line = render_summary_line(ConversionResult.from_rows(rows, duplicate_count=2), 1.25)
    assert line == "SUMMARY rows=3 duplicates=2 unresolved=1 elapsed_sec=1.25"
    assert SUMMARY_RE.match(line)


@pytest.mark.parametrize(
    "seconds,text",
    [(0, "0"), (2.0, "2"), (0.5, "0.5"), (1.23456, "1.235"), (0.000123, "0.000123")],
)
def test_format_seconds(seconds, text):
    assert format_seconds(seconds) == text
    assert "e" not in text
