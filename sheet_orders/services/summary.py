from __future__ import annotations

from ..models.conversion import ConversionResult

"""SUMMARY line rendering for the CLI.

Format:
SUMMARY rows={rows} duplicates={duplicate rows} unresolved={values} elapsed_sec={elapsed}
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(seconds: float) -> str:
    """Render elapsed seconds without scientific notation or trailing zeros."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ConversionResult, elapsed_seconds: float) -> str:
    """Render the SUMMARY line for one finished run.

    Examples:
        >>> from sheet_orders.models.conversion import ConversionResult
        >>> render_summary_line(ConversionResult.from_rows([]), 2.0)
        'SUMMARY rows=0 duplicates=0 unresolved=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={result.total_rows} "
        f"duplicates={result.duplicate_count} "
        f"unresolved={result.unresolved_count} "
        f"elapsed_sec={format_seconds(elapsed_seconds)}"
    )
