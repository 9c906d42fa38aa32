"""sheet-orders: map arbitrary order spreadsheets onto a fixed shipping template."""

__version__ = "0.1.0"
