from __future__ import annotations

"""Exception taxonomy for the sheet-orders import tool.

- InvalidMappingError: local mapping validation, never reaches a backend
- CollaboratorError and subclasses: failures reported by the spreadsheet backend
- UserCancelled: a dialog returned no selection (not a failure)
- SessionStateError and subclasses: a transition was started out of order
"""

__all__ = [
    "SheetOrdersError",
    "InvalidMappingError",
    "CollaboratorError",
    "ColumnReadError",
    "ConversionError",
    "MergeError",
    "ExportError",
    "UserCancelled",
    "SessionStateError",
    "TransitionNotAllowedError",
    "TransitionBusyError",
]


class SheetOrdersError(Exception):
    """Base exception for the package."""


class InvalidMappingError(SheetOrdersError, ValueError):
    """Raised when a field selection cannot form a valid Mapping."""


class CollaboratorError(SheetOrdersError):
    """Base class for failures reported by the spreadsheet backend."""


class ColumnReadError(CollaboratorError):
    """Source spreadsheet could not be opened or its header row read."""


class ConversionError(CollaboratorError):
    pass


class MergeError(CollaboratorError):
    pass


class ExportError(CollaboratorError):
    pass


class UserCancelled(SheetOrdersError):
    """Raised when the host dialog returns no path."""


class SessionStateError(SheetOrdersError):
    pass


class TransitionNotAllowedError(SessionStateError):
    """The session is not in a state where the transition is permitted."""


class TransitionBusyError(SessionStateError):
    """A transition of the same kind is still outstanding."""
