"""Exception types raised by the Squadra services."""

from typing import Optional


class MatchStateError(ValueError):
    """An operation is not valid in the current match state."""


class PlayerValidationError(Exception):
    """Custom exception for player validation errors."""
    pass


class CSVImportError(ValueError):
    """A CSV file could not be imported; nothing from it was applied."""

    def __init__(self, message: str, row: Optional[int] = None):
        super().__init__(f"Riga {row}: {message}" if row is not None else message)
        self.row = row
        self.reason = message
