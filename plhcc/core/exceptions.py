"""Error taxonomy for imports, exports and the store.

Only whole-file parse failures and missing identity propagate to the caller.
Row-level problems are recorded on the import result instead of raised.
"""

from __future__ import annotations


class PLHError(Exception):
    """Base class for application errors."""


class CSVParseError(PLHError):
    """The uploaded file could not be turned into a header row plus data rows."""


class ReferenceNotFoundError(PLHError):
    """A row names a parent record that does not exist."""

    def __init__(self, resource: str, name: str):
        self.resource = resource
        self.name = name
        super().__init__(f"{resource} not found: {name}")


class NotAuthenticatedError(PLHError):
    """No user id is available to scope queries."""

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail)


class ExportDataError(PLHError):
    """Loading the collections for an export failed."""

    def __init__(self, detail: str | None = None):
        message = "Failed to load export data"
        if detail:
            message += f": {detail}"
        super().__init__(message)
