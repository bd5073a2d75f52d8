"""Domain exceptions shared by services and routers."""


class AdminRequiredError(PermissionError):
    """Raised when a non-admin principal calls an admin-only operation."""

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class SheetSourceError(ValueError):
    """The spreadsheet or CSV source is malformed, unreachable or empty."""


class MalformedPageError(ValueError):
    """A stored page does not have the shape an operation expects."""
