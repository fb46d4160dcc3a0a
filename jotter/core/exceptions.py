"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class ConflictError(ApplicationError):
    """Raised when there is a state conflict."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class DatabaseError(ApplicationError):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")


class BackupFormatError(ApplicationError):
    """Raised when a backup stream is corrupt or written by an unknown version."""

    def __init__(self, message: str = "Backup file could not be read") -> None:
        super().__init__(message, code="BAK_INVALID_FORMAT")


class LegacyFormatError(ApplicationError):
    """Raised when a single legacy note file cannot be parsed."""

    def __init__(self, message: str = "Legacy note could not be read") -> None:
        super().__init__(message, code="LEG_INVALID_FORMAT")


class ExportError(ApplicationError):
    """Raised when rendering a note to a shareable file fails."""

    def __init__(self, message: str = "Export failed") -> None:
        super().__init__(message, code="EXP_FAILED")
