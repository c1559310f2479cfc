class LabourLoggerError(Exception):
    """Base exception for business rule violations."""


class ValidationError(LabourLoggerError):
    """Raised when a submitted entry or record is invalid."""


class UnknownRecordError(LabourLoggerError):
    """Raised when an id does not match any stored record."""


class DuplicateProjectError(LabourLoggerError):
    """Raised when a project code already exists (case-insensitive)."""


class EntryLockedError(LabourLoggerError):
    """Raised when a locked entry would be changed outside a week sweep."""


class ImportFormatError(LabourLoggerError):
    """Raised when a CSV import cannot be read at all."""


class RemoteApiError(LabourLoggerError):
    """Raised when a call to the remote entries API fails."""
