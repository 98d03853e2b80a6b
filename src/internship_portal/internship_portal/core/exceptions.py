class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidTransitionError(ValidationError):
    """Raised when a status change is not allowed from the current status."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class StaleRecordError(DomainError):
    """Raised when a record changed between read and conditional write."""


class ExternalServiceError(Exception):
    """Base exception for failures of the database or blob storage."""


class StoreError(ExternalServiceError):
    """Raised when a document store read/write fails."""


class StorageError(ExternalServiceError):
    """Raised when a blob upload/download/delete fails."""
