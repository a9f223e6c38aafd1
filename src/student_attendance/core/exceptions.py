class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced user or record does not exist."""


class StoreError(DomainError):
    """Raised when the underlying persistence layer fails."""


class DuplicateKeyError(StoreError):
    """Raised when an insert collides with a unique key."""
