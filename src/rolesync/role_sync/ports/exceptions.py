"""Domain exceptions for the role sync bounded context.

Every failure propagates to the caller and aborts the enclosing
transaction; nothing here is retried. Storage-layer constraint violations
are not wrapped and surface as ``sqlalchemy.exc.IntegrityError``.
"""


class RoleSyncError(Exception):
    """Base exception for role sync failures."""

    pass


class InvalidInvocationContextError(RoleSyncError):
    """Raised when a reaction runs outside its row-level mutation event.

    Guards against calling reaction logic directly. The message names the
    offending reaction.
    """

    def __init__(self, reaction: str, expected: str | None = None):
        self.reaction = reaction
        self.expected = expected
        message = f"{reaction} can only be called from a trigger"
        if expected is not None:
            message = f"{message} (expected {expected} row event)"
        super().__init__(message)


class PrivilegeDeniedError(RoleSyncError):
    """Raised when the claims payload is written without the claims grant."""

    def __init__(self, principal: str, operation: str):
        self.principal = principal
        self.operation = operation
        super().__init__(
            f"{principal} is not allowed to {operation} the claims payload"
        )


class InvalidRoleError(RoleSyncError, ValueError):
    """Raised when a role outside the vocabulary is written to a profile."""

    pass


class ProfileNotFoundError(RoleSyncError):
    """Raised when a profile does not exist."""

    pass


class IdentityNotFoundError(RoleSyncError):
    """Raised when an identity record does not exist."""

    pass
