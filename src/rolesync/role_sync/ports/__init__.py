"""Ports (interfaces) for the role sync bounded context.

Ports define the contracts for repositories without specifying
implementation details. This allows for dependency inversion
and makes the domain layer independent of infrastructure.
"""

from role_sync.ports.exceptions import (
    IdentityNotFoundError,
    InvalidInvocationContextError,
    InvalidRoleError,
    PrivilegeDeniedError,
    ProfileNotFoundError,
    RoleSyncError,
)
from role_sync.ports.repositories import IIdentityRepository, IProfileRepository

__all__ = [
    "IIdentityRepository",
    "IProfileRepository",
    "IdentityNotFoundError",
    "InvalidInvocationContextError",
    "InvalidRoleError",
    "PrivilegeDeniedError",
    "ProfileNotFoundError",
    "RoleSyncError",
]
