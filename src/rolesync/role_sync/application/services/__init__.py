"""Application services for the role sync bounded context.

Application services orchestrate domain aggregates and repositories to
fulfill use cases. They own transaction boundaries.
"""

from role_sync.application.services.claims_service import ClaimsService
from role_sync.application.services.profile_service import ProfileService

__all__ = [
    "ClaimsService",
    "ProfileService",
]
