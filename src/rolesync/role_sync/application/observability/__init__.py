"""Domain-Oriented Observability for the role sync application layer.

Probes for application service operations following Domain-Oriented Observability patterns.
"""

from role_sync.application.observability.claims_service_probe import (
    ClaimsServiceProbe,
    DefaultClaimsServiceProbe,
)
from role_sync.application.observability.profile_service_probe import (
    DefaultProfileServiceProbe,
    ProfileServiceProbe,
)

__all__ = [
    "ClaimsServiceProbe",
    "DefaultClaimsServiceProbe",
    "ProfileServiceProbe",
    "DefaultProfileServiceProbe",
]
