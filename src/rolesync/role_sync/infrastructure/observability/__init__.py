"""Domain-Oriented Observability for role sync infrastructure.

Probes for repository operations and reactions following Domain-Oriented
Observability patterns.
"""

from role_sync.infrastructure.observability.reaction_probe import (
    DefaultReactionProbe,
    ReactionProbe,
)
from role_sync.infrastructure.observability.repository_probe import (
    DefaultIdentityRepositoryProbe,
    DefaultProfileRepositoryProbe,
    IdentityRepositoryProbe,
    ProfileRepositoryProbe,
)

__all__ = [
    "ReactionProbe",
    "DefaultReactionProbe",
    "IdentityRepositoryProbe",
    "DefaultIdentityRepositoryProbe",
    "ProfileRepositoryProbe",
    "DefaultProfileRepositoryProbe",
]
