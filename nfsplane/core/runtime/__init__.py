"""
Runtime: tipos de estado actual del host y resolución de rutas.
"""

from nfsplane.core.runtime.resolver import declaration_path, backup_dir_override
from nfsplane.core.runtime.state import (
    HostSnapshot,
    GroupState,
    UserState,
    PathState,
    ServiceState,
    Presence,
    LabelState,
)

__all__ = [
    "declaration_path",
    "backup_dir_override",
    "HostSnapshot",
    "GroupState",
    "UserState",
    "PathState",
    "ServiceState",
    "Presence",
    "LabelState",
]
