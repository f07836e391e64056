"""
Core: lógica de reconciliación pura.

Este paquete NO accede al host: ni subprocess, ni /etc, ni identidades.
Define modelos, tipos de estado, contratos y el Reconciler; las
implementaciones que tocan el sistema viven en nfstool.
"""

from nfsplane.core.errors import (
    NfsPlaneError,
    ConfigError,
    ValidationError,
    PrivilegeError,
    MissingArgumentError,
    HostCommandError,
    ActionError,
    FatalActionError,
    RecoverableActionError,
    ConflictError,
)

__all__ = [
    "NfsPlaneError",
    "ConfigError",
    "ValidationError",
    "PrivilegeError",
    "MissingArgumentError",
    "HostCommandError",
    "ActionError",
    "FatalActionError",
    "RecoverableActionError",
    "ConflictError",
]
