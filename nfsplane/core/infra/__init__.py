"""
Infra: contratos que deben implementar los adaptadores del host.
"""

from nfsplane.core.infra.contracts import HostContract

__all__ = ["HostContract"]
