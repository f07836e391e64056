"""
nfsplane - motor de reconciliación para servidores NFS y clientes autofs.

Núcleo puro (modelos, estado, plan); la interacción con el host vive en nfstool.
"""

__version__ = "1.0.0"
