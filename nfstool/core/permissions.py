"""
Módulo Permissions - Verificación de privilegios
"""

import os
from typing import Optional
from rich.console import Console

from nfsplane.core.errors import PrivilegeError


def is_root() -> bool:
    return os.geteuid() == 0


def require_root(console: Optional[Console] = None) -> None:
    """
    Exige permisos de root antes de cualquier mutación

    Args:
        console: Console de Rich para mostrar el error

    Raises:
        PrivilegeError si no se ejecuta como root
    """
    if is_root():
        return

    if console:
        console.print("[red]✘ Se requieren permisos de root[/red]")
        console.print("[yellow]Ejecuta con sudo[/yellow]")

    raise PrivilegeError("Este comando debe ejecutarse como root")
