"""
Módulo Tools - Utilidades compartidas para ejecutar comandos del sistema
"""

import subprocess
from pathlib import Path
from typing import List, Optional
from rich.console import Console

from nfsplane.core.errors import HostCommandError


def run_command(
    command: List[str],
    cwd: Optional[Path] = None,
    timeout: int = 120,
    console: Optional[Console] = None
) -> tuple[bool, str, str]:
    """
    Ejecuta un comando del sistema sin lanzar excepciones

    Args:
        command: Lista con comando y argumentos
        cwd: Directorio de trabajo
        timeout: Timeout en segundos
        console: Console de Rich para salida

    Returns:
        Tuple (success, stdout, stderr)
    """
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False
        )
        return result.returncode == 0, result.stdout, result.stderr
    except subprocess.TimeoutExpired:
        if console:
            console.print(f"[red]✘ Timeout ejecutando: {' '.join(command)}[/red]")
        return False, "", "Timeout"
    except FileNotFoundError:
        if console:
            console.print(f"[red]✘ Comando no encontrado: {command[0]}[/red]")
        return False, "", f"Comando no encontrado: {command[0]}"


def run_checked(command: List[str], timeout: int = 120) -> str:
    """
    Ejecuta un comando que muta el host; lanza HostCommandError si falla.

    Returns:
        stdout del comando
    """
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False
        )
    except subprocess.TimeoutExpired:
        raise HostCommandError(command, None, "Timeout")
    except FileNotFoundError:
        raise HostCommandError(command, None, f"Comando no encontrado: {command[0]}")
    if result.returncode != 0:
        output = ((result.stderr or "") + (result.stdout or "")).strip()
        raise HostCommandError(command, result.returncode, output)
    return result.stdout
