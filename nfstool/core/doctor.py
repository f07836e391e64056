"""
Módulo Doctor - Verificación de herramientas y requisitos del sistema
"""

import shutil
import subprocess
from typing import Dict, List, Optional, Tuple
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from .permissions import is_root


SERVER_TOOLS = ["getent", "groupadd", "useradd", "usermod", "gpasswd", "systemctl", "exportfs"]
CLIENT_TOOLS = ["getent", "groupadd", "useradd", "usermod", "gpasswd", "systemctl", "rpm", "dnf"]
OPTIONAL_TOOLS = ["getenforce", "semanage", "restorecon", "showmount", "rpcinfo", "nfsstat", "firewall-cmd"]


def tool_available(tool_name: str) -> bool:
    """Comprueba si un comando está en el PATH"""
    return shutil.which(tool_name) is not None


def check_tool(tool_name: str) -> Tuple[bool, Optional[str]]:
    """
    Verifica si una herramienta está instalada y disponible

    Args:
        tool_name: Nombre del comando a verificar

    Returns:
        Tuple (is_available, version_info)
    """
    if not tool_available(tool_name):
        return False, None

    version_info = None
    try:
        version_result = subprocess.run(
            [tool_name, "--version"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False
        )
        if version_result.returncode == 0 and version_result.stdout:
            version_info = version_result.stdout.split("\n")[0][:50]
    except (OSError, subprocess.TimeoutExpired):
        pass

    return True, version_info


def run_doctor(console: Console, required_tools: Optional[List[str]] = None) -> Dict[str, bool]:
    """
    Ejecuta verificación de herramientas y privilegios (doctor)

    Args:
        console: Console de Rich para salida
        required_tools: Herramientas obligatorias (por defecto, las del servidor y el cliente)

    Returns:
        Dict con resultados de verificación
    """
    if required_tools is None:
        required_tools = sorted(set(SERVER_TOOLS) | set(CLIENT_TOOLS))

    console.print(Panel.fit("[bold cyan]Doctor - Verificación del Sistema[/bold cyan]", border_style="cyan"))

    results = {}

    tool_table = Table(show_header=True, header_style="bold cyan")
    tool_table.add_column("Herramienta", style="cyan")
    tool_table.add_column("Estado", style="green")
    tool_table.add_column("Versión", style="dim")

    for tool in required_tools + OPTIONAL_TOOLS:
        available, version = check_tool(tool)
        if available:
            status = "[green]✔ Disponible[/green]"
        elif tool in OPTIONAL_TOOLS:
            status = "[yellow]⚠ Opcional, no encontrado[/yellow]"
        else:
            status = "[red]✘ No encontrado[/red]"
        tool_table.add_row(tool, status, version or "[dim]N/A[/dim]")
        results[f"tool_{tool}"] = available

    console.print(tool_table)

    results["root"] = is_root()
    root_status = "[green]✔ root[/green]" if results["root"] else "[yellow]⚠ sin root (solo plan/status)[/yellow]"
    console.print(f"\n[bold]Privilegios:[/bold] {root_status}")

    missing = [tool for tool in required_tools if not results.get(f"tool_{tool}", False)]
    if missing:
        console.print("\n[yellow]⚠️ Algunas herramientas faltan[/yellow]")
        console.print(f"[dim]Faltan: {', '.join(missing)}[/dim]")
    else:
        console.print("\n[bold green]✅ Todas las herramientas requeridas están disponibles[/bold green]")

    return results
