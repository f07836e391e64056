"""
Módulo CLI del servidor NFS
Grupos, usuarios, directorios compartidos, SELinux, /etc/exports y servicios
"""

import typer
from pathlib import Path
from rich.console import Console
from rich.panel import Panel
from typing import Optional

from nfsplane.core.errors import NfsPlaneError
from nfstool.core.permissions import require_root
from nfstool.declarative.loader import DeclarationLoader
from nfstool.host.diagnostics import DiagnosticCollector
from nfstool.host.runner import build_plan, provision
from nfstool.host.system import SystemHost
from nfstool.report import print_error, render_diagnostics, render_plan, render_summary

app = typer.Typer(
    name="server",
    help=(
        "Provisión del servidor NFS\n\n"
        "Lleva el host al estado declarado: grupo compartido con GID estable,\n"
        "usuarios, directorios exportados, contexto SELinux, /etc/exports y\n"
        "servicios rpcbind/nfs-server. Ejecutarlo dos veces no cambia nada.\n\n"
        "⚠️  'apply' requiere permisos de root."
    ),
    add_completion=False,
    no_args_is_help=True
)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="Archivo declarativo (por defecto NFSPLANE_CONFIG o el fixture)")


def _target(config: Optional[Path]):
    return DeclarationLoader(config, console).server().target()


@app.command()
def plan(config: Optional[Path] = ConfigOption):
    """
    Muestra las acciones que 'apply' ejecutaría (solo lectura)
    """
    console.print(Panel.fit("[bold cyan]Servidor NFS - Plan[/bold cyan]", border_style="cyan"))
    try:
        target = _target(config)
        result = build_plan(target, SystemHost())
    except NfsPlaneError as e:
        print_error(console, e)
        raise typer.Exit(code=e.exit_code)
    render_plan(result, console, title="Acciones pendientes (servidor)")


@app.command()
def apply(config: Optional[Path] = ConfigOption):
    """
    Reconcilia el servidor NFS con la declaración

    Hace backup de /etc/exports antes de modificarlo, añade solo las
    líneas que falten y refresca los exports si hubo cambios.
    """
    console.print(Panel.fit("[bold cyan]Servidor NFS - Apply[/bold cyan]", border_style="cyan"))
    try:
        require_root(console)
        target = _target(config)
        host = SystemHost()
        report = provision(target, host, console)
    except NfsPlaneError as e:
        print_error(console, e)
        raise typer.Exit(code=e.exit_code)

    console.print()
    render_summary(report, console)
    if report.fatal:
        raise typer.Exit(code=report.fatal.exit_code)

    console.print()
    render_diagnostics(DiagnosticCollector(host).collect(target), console)


@app.command()
def status(config: Optional[Path] = ConfigOption):
    """
    Diagnóstico del servidor: exports activos, miembros y permisos (solo lectura)
    """
    try:
        target = _target(config)
    except NfsPlaneError as e:
        print_error(console, e)
        raise typer.Exit(code=e.exit_code)
    render_diagnostics(DiagnosticCollector(SystemHost()).collect(target), console)
