"""
Módulo CLI del cliente autofs
Paquete autofs, usuarios, mapa directo, montaje bajo demanda y pruebas de acceso
"""

import typer
from pathlib import Path
from rich.console import Console
from rich.panel import Panel
from typing import Optional

from nfsplane.core.errors import MissingArgumentError, NfsPlaneError
from nfstool.core.permissions import require_root
from nfstool.declarative.loader import DeclarationLoader
from nfstool.host.access import run_access_tests
from nfstool.host.diagnostics import DiagnosticCollector
from nfstool.host.runner import build_plan, provision
from nfstool.host.system import SystemHost
from nfstool.report import (
    print_error,
    render_access,
    render_diagnostics,
    render_hints,
    render_plan,
    render_summary,
)

app = typer.Typer(
    name="client",
    help=(
        "Provisión de clientes autofs\n\n"
        "Instala autofs, ajusta usuarios y membresías, referencia el mapa\n"
        "directo en auto.master y regenera el mapa apuntando al servidor NFS.\n"
        "Los shares se montan al acceder.\n\n"
        "⚠️  'apply' y 'test-access' requieren permisos de root."
    ),
    add_completion=False,
    no_args_is_help=True
)
console = Console()

ServerArgument = typer.Argument(None, help="Hostname o IP del servidor NFS")
ConfigOption = typer.Option(None, "--config", "-c", help="Archivo declarativo (por defecto NFSPLANE_CONFIG o el fixture)")


def _require_server(server: Optional[str]) -> str:
    if not server or not server.strip():
        console.print("[yellow]Uso: nfsplane client <comando> SERVER[/yellow]")
        raise MissingArgumentError("Falta el servidor NFS (hostname o IP)")
    return server.strip()


def _client(config: Optional[Path]):
    return DeclarationLoader(config, console).client()


def _target(config: Optional[Path], server: str):
    try:
        return _client(config).target(server)
    except ValueError as e:
        raise MissingArgumentError(str(e)) from e


@app.command()
def plan(server: Optional[str] = ServerArgument, config: Optional[Path] = ConfigOption):
    """
    Muestra las acciones que 'apply' ejecutaría (solo lectura)
    """
    console.print(Panel.fit("[bold cyan]Cliente autofs - Plan[/bold cyan]", border_style="cyan"))
    try:
        target = _target(config, _require_server(server))
        result = build_plan(target, SystemHost())
    except NfsPlaneError as e:
        print_error(console, e)
        raise typer.Exit(code=e.exit_code)
    render_plan(result, console, title="Acciones pendientes (cliente)")


@app.command()
def apply(server: Optional[str] = ServerArgument, config: Optional[Path] = ConfigOption):
    """
    Reconcilia el cliente con la declaración

    Primero valida el argumento SERVER y después los privilegios; no se
    toca nada del host hasta pasar ambas comprobaciones.
    """
    console.print(Panel.fit("[bold cyan]Cliente autofs - Apply[/bold cyan]", border_style="cyan"))
    try:
        server = _require_server(server)
        require_root(console)
        target = _target(config, server)
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
def status(server: Optional[str] = ServerArgument, config: Optional[Path] = ConfigOption):
    """
    Diagnóstico del cliente: montajes, showmount/rpcinfo/nfsstat y permisos (solo lectura)
    """
    try:
        target = _target(config, _require_server(server))
    except NfsPlaneError as e:
        print_error(console, e)
        raise typer.Exit(code=e.exit_code)
    render_diagnostics(DiagnosticCollector(SystemHost()).collect(target), console)


@app.command("test-access")
def test_access(server: Optional[str] = ServerArgument, config: Optional[Path] = ConfigOption):
    """
    Crea, lista y lee archivos en el montaje como cada usuario declarado

    Deja un archivo de prueba por usuario dentro del share.
    """
    console.print(Panel.fit("[bold cyan]Cliente autofs - Pruebas de acceso[/bold cyan]", border_style="cyan"))
    try:
        server = _require_server(server)
        require_root(console)
        client = _client(config)
    except NfsPlaneError as e:
        print_error(console, e)
        raise typer.Exit(code=e.exit_code)

    if not client.mounts:
        console.print("[yellow]⚠️ No hay montajes declarados[/yellow]")
        return

    mount = client.mounts[0]
    users = [u.name for u in client.users]
    results = run_access_tests(SystemHost(), mount.path, users)
    render_access(results, console)

    if not all(r.created for r in results):
        console.print()
        render_hints(console, mount.path, mount.remote_path, client.groups[0].name if client.groups else "<grupo>", server)


@app.command()
def hints(config: Optional[Path] = ConfigOption):
    """
    Causas comunes cuando un usuario no puede escribir en el share
    """
    try:
        client = _client(config)
    except NfsPlaneError as e:
        print_error(console, e)
        raise typer.Exit(code=e.exit_code)
    if client.mounts:
        mount = client.mounts[0]
        group = client.groups[0].name if client.groups else "<grupo>"
        render_hints(console, mount.path, mount.remote_path, group)
    else:
        render_hints(console)
