"""
Aplicación CLI unificada de nfsplane.

Solo compone submódulos y comandos; la lógica vive en nfsplane.core y nfstool.
"""

from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from nfsplane import __version__
from nfstool.client.cli import app as client_app
from nfstool.core.doctor import CLIENT_TOOLS, SERVER_TOOLS, run_doctor
from nfstool.server.cli import app as server_app

# .env del proyecto (NFSPLANE_CONFIG, NFSPLANE_BACKUP_DIR)
_ROOT = Path(__file__).resolve().parents[2]
_env = _ROOT / ".env"
if _env.exists():
    load_dotenv(_env)

app = typer.Typer(
    name="nfsplane",
    help="nfsplane - Provisión idempotente de servidores NFS y clientes autofs",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

app.add_typer(server_app, name="server", help="Servidor NFS (grupos, shares, exports, servicios)")
app.add_typer(client_app, name="client", help="Cliente autofs (mapa directo, montaje bajo demanda)")


@app.command()
def doctor(
    role: str = typer.Option("all", "--role", "-r", help="server | client | all"),
):
    """Verifica herramientas del sistema y privilegios"""
    if role == "server":
        required = list(SERVER_TOOLS)
    elif role == "client":
        required = list(CLIENT_TOOLS)
    else:
        required = sorted(set(SERVER_TOOLS) | set(CLIENT_TOOLS))
    results = run_doctor(console, required)
    missing = [tool for tool in required if not results.get(f"tool_{tool}", False)]
    if missing:
        raise typer.Exit(code=1)


@app.command()
def version():
    """Muestra la versión de nfsplane"""
    console.print(Panel.fit(
        "[bold cyan]nfsplane[/bold cyan]\n"
        "[dim]Provisión idempotente de NFS + autofs[/dim]\n\n"
        f"[bold]Versión:[/bold] {__version__}\n"
        "[bold]Roles:[/bold] server, client",
        border_style="cyan"
    ))


def main():
    app()


if __name__ == "__main__":
    main()
