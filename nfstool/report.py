"""
Salida con Rich: plan, resumen de ejecución, diagnóstico y guía de
resolución de problemas.
"""

from typing import List, Optional
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from nfsplane.core.actions import Issue, IssueKind, Plan
from nfsplane.core.errors import NfsPlaneError

from nfstool.host.access import AccessResult
from nfstool.host.diagnostics import DiagnosticReport
from nfstool.host.runner import RunReport


_ISSUE_STYLE = {
    IssueKind.CONFLICT: ("yellow", "⚠ Conflicto"),
    IssueKind.RECOVERABLE: ("yellow", "⚠ Recuperable"),
    IssueKind.NOTE: ("cyan", "ℹ Nota"),
}


def print_error(console: Console, error: NfsPlaneError) -> None:
    console.print(f"[red]❌ {escape(str(error))}[/red]")


def render_issues(issues: List[Issue], console: Console) -> None:
    for issue in issues:
        color, label = _ISSUE_STYLE[issue.kind]
        console.print(f"[{color}]{label}[/{color}] {escape('[' + issue.resource + ']')} {escape(issue.message)}")
        if issue.hint:
            console.print(f"    [dim]→ {escape(issue.hint)}[/dim]")


def render_plan(plan: Plan, console: Console, title: str = "Plan") -> None:
    """Tabla de acciones pendientes (no muta nada)"""
    if plan.is_empty:
        console.print("[green]✓ Sin cambios: el host coincide con la declaración[/green]")
    else:
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=3)
        table.add_column("Fase", style="magenta")
        table.add_column("Acción", style="cyan")
        table.add_column("Recurso", style="green")
        table.add_column("Modo", style="yellow")

        for index, action in enumerate(plan.actions, 1):
            table.add_row(
                str(index),
                action.phase.name.lower(),
                escape(str(action)),
                escape(action.target),
                "best-effort" if action.best_effort else "crítica",
            )
        console.print(table)
        console.print(f"\n[dim]Total: {len(plan.actions)} acción(es)[/dim]")

    if plan.issues:
        console.print()
        render_issues(plan.issues, console)


def render_summary(report: RunReport, console: Console) -> None:
    """Resumen final: cambios, backups, conflictos y fallos recuperables"""
    table = Table(show_header=False, box=None)
    table.add_column("Concepto", style="bold")
    table.add_column("Valor")
    table.add_row("Aplicadas", f"[green]{len(report.applied)}[/green]")
    table.add_row("Sin cambios", str(len(report.unchanged)))
    table.add_row("Omitidas", f"[yellow]{len(report.skipped)}[/yellow]" if report.skipped else "0")
    table.add_row("Conflictos", f"[yellow]{len(report.conflicts)}[/yellow]" if report.conflicts else "0")
    table.add_row("Recuperables", f"[yellow]{len(report.recoverable)}[/yellow]" if report.recoverable else "0")
    table.add_row("Backups", str(len(report.backups)))

    border = "green" if report.ok else "red"
    console.print(Panel(table, title="[bold]Resumen[/bold]", border_style=border))

    for record in report.backups:
        console.print(f"  [dim]💾 {escape(record.source)} → {escape(record.destination)}[/dim]")

    if report.issues:
        render_issues(report.issues, console)

    if report.fatal:
        console.print(f"\n[red]❌ Ejecución abortada: {escape(str(report.fatal))}[/red]")
    elif report.conflicts or report.recoverable:
        console.print("\n[yellow]⚠ Completado con incidencias (ver arriba)[/yellow]")
    else:
        console.print("\n[bold green]✅ Host convergido[/bold green]")


def _mode(value: int) -> str:
    return f"{value:04o}"


def render_diagnostics(report: DiagnosticReport, console: Console) -> None:
    console.print(Panel.fit("[bold cyan]Diagnóstico[/bold cyan]", border_style="cyan"))

    if report.role == "server":
        console.print("\n[bold]exportfs -v:[/bold]")
        if report.exports is None:
            console.print("  [yellow]⚠ No disponible[/yellow]")
        else:
            console.print(escape(report.exports.rstrip()) or "  [dim](sin exports activos)[/dim]")

    console.print("\n[bold]Montajes:[/bold]")
    if report.mounts:
        for line in report.mounts:
            console.print(f"  {escape(line)}")
    elif report.role == "client":
        console.print("  [dim](aún no montado; autofs monta al acceder)[/dim]")
    else:
        console.print("  [dim](ninguno)[/dim]")

    if report.memberships:
        console.print("\n[bold]Miembros de grupos gestionados:[/bold]")
        for group, members in report.memberships.items():
            console.print(f"  {escape(group)}: {escape(', '.join(members)) if members else '[dim](ninguno)[/dim]'}")

    for fact in report.unavailable:
        console.print(f"  [yellow]⚠ No disponible: {escape(fact)}[/yellow]")

    if report.paths:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Ruta", style="cyan")
        table.add_column("Propietario", style="green")
        table.add_column("Modo", style="yellow")
        for path, state in report.paths.items():
            if state is None:
                table.add_row(escape(path), "[red]✘ no existe[/red]", "-")
            else:
                table.add_row(escape(path), f"{state.owner}:{state.group}", _mode(state.mode))
        console.print()
        console.print(table)

    for command, output in report.remote.items():
        console.print(f"\n[bold]{command}:[/bold]")
        if output is None:
            console.print("  [yellow]⚠ No disponible[/yellow]")
        else:
            console.print(escape(output.rstrip()))


def render_access(results: List[AccessResult], console: Console) -> None:
    table = Table(title="Pruebas de acceso", show_header=True, header_style="bold cyan")
    table.add_column("Usuario", style="cyan")
    table.add_column("Crear", justify="center")
    table.add_column("Listar", justify="center")
    table.add_column("Leer referencia", justify="center")
    table.add_column("Identidad", style="dim")

    def mark(value: Optional[bool]) -> str:
        if value is None:
            return "[dim]-[/dim]"
        return "[green]✔[/green]" if value else "[red]✘[/red]"

    for result in results:
        table.add_row(
            result.user,
            mark(result.created),
            mark(result.listed),
            mark(result.read_reference),
            escape(result.identity.strip()[:60]),
        )
    console.print(table)

    for result in results:
        if not result.created and result.detail:
            console.print(f"  [dim]{result.user}: {escape(result.detail.strip())}[/dim]")


def render_hints(
    console: Console,
    mount_path: str = "/mnt/hr-data",
    remote_path: str = "/srv/hr",
    group: str = "nfs-hr",
    server: str = "<servidor>",
) -> None:
    """Guía de causas comunes cuando un usuario no puede escribir en el share"""
    text = (
        f"[bold]1) Permisos del directorio en el servidor[/bold]\n"
        f"   Con {remote_path} en root:{group} y modo 2775 solo root y los miembros de {group}\n"
        f"   pueden escribir. Opciones:\n"
        f"   a) usermod -a -G {group} <usuario>\n"
        f"   b) chmod 2777 {remote_path}   (da escritura a 'others'; no recomendado)\n"
        f"   c) setfacl -m u:<usuario>:rwx {remote_path}\n\n"
        f"[bold]2) UID/GID distintos entre servidor y cliente[/bold]\n"
        f"   Ejecuta 'id <usuario>' en ambos lados. En NFSv4 revisa rpc.idmapd y el dominio.\n\n"
        f"[bold]3) Opciones del export[/bold]\n"
        f"   Revisa /etc/exports en el servidor (ro, root_squash) para {remote_path}.\n\n"
        f"[bold]4) SELinux[/bold]\n"
        f"   getenforce ; restorecon -Rv {remote_path} ; semanage fcontext ...\n\n"
        f"[bold]5) autofs[/bold]\n"
        f"   Monta al acceder. Para forzar: systemctl restart autofs  o  automount -f -v\n\n"
        f"[bold]6) Comandos útiles[/bold]\n"
        f"   Cliente:  id <usuario> ; mount | grep {mount_path} ; showmount -e {server} ;\n"
        f"             rpcinfo -p {server} ; journalctl -u autofs -f\n"
        f"   Servidor: ls -ld {remote_path} ; stat -c '%U:%G %a' {remote_path} ; getenforce ;\n"
        f"             exportfs -v ; journalctl -u nfs-server -f"
    )
    console.print(Panel(text, title="[bold]Causas comunes y siguientes pasos[/bold]", border_style="yellow"))
