"""
Ejecución secuencial de un plan: sonda → plan → acciones → resumen.

Una acción a la vez, en orden de dependencias. Los conflictos y fallos
recuperables se acumulan para el resumen final; el primer error fatal
detiene la ejecución y el resto de acciones queda como omitido.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set
from rich.console import Console
from rich.markup import escape

from nfsplane.core.actions import Action, ActionKind, Issue, IssueKind, Plan
from nfsplane.core.errors import ConflictError, FatalActionError, RecoverableActionError
from nfsplane.core.infra.contracts import HostContract
from nfsplane.core.models import BackupRecord, TargetState
from nfsplane.core.reconciler import Reconciler

from .backup import BackupManager
from .executor import ActionExecutor, ActionResult
from .probe import StateProbe


@dataclass
class RunReport:
    applied: List[ActionResult] = field(default_factory=list)
    unchanged: List[ActionResult] = field(default_factory=list)
    skipped: List[Action] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    backups: List[BackupRecord] = field(default_factory=list)
    fatal: Optional[FatalActionError] = None

    @property
    def conflicts(self) -> List[Issue]:
        return [i for i in self.issues if i.kind == IssueKind.CONFLICT]

    @property
    def recoverable(self) -> List[Issue]:
        return [i for i in self.issues if i.kind == IssueKind.RECOVERABLE]

    @property
    def ok(self) -> bool:
        return self.fatal is None


def _blocked(action: Action, conflicted: Set[str]) -> bool:
    """Una acción queda omitida si su recurso, o el share que exporta, entró en conflicto"""
    if action.target in conflicted:
        return True
    line = action.params.get("line") if action.kind == ActionKind.APPEND_LINE else None
    return bool(line) and line.split(" ", 1)[0] in conflicted


def build_plan(target: TargetState, host: HostContract) -> Plan:
    """Consulta el host y calcula el plan (solo lectura)"""
    snapshot = StateProbe(host).snapshot(target)
    return Reconciler().reconcile(target, snapshot)


def apply_plan(plan: Plan, executor: ActionExecutor, console: Optional[Console] = None) -> RunReport:
    """
    Aplica el plan acción por acción

    Args:
        plan: Plan ordenado del Reconciler
        executor: ActionExecutor ligado al host
        console: Console de Rich; cada decisión se muestra al producirse

    Returns:
        RunReport con aplicadas, sin cambios, omitidas, incidencias y backups
    """
    report = RunReport(issues=list(plan.issues))
    conflicted: Set[str] = set()
    actions = plan.actions

    for index, action in enumerate(actions):
        if _blocked(action, conflicted):
            report.skipped.append(action)
            if console:
                console.print(f"  [dim]↷ Omitido (conflicto previo): {escape(str(action))}[/dim]")
            continue
        try:
            result = executor.execute(action)
        except ConflictError as e:
            conflicted.add(action.target)
            report.issues.append(Issue(IssueKind.CONFLICT, action.target, str(e)))
            if console:
                console.print(f"  [yellow]⚠[/yellow] Conflicto: {escape(str(e))}")
            continue
        except RecoverableActionError as e:
            report.issues.append(Issue(IssueKind.RECOVERABLE, action.target, str(e)))
            if console:
                console.print(f"  [yellow]⚠[/yellow] {escape(str(action))} falló (se continúa): {escape(str(e))}")
            continue
        except FatalActionError as e:
            report.fatal = e
            report.skipped.extend(actions[index + 1:])
            if console:
                console.print(f"  [red]❌ {escape(str(action))} falló: {escape(str(e))}[/red]")
                console.print("  [red]Abortando: no se aplicarán más acciones[/red]")
            break

        if result.changed:
            report.applied.append(result)
            if console:
                console.print(f"  [green]✓[/green] {escape(str(action))}")
        else:
            report.unchanged.append(result)
            if console:
                console.print(f"  [dim]= {escape(str(action))} ({escape(result.message or 'sin cambios')})[/dim]")

    report.backups = list(executor.backups.records)
    return report


def provision(target: TargetState, host: HostContract, console: Optional[Console] = None) -> RunReport:
    """Ciclo completo: snapshot, reconciliación y aplicación"""
    probe = StateProbe(host)
    plan = Reconciler().reconcile(target, probe.snapshot(target))

    for issue in plan.issues:
        if console and issue.kind == IssueKind.CONFLICT:
            console.print(f"  [yellow]⚠[/yellow] Conflicto: {escape(issue.message)}")

    if plan.is_empty:
        if console:
            console.print("  [green]✓[/green] El host ya está en el estado declarado; no hay acciones")
        return RunReport(issues=list(plan.issues))

    backups = BackupManager(target.backup_dir, console)
    executor = ActionExecutor(host, backups, probe=probe, console=console)
    return apply_plan(plan, executor, console)
