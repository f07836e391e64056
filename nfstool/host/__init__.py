"""
Host: sonda de estado, backups, ejecución de acciones y diagnóstico.
"""

from .backup import BackupManager
from .diagnostics import DiagnosticCollector, DiagnosticReport
from .executor import ActionExecutor, ActionResult
from .probe import StateProbe
from .runner import RunReport, apply_plan, build_plan, provision
from .system import SystemHost

__all__ = [
    "BackupManager",
    "DiagnosticCollector",
    "DiagnosticReport",
    "ActionExecutor",
    "ActionResult",
    "StateProbe",
    "RunReport",
    "apply_plan",
    "build_plan",
    "provision",
    "SystemHost",
]
