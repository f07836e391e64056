"""
DiagnosticCollector: hechos del sistema tras la reconciliación.

Solo lectura; se puede ejecutar cuantas veces se quiera. Cada hecho se
recoge por separado: si una herramienta falla, ese hecho queda como
no disponible (None) y el resto se recoge igualmente.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from nfsplane.core.errors import HostCommandError
from nfsplane.core.infra.contracts import HostContract
from nfsplane.core.models import TargetState
from nfsplane.core.runtime.state import PathState

from .probe import StateProbe


@dataclass
class DiagnosticReport:
    role: str
    exports: Optional[str] = None
    mounts: List[str] = field(default_factory=list)
    memberships: Dict[str, List[str]] = field(default_factory=dict)
    paths: Dict[str, Optional[PathState]] = field(default_factory=dict)
    remote: Dict[str, Optional[str]] = field(default_factory=dict)
    unavailable: List[str] = field(default_factory=list)


class DiagnosticCollector:

    def __init__(self, host: HostContract, probe: Optional[StateProbe] = None):
        self.host = host
        self.probe = probe or StateProbe(host)

    def collect(self, target: TargetState) -> DiagnosticReport:
        report = DiagnosticReport(role=target.role)

        if target.role == "server":
            try:
                report.exports = self.host.list_exports()
            except HostCommandError:
                report.exports = None

        watched = [d.path for d in target.directories] + [e.remote_path for e in target.map_entries]
        for line in self.host.mount_table():
            fields = line.split()
            if len(fields) < 2:
                continue
            source, mountpoint = fields[0], fields[1]
            if mountpoint in watched or any(source.endswith(f":{p}") for p in watched):
                report.mounts.append(line)

        users = {}
        for user in target.users:
            try:
                users[user.name] = self.probe.probe_user(user.name)
            except HostCommandError:
                report.unavailable.append(f"user:{user.name}")
        for group in target.managed_groups:
            report.memberships[group] = [
                name for name, state in users.items() if state is not None and group in state.groups
            ]

        for directory in target.directories:
            report.paths[directory.path] = self.probe.probe_path(directory.path)

        if target.role == "client" and target.server:
            report.remote["showmount -e"] = self.host.run_diagnostic(["showmount", "-e", target.server])
            report.remote["rpcinfo -p"] = self.host.run_diagnostic(["rpcinfo", "-p", target.server])
            report.remote["nfsstat -m"] = self.host.run_diagnostic(["nfsstat", "-m"])

        return report
