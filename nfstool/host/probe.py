"""
StateProbe: lee el estado actual del host para cada recurso declarado.

"No encontrado" es un resultado normal (None / ABSENT), nunca una excepción.
La comparación de líneas es exacta (línea completa, sin regex ni prefijos ni
normalización de espacios): una línea casi igual con otros espacios cuenta
como ausente y provocará que se añada una segunda línea distinta.
"""

from pathlib import Path
from typing import Optional

from nfsplane.core.errors import HostCommandError
from nfsplane.core.infra.contracts import HostContract
from nfsplane.core.models import LabelSpec, TargetState
from nfsplane.core.runtime.state import (
    GroupState,
    HostSnapshot,
    LabelState,
    PathState,
    Presence,
    ServiceState,
    UserState,
)


def read_text(path: str) -> Optional[str]:
    """Contenido del archivo o None si no existe (bytes no UTF-8 se conservan vía surrogateescape)"""
    try:
        return Path(path).read_text(encoding="utf-8", errors="surrogateescape")
    except FileNotFoundError:
        return None


class StateProbe:
    """Consulta el host; no guarda caché entre llamadas"""

    def __init__(self, host: HostContract):
        self.host = host

    def probe_group(self, name: str) -> Optional[GroupState]:
        gid = self.host.lookup_group(name)
        return GroupState(gid=gid) if gid is not None else None

    def probe_user(self, name: str) -> Optional[UserState]:
        groups = self.host.lookup_user(name)
        if groups is None:
            return None
        return UserState(groups=list(groups), primary=self.host.primary_group(name))

    def probe_path(self, path: str) -> Optional[PathState]:
        return self.host.stat_path(path)

    def probe_file(self, path: str) -> Optional[str]:
        return read_text(path)

    def probe_line(self, path: str, line: str) -> Presence:
        content = read_text(path)
        if content is None:
            return Presence.ABSENT
        return Presence.PRESENT if line in content.splitlines() else Presence.ABSENT

    def probe_map_reference(self, master_file: str, map_file: str) -> Presence:
        """Presente si alguna línea de auto.master es '/-  <map_file> [opciones]'"""
        content = read_text(master_file)
        if content is None:
            return Presence.ABSENT
        for line in content.splitlines():
            tokens = line.split()
            if len(tokens) >= 2 and tokens[0] == "/-" and tokens[1] == map_file:
                return Presence.PRESENT
        return Presence.ABSENT

    def probe_service(self, name: str) -> ServiceState:
        return self.host.service_state(name)

    def probe_package(self, name: str) -> bool:
        return self.host.package_installed(name)

    def probe_label(self, label: LabelSpec) -> LabelState:
        mode = self.host.selinux_mode()
        if mode is None or mode.lower() == "disabled":
            return LabelState.DISABLED
        if not self.host.label_tool_available():
            return LabelState.UNAVAILABLE
        try:
            defined = self.host.fcontext_defined(label.pattern, label.selinux_type)
        except HostCommandError:
            return LabelState.UNAVAILABLE
        return LabelState.PRESENT if defined else LabelState.ABSENT

    def snapshot(self, target: TargetState) -> HostSnapshot:
        """Foto del estado actual de todos los recursos del target"""
        snap = HostSnapshot()
        for package in target.packages:
            snap.packages[package.name] = self.probe_package(package.name)
        for group in target.groups:
            snap.groups[group.name] = self.probe_group(group.name)
        for user in target.users:
            snap.users[user.name] = self.probe_user(user.name)
        for directory in target.directories:
            snap.paths[directory.path] = self.probe_path(directory.path)
        for label in target.labels:
            snap.labels[label.path] = self.probe_label(label)
        if target.exports_file:
            snap.exports_file_exists = read_text(target.exports_file) is not None
            for line in target.export_lines:
                text = line.render()
                snap.export_lines[text] = self.probe_line(target.exports_file, text)
        if target.master_file and target.map_file:
            snap.master_reference = self.probe_map_reference(target.master_file, target.map_file)
            snap.map_content = self.probe_file(target.map_file)
        for service in target.services:
            snap.services[service.name] = self.probe_service(service.name)
        if target.firewall_services:
            snap.firewall_active = self.host.firewall_active()
        return snap
