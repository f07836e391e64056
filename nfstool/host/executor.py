"""
ActionExecutor: aplica una acción del plan contra el host.

Antes de cada mutación vuelve a consultar el estado (sin caché entre
acciones); si el efecto ya está presente la acción termina sin cambios.
Los errores se clasifican:
- FatalActionError: falló una acción crítica → abortar la ejecución
- RecoverableActionError: falló una acción best-effort → registrar y seguir
- ConflictError: el estado actual es incompatible → omitir el recurso
"""

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Set
from rich.console import Console

from nfsplane.core.actions import Action, ActionKind
from nfsplane.core.errors import (
    ConflictError,
    FatalActionError,
    HostCommandError,
    RecoverableActionError,
)
from nfsplane.core.infra.contracts import HostContract
from nfsplane.core.models import DEFAULT_FILE_MODE
from nfsplane.core.runtime.state import Presence

from .backup import BackupManager
from .probe import StateProbe, read_text


@dataclass
class ActionResult:
    action: Action
    changed: bool
    message: str = ""


class ActionExecutor:
    """Ejecuta acciones de una en una, siempre re-consultando el host"""

    def __init__(
        self,
        host: HostContract,
        backups: BackupManager,
        probe: Optional[StateProbe] = None,
        console: Optional[Console] = None,
    ):
        self.host = host
        self.backups = backups
        self.probe = probe or StateProbe(host)
        self.console = console
        self._backed_up: Set[str] = set()
        self._handlers: Dict[ActionKind, Callable[[Action], ActionResult]] = {
            ActionKind.INSTALL_PACKAGE: self._install_package,
            ActionKind.CREATE_GROUP: self._create_group,
            ActionKind.CREATE_USER: self._create_user,
            ActionKind.LOCK_USER: self._lock_user,
            ActionKind.ADD_TO_GROUP: self._add_to_group,
            ActionKind.REMOVE_FROM_GROUP: self._remove_from_group,
            ActionKind.MAKE_DIRECTORY: self._make_directory,
            ActionKind.SET_OWNER: self._set_owner,
            ActionKind.SET_MODE: self._set_mode,
            ActionKind.LABEL_PATH: self._label_path,
            ActionKind.BACKUP_FILE: self._backup_file,
            ActionKind.APPEND_LINE: self._append_line,
            ActionKind.ADD_MAP_REFERENCE: self._add_map_reference,
            ActionKind.WRITE_FILE: self._write_file,
            ActionKind.ENABLE_SERVICE: self._enable_service,
            ActionKind.RELOAD_SERVICE: self._reload_service,
            ActionKind.REFRESH_EXPORTS: self._refresh_exports,
        }

    def execute(self, action: Action) -> ActionResult:
        handler = self._handlers[action.kind]
        try:
            return handler(action)
        except (HostCommandError, OSError) as e:
            if action.best_effort:
                raise RecoverableActionError(f"{action}: {e}", action) from e
            raise FatalActionError(f"{action}: {e}", action) from e

    # --- Paquetes, grupos, usuarios ---

    def _install_package(self, action: Action) -> ActionResult:
        if self.probe.probe_package(action.target):
            return ActionResult(action, False, "ya instalado")
        self.host.install_package(action.target)
        return ActionResult(action, True)

    def _create_group(self, action: Action) -> ActionResult:
        gid = action.params["gid"]
        current = self.probe.probe_group(action.target)
        if current is not None:
            if current.gid != gid:
                raise ConflictError(
                    f"El grupo {action.target} apareció con GID {current.gid} (declarado {gid})", action
                )
            return ActionResult(action, False, "ya existe")
        self.host.add_group(action.target, gid)
        return ActionResult(action, True)

    def _create_user(self, action: Action) -> ActionResult:
        if self.probe.probe_user(action.target) is not None:
            return ActionResult(action, False, "ya existe")
        self.host.add_user(
            action.target,
            action.params.get("create_home", True),
            action.params.get("shell", "/bin/bash"),
            action.params.get("groups", []),
        )
        return ActionResult(action, True)

    def _lock_user(self, action: Action) -> ActionResult:
        self.host.lock_user(action.target)
        return ActionResult(action, True)

    def _add_to_group(self, action: Action) -> ActionResult:
        group = action.params["group"]
        current = self.probe.probe_user(action.target)
        if current is None:
            raise ConflictError(f"El usuario {action.target} no existe; no se puede añadir a {group}", action)
        if group in current.groups:
            return ActionResult(action, False, f"ya es miembro de {group}")
        self.host.add_user_to_group(action.target, group)
        return ActionResult(action, True)

    def _remove_from_group(self, action: Action) -> ActionResult:
        group = action.params["group"]
        current = self.probe.probe_user(action.target)
        if current is None or group not in current.groups:
            return ActionResult(action, False, f"no es miembro de {group}")
        if current.primary == group:
            raise ConflictError(f"{group} es el grupo primario de {action.target}; no se puede quitar", action)
        self.host.remove_user_from_group(action.target, group)
        return ActionResult(action, True)

    # --- Directorios y etiquetas ---

    def _make_directory(self, action: Action) -> ActionResult:
        current = self.probe.probe_path(action.target)
        if current is not None:
            if not current.is_dir:
                raise ConflictError(f"{action.target} existe pero no es un directorio", action)
            return ActionResult(action, False, "ya existe")
        self.host.make_directory(action.target)
        return ActionResult(action, True)

    def _set_owner(self, action: Action) -> ActionResult:
        owner, group = action.params["owner"], action.params["group"]
        current = self.probe.probe_path(action.target)
        if current is None:
            raise ConflictError(f"{action.target} no existe; no se puede cambiar el propietario", action)
        if (current.owner, current.group) == (owner, group):
            return ActionResult(action, False, "propietario correcto")
        self.host.change_owner(action.target, owner, group)
        return ActionResult(action, True)

    def _set_mode(self, action: Action) -> ActionResult:
        mode = action.params["mode"]
        current = self.probe.probe_path(action.target)
        if current is None:
            raise ConflictError(f"{action.target} no existe; no se pueden cambiar los permisos", action)
        if current.mode == mode:
            return ActionResult(action, False, "permisos correctos")
        self.host.change_mode(action.target, mode)
        return ActionResult(action, True)

    def _label_path(self, action: Action) -> ActionResult:
        pattern, selinux_type = action.params["pattern"], action.params["selinux_type"]
        if not self.host.fcontext_defined(pattern, selinux_type):
            self.host.add_fcontext(pattern, selinux_type)
        self.host.restore_context(action.target)
        return ActionResult(action, True)

    # --- Archivos de configuración ---

    def _ensure_backup(self, path: str) -> None:
        """Backup (una vez por ejecución) antes de la primera mutación del archivo"""
        if path in self._backed_up:
            return
        self.backups.backup(path)
        self._backed_up.add(path)

    def _backup_file(self, action: Action) -> ActionResult:
        already = action.target in self._backed_up
        self._ensure_backup(action.target)
        return ActionResult(action, not already)

    def _append(self, path: str, text: str) -> None:
        existing = read_text(path) or ""
        prefix = "" if not existing or existing.endswith("\n") else "\n"
        with open(path, "a", encoding="utf-8", errors="surrogateescape") as f:
            f.write(prefix + text + "\n")

    def _append_line(self, action: Action) -> ActionResult:
        line = action.params["line"]
        if self.probe.probe_line(action.target, line) == Presence.PRESENT:
            return ActionResult(action, False, "línea ya presente")
        self._ensure_backup(action.target)
        self._append(action.target, line)
        return ActionResult(action, True)

    def _add_map_reference(self, action: Action) -> ActionResult:
        map_file = action.params["map_file"]
        if self.probe.probe_map_reference(action.target, map_file) == Presence.PRESENT:
            return ActionResult(action, False, "referencia ya presente")
        self._ensure_backup(action.target)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        self._append(action.target, "\n".join([
            "",
            f"# Direct mounts for NFS shares (added by nfsplane {stamp})",
            action.params["line"],
        ]))
        return ActionResult(action, True)

    def _write_file(self, action: Action) -> ActionResult:
        content = action.params["content"]
        mode = action.params.get("mode", DEFAULT_FILE_MODE)
        current = self.probe.probe_file(action.target)
        if current == content:
            return ActionResult(action, False, "contenido sin cambios")
        if current is not None:
            self._ensure_backup(action.target)
        path = Path(action.target)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(content, encoding="utf-8", errors="surrogateescape")
        os.chmod(tmp, mode)
        tmp.replace(path)
        return ActionResult(action, True)

    # --- Servicios y exports ---

    def _enable_service(self, action: Action) -> ActionResult:
        if self.probe.probe_service(action.target).running:
            return ActionResult(action, False, "ya habilitado y activo")
        self.host.enable_service(action.target)
        return ActionResult(action, True)

    def _reload_service(self, action: Action) -> ActionResult:
        self.host.reload_service(action.target)
        return ActionResult(action, True)

    def _refresh_exports(self, action: Action) -> ActionResult:
        output = self.host.refresh_exports()
        return ActionResult(action, True, output.strip())
