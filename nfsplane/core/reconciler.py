"""
Reconciler: compara estado deseado (TargetState) vs estado real (HostSnapshot)
y calcula el conjunto mínimo de acciones, en orden de dependencias:

    paquetes → grupos → usuarios → directorios → etiquetas → config → servicios → refresh

Es una función pura: no toca el host. Dos ejecuciones seguidas sin drift
externo producen un plan vacío en la segunda.
"""

from typing import List, Set

from nfsplane.core.actions import Action, ActionKind, Plan
from nfsplane.core.models import (
    DEFAULT_FILE_MODE,
    TargetState,
    master_reference,
    render_automount_map,
)
from nfsplane.core.runtime.state import HostSnapshot, LabelState, Presence, ServiceState


class Reconciler:
    """Motor de reconciliación: deseado vs real → plan ordenado"""

    def reconcile(self, target: TargetState, snapshot: HostSnapshot) -> Plan:
        plan = Plan()

        self._packages(target, snapshot, plan)
        self._groups(target, snapshot, plan)
        self._users(target, snapshot, plan)
        blocked = self._directories(target, snapshot, plan)
        self._labels(target, snapshot, plan, blocked)
        exports_changed = self._exports(target, snapshot, plan, blocked)
        autofs_changed = self._automount(target, snapshot, plan)
        started = self._services(target, snapshot, plan, config_changed=exports_changed or autofs_changed)
        self._refresh(target, plan, exports_changed, started)
        self._firewall(target, snapshot, plan)

        plan.actions = plan.ordered()
        return plan

    def _packages(self, target: TargetState, snapshot: HostSnapshot, plan: Plan) -> None:
        for package in target.packages:
            if not snapshot.packages.get(package.name, False):
                plan.add(Action(
                    ActionKind.INSTALL_PACKAGE,
                    package.name,
                    description=f"Instalar paquete {package.name}",
                ))

    def _groups(self, target: TargetState, snapshot: HostSnapshot, plan: Plan) -> None:
        for group in target.groups:
            current = snapshot.groups.get(group.name)
            if current is None:
                plan.add(Action(
                    ActionKind.CREATE_GROUP,
                    group.name,
                    {"gid": group.gid},
                    description=f"Crear grupo {group.name} (GID {group.gid})",
                ))
            elif current.gid != group.gid:
                plan.conflict(
                    f"group:{group.name}",
                    f"El grupo {group.name} existe con GID {current.gid}; se declaró GID {group.gid}",
                    hint=f"Revisa el GID en todos los hosts: getent group {group.name}",
                )

    def _users(self, target: TargetState, snapshot: HostSnapshot, plan: Plan) -> None:
        managed = target.managed_groups
        for user in target.users:
            current = snapshot.users.get(user.name)
            if current is None:
                plan.add(Action(
                    ActionKind.CREATE_USER,
                    user.name,
                    {"create_home": user.create_home, "shell": user.shell, "groups": list(user.groups)},
                    description=(
                        f"Crear usuario {user.name}"
                        + (f" en {', '.join(user.groups)}" if user.groups else "")
                    ),
                ))
                if user.locked:
                    plan.add(Action(
                        ActionKind.LOCK_USER,
                        user.name,
                        best_effort=True,
                        description=f"Bloquear contraseña de {user.name}",
                    ))
                continue

            # La membresía en grupos gestionados es autoritativa
            for group in managed:
                wanted = group in user.groups
                member = group in current.groups
                if wanted and not member:
                    plan.add(Action(
                        ActionKind.ADD_TO_GROUP,
                        user.name,
                        {"group": group},
                        description=f"Añadir {user.name} al grupo {group}",
                    ))
                elif member and not wanted and current.primary == group:
                    plan.conflict(
                        f"user:{user.name}",
                        f"{group} es el grupo primario de {user.name}; no se puede quitar la membresía",
                        hint=f"Cambia el grupo primario: usermod -g <grupo> {user.name}",
                    )
                elif member and not wanted:
                    plan.add(Action(
                        ActionKind.REMOVE_FROM_GROUP,
                        user.name,
                        {"group": group},
                        description=f"Quitar {user.name} del grupo {group}",
                    ))

    def _directories(self, target: TargetState, snapshot: HostSnapshot, plan: Plan) -> Set[str]:
        """Devuelve las rutas en conflicto: no se etiquetan ni se exportan"""
        blocked: Set[str] = set()
        for directory in target.directories:
            current = snapshot.paths.get(directory.path)
            owner_action = Action(
                ActionKind.SET_OWNER,
                directory.path,
                {"owner": directory.owner, "group": directory.group},
                description=f"chown {directory.owner}:{directory.group} {directory.path}",
            )
            mode_action = Action(
                ActionKind.SET_MODE,
                directory.path,
                {"mode": directory.mode},
                description=f"chmod {directory.mode:04o} {directory.path}",
            )
            if current is None:
                plan.add(Action(ActionKind.MAKE_DIRECTORY, directory.path, description=f"Crear directorio {directory.path}"))
                plan.add(owner_action)
                plan.add(mode_action)
                continue
            if not current.is_dir:
                plan.conflict(
                    f"path:{directory.path}",
                    f"{directory.path} existe pero no es un directorio",
                    hint=f"Revisa manualmente: ls -ld {directory.path}",
                )
                blocked.add(directory.path)
                continue
            if (current.owner, current.group) != (directory.owner, directory.group):
                plan.add(owner_action)
            if current.mode != directory.mode:
                plan.add(mode_action)
        return blocked

    def _labels(self, target: TargetState, snapshot: HostSnapshot, plan: Plan, blocked: Set[str]) -> None:
        for label in target.labels:
            if label.path in blocked:
                continue
            state = snapshot.labels.get(label.path, LabelState.DISABLED)
            if state == LabelState.ABSENT:
                plan.add(Action(
                    ActionKind.LABEL_PATH,
                    label.path,
                    {"pattern": label.pattern, "selinux_type": label.selinux_type},
                    best_effort=True,
                    description=f"Etiquetar {label.path} como {label.selinux_type}",
                ))
            elif state == LabelState.UNAVAILABLE:
                plan.recoverable(
                    f"selinux:{label.path}",
                    "SELinux está activo pero semanage no está instalado; no se etiqueta el share",
                    hint=(
                        "dnf install policycoreutils-python-utils && "
                        f"semanage fcontext -a -t {label.selinux_type} '{label.pattern}' && "
                        f"restorecon -Rv {label.path}"
                    ),
                )

    def _exports(self, target: TargetState, snapshot: HostSnapshot, plan: Plan, blocked: Set[str]) -> bool:
        if not target.exports_file or not target.export_lines:
            return False

        absent: List[str] = []
        for line in target.export_lines:
            if line.path in blocked:
                continue
            text = line.render()
            if text in absent:
                continue
            if snapshot.export_lines.get(text, Presence.ABSENT) == Presence.ABSENT:
                absent.append(text)
        if not absent:
            return False

        plan.add(Action(
            ActionKind.BACKUP_FILE,
            target.exports_file,
            description=f"Backup de {target.exports_file}",
        ))
        for text in absent:
            plan.add(Action(
                ActionKind.APPEND_LINE,
                target.exports_file,
                {"line": text},
                description=f"Añadir a {target.exports_file}: {text}",
            ))
        return True

    def _automount(self, target: TargetState, snapshot: HostSnapshot, plan: Plan) -> bool:
        if not target.master_file or not target.map_file:
            return False
        changed = False

        if snapshot.master_reference == Presence.ABSENT:
            plan.add(Action(
                ActionKind.BACKUP_FILE,
                target.master_file,
                description=f"Backup de {target.master_file}",
            ))
            plan.add(Action(
                ActionKind.ADD_MAP_REFERENCE,
                target.master_file,
                {"map_file": target.map_file, "line": master_reference(target.map_file)},
                description=f"Referenciar mapa directo {target.map_file} en {target.master_file}",
            ))
            changed = True

        desired = render_automount_map(target.map_entries)
        if snapshot.map_content != desired:
            if snapshot.map_content is not None:
                plan.add(Action(
                    ActionKind.BACKUP_FILE,
                    target.map_file,
                    description=f"Backup de {target.map_file}",
                ))
            plan.add(Action(
                ActionKind.WRITE_FILE,
                target.map_file,
                {"content": desired, "mode": DEFAULT_FILE_MODE},
                description=f"Regenerar mapa {target.map_file} ({len(target.map_entries)} entrada(s))",
            ))
            changed = True
        return changed

    def _services(self, target: TargetState, snapshot: HostSnapshot, plan: Plan, config_changed: bool) -> Set[str]:
        started: Set[str] = set()
        for service in target.services:
            state = snapshot.services.get(service.name, ServiceState(installed=False))
            if service.if_present and not state.installed:
                plan.note(f"service:{service.name}", f"La unidad {service.name} no existe; se omite")
                continue
            if not state.running:
                plan.add(Action(
                    ActionKind.ENABLE_SERVICE,
                    service.name,
                    best_effort=not service.critical,
                    description=f"systemctl enable --now {service.name}",
                ))
                started.add(service.name)
            elif service.reload_on_change and config_changed:
                plan.add(Action(
                    ActionKind.RELOAD_SERVICE,
                    service.name,
                    best_effort=True,
                    description=f"systemctl reload {service.name}",
                ))
        return started

    def _refresh(self, target: TargetState, plan: Plan, exports_changed: bool, started: Set[str]) -> None:
        if not target.export_service or not target.exports_file:
            return
        if exports_changed or target.export_service in started:
            plan.add(Action(
                ActionKind.REFRESH_EXPORTS,
                target.exports_file,
                description="exportfs -rav",
            ))

    def _firewall(self, target: TargetState, snapshot: HostSnapshot, plan: Plan) -> None:
        if not target.firewall_services or not snapshot.firewall_active:
            return
        commands = [f"firewall-cmd --permanent --add-service={s}" for s in target.firewall_services]
        commands.append("firewall-cmd --reload")
        plan.note(
            "firewalld",
            "firewalld está activo; puede que necesites permitir el tráfico NFS",
            hint=" ; ".join(commands),
        )


def reconcile(target: TargetState, snapshot: HostSnapshot) -> Plan:
    """Atajo funcional de Reconciler().reconcile"""
    return Reconciler().reconcile(target, snapshot)
