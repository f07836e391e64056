"""
Contrato del host: colaboradores externos (identidades, filesystem,
servicios, SELinux, exports/montajes).

El core solo define la interfaz; la implementación real vive en
nfstool.host.system y los tests usan un host en memoria. Las operaciones
que mutan lanzan HostCommandError si el colaborador falla.
"""

from typing import List, Optional, Protocol

from nfsplane.core.runtime.state import PathState, ServiceState


class HostContract(Protocol):

    # --- Base de identidades ---

    def lookup_group(self, name: str) -> Optional[int]:
        """GID del grupo, o None si no existe."""
        ...

    def lookup_user(self, name: str) -> Optional[List[str]]:
        """Grupos (por nombre) del usuario, o None si no existe."""
        ...

    def primary_group(self, name: str) -> Optional[str]:
        """Grupo primario del usuario (no se puede quitar con gpasswd -d)."""
        ...

    def add_group(self, name: str, gid: int) -> None:
        ...

    def add_user(self, name: str, create_home: bool, shell: str, groups: List[str]) -> None:
        ...

    def lock_user(self, name: str) -> None:
        ...

    def add_user_to_group(self, user: str, group: str) -> None:
        ...

    def remove_user_from_group(self, user: str, group: str) -> None:
        ...

    # --- Filesystem ---

    def stat_path(self, path: str) -> Optional[PathState]:
        ...

    def make_directory(self, path: str) -> None:
        ...

    def change_owner(self, path: str, owner: str, group: str) -> None:
        ...

    def change_mode(self, path: str, mode: int) -> None:
        ...

    # --- Paquetes y servicios ---

    def package_installed(self, name: str) -> bool:
        ...

    def install_package(self, name: str) -> None:
        ...

    def service_state(self, name: str) -> ServiceState:
        ...

    def enable_service(self, name: str) -> None:
        """systemctl enable --now"""
        ...

    def reload_service(self, name: str) -> None:
        ...

    # --- SELinux (opcional, best-effort) ---

    def selinux_mode(self) -> Optional[str]:
        """Enforcing | Permissive | Disabled, o None si no hay SELinux."""
        ...

    def label_tool_available(self) -> bool:
        ...

    def fcontext_defined(self, pattern: str, selinux_type: str) -> bool:
        ...

    def add_fcontext(self, pattern: str, selinux_type: str) -> None:
        ...

    def restore_context(self, path: str) -> None:
        ...

    # --- Exports / montajes / diagnóstico (solo lectura salvo refresh) ---

    def refresh_exports(self) -> str:
        """exportfs -rav; devuelve la salida."""
        ...

    def list_exports(self) -> str:
        ...

    def mount_table(self) -> List[str]:
        """Líneas de /proc/mounts."""
        ...

    def firewall_active(self) -> bool:
        ...

    def run_diagnostic(self, command: List[str]) -> Optional[str]:
        """Ejecuta un comando de solo lectura; None si no está disponible o falla."""
        ...

    def run_as_user(self, user: str, command: str) -> tuple:
        """su - <user> -c <command>; devuelve (ok, salida)."""
        ...
