"""
Adaptador del host real: usuarios, grupos, filesystem, servicios, SELinux y NFS.

Cada método es una única primitiva contra el sistema. Las consultas nunca
lanzan por "no encontrado" (devuelven None/False); las mutaciones lanzan
HostCommandError si el comando falla. Requiere root para mutar.
"""

import grp
import os
import pwd
import stat
from pathlib import Path
from typing import List, Optional

from nfsplane.core.errors import HostCommandError
from nfsplane.core.runtime.state import PathState, ServiceState
from nfstool.core.doctor import tool_available
from nfstool.core.tools import run_checked, run_command


PROC_MOUNTS = Path("/proc/mounts")


class SystemHost:
    """Implementación de HostContract sobre comandos de un RHEL/Fedora"""

    # --- Base de identidades ---

    def lookup_group(self, name: str) -> Optional[int]:
        ok, out, _ = run_command(["getent", "group", name])
        if not ok:
            return None
        # nfs-hr:x:1050:hr1,hr2
        fields = out.strip().split(":")
        return int(fields[2]) if len(fields) > 2 and fields[2].isdigit() else None

    def lookup_user(self, name: str) -> Optional[List[str]]:
        ok, _, _ = run_command(["getent", "passwd", name])
        if not ok:
            return None
        ok, out, err = run_command(["id", "-nG", name])
        if not ok:
            raise HostCommandError(["id", "-nG", name], None, err.strip())
        return out.split()

    def primary_group(self, name: str) -> Optional[str]:
        ok, out, _ = run_command(["id", "-gn", name])
        if not ok:
            return None
        return out.strip() or None

    def add_group(self, name: str, gid: int) -> None:
        run_checked(["groupadd", "-g", str(gid), name])

    def add_user(self, name: str, create_home: bool, shell: str, groups: List[str]) -> None:
        cmd = ["useradd", "-m" if create_home else "-M", "-s", shell]
        if groups:
            cmd += ["-G", ",".join(groups)]
        cmd.append(name)
        run_checked(cmd)

    def lock_user(self, name: str) -> None:
        run_checked(["passwd", "-l", name])

    def add_user_to_group(self, user: str, group: str) -> None:
        run_checked(["usermod", "-a", "-G", group, user])

    def remove_user_from_group(self, user: str, group: str) -> None:
        run_checked(["gpasswd", "-d", user, group])

    # --- Filesystem ---

    def stat_path(self, path: str) -> Optional[PathState]:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            return None
        try:
            owner = pwd.getpwuid(st.st_uid).pw_name
        except KeyError:
            owner = str(st.st_uid)
        try:
            group = grp.getgrgid(st.st_gid).gr_name
        except KeyError:
            group = str(st.st_gid)
        return PathState(owner=owner, group=group, mode=stat.S_IMODE(st.st_mode), is_dir=stat.S_ISDIR(st.st_mode))

    def make_directory(self, path: str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def change_owner(self, path: str, owner: str, group: str) -> None:
        run_checked(["chown", f"{owner}:{group}", path])

    def change_mode(self, path: str, mode: int) -> None:
        run_checked(["chmod", f"{mode:04o}", path])

    # --- Paquetes y servicios ---

    def package_installed(self, name: str) -> bool:
        ok, _, _ = run_command(["rpm", "-q", name])
        return ok

    def install_package(self, name: str) -> None:
        run_checked(["dnf", "-y", "install", name], timeout=900)

    def service_state(self, name: str) -> ServiceState:
        ok, out, _ = run_command(["systemctl", "list-unit-files", "--no-legend", f"{name}.service"])
        installed = ok and bool(out.strip())
        enabled, _, _ = run_command(["systemctl", "is-enabled", "--quiet", name])
        active, _, _ = run_command(["systemctl", "is-active", "--quiet", name])
        return ServiceState(installed=installed, enabled=enabled, active=active)

    def enable_service(self, name: str) -> None:
        run_checked(["systemctl", "enable", "--now", name])

    def reload_service(self, name: str) -> None:
        run_checked(["systemctl", "reload", name])

    # --- SELinux ---

    def selinux_mode(self) -> Optional[str]:
        if not tool_available("getenforce"):
            return None
        ok, out, _ = run_command(["getenforce"])
        return out.strip() if ok else None

    def label_tool_available(self) -> bool:
        return tool_available("semanage")

    def fcontext_defined(self, pattern: str, selinux_type: str) -> bool:
        ok, out, err = run_command(["semanage", "fcontext", "-l", "-C"])
        if not ok:
            raise HostCommandError(["semanage", "fcontext", "-l", "-C"], None, err.strip())
        for line in out.splitlines():
            parts = line.split()
            if parts and parts[0] == pattern and f":{selinux_type}:" in line:
                return True
        return False

    def add_fcontext(self, pattern: str, selinux_type: str) -> None:
        run_checked(["semanage", "fcontext", "-a", "-t", selinux_type, pattern])

    def restore_context(self, path: str) -> None:
        run_checked(["restorecon", "-R", path])

    # --- Exports / montajes / diagnóstico ---

    def refresh_exports(self) -> str:
        return run_checked(["exportfs", "-rav"])

    def list_exports(self) -> str:
        return run_checked(["exportfs", "-v"])

    def mount_table(self) -> List[str]:
        try:
            return PROC_MOUNTS.read_text(encoding="utf-8", errors="surrogateescape").splitlines()
        except OSError:
            return []

    def firewall_active(self) -> bool:
        ok, _, _ = run_command(["systemctl", "is-active", "--quiet", "firewalld"])
        return ok

    def run_diagnostic(self, command: List[str]) -> Optional[str]:
        if not tool_available(command[0]):
            return None
        ok, out, _ = run_command(command, timeout=15)
        return out if ok else None

    def run_as_user(self, user: str, command: str) -> tuple:
        ok, out, err = run_command(["su", "-", user, "-c", command], timeout=30)
        return ok, (out + err).strip()
