"""
Modelos declarativos de nfsplane (agnósticos de interfaz y filesystem).

Se construyen una sola vez al arrancar, a partir del YAML declarativo,
y no cambian durante la ejecución.
"""

import ipaddress
import posixpath
from datetime import datetime
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DEFAULT_EXPORT_OPTIONS = ["rw", "sync", "no_subtree_check"]
DEFAULT_AUTOFS_OPTIONS = ["-fstype=nfs4", "rw", "soft", "intr", "vers=4"]
DEFAULT_FILE_MODE = 0o644


def _absolute_path(value: str) -> str:
    if not value or not value.startswith("/"):
        raise ValueError(f"la ruta debe ser absoluta: {value!r}")
    return posixpath.normpath(value)


def _unique_flags(values: List[str], what: str) -> List[str]:
    if not values:
        raise ValueError(f"{what}: se requiere al menos una opción")
    seen = []
    for v in values:
        v = v.strip()
        if not v or any(c.isspace() for c in v) or "," in v:
            raise ValueError(f"{what}: opción inválida {v!r}")
        if v in seen:
            raise ValueError(f"{what}: opción duplicada {v!r}")
        seen.append(v)
    return seen


class GroupSpec(BaseModel):
    """Grupo compartido; el GID debe ser estable entre ejecuciones."""
    name: str = Field(..., description="Nombre del grupo (ej: nfs-hr)")
    gid: int = Field(..., gt=0, description="GID numérico estable")


class UserSpec(BaseModel):
    """Usuario local y sus membresías suplementarias en grupos gestionados."""
    name: str = Field(..., description="Nombre de usuario")
    create_home: bool = Field(True, description="Crear directorio home (useradd -m)")
    shell: str = Field("/bin/bash", description="Shell de login")
    groups: List[str] = Field(default_factory=list, description="Grupos gestionados de los que DEBE ser miembro")
    locked: bool = Field(True, description="Bloquear la contraseña al crear el usuario")


class DirectorySpec(BaseModel):
    """Directorio con ownership y permisos declarados."""
    path: str = Field(..., description="Ruta absoluta")
    owner: str = Field("root", description="Usuario propietario")
    group: str = Field("root", description="Grupo propietario")
    mode: int = Field(0o755, description="Permisos en texto octal (incluye setgid, ej: \"2775\")")

    @field_validator("path")
    @classmethod
    def _check_path(cls, v):
        return _absolute_path(v)

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, v):
        # Solo texto octal ("2775"): un entero sin comillas en YAML llega como
        # decimal (2775) o como octal (0644) y no se puede distinguir
        if not isinstance(v, str):
            raise ValueError(f"el modo debe ser texto octal entre comillas (ej: mode: \"2775\"), se recibió {v!r}")
        try:
            mode = int(v, 8)
        except ValueError:
            raise ValueError(f"modo octal inválido: {v!r}")
        if mode < 0 or mode > 0o7777:
            raise ValueError(f"modo fuera de rango: {v!r}")
        return mode


class ExportLine(BaseModel):
    """Línea de /etc/exports derivada de un ShareSpec."""
    model_config = ConfigDict(frozen=True)

    path: str
    cidr: str
    options: Tuple[str, ...]

    def render(self) -> str:
        return f"{self.path} {self.cidr}({','.join(self.options)})"

    def __str__(self) -> str:
        return self.render()


class ShareSpec(DirectorySpec):
    """Directorio exportado por NFS a una red de clientes."""
    client_cidr: str = Field(..., description="Red de clientes (ej: 192.168.4.0/22)")
    options: List[str] = Field(default_factory=lambda: list(DEFAULT_EXPORT_OPTIONS))
    label: bool = Field(True, description="Etiquetar con SELinux si está habilitado")

    @field_validator("client_cidr")
    @classmethod
    def _check_cidr(cls, v):
        try:
            ipaddress.ip_network(v, strict=False)
        except ValueError:
            raise ValueError(f"CIDR inválido: {v!r}")
        return v

    @field_validator("options")
    @classmethod
    def _check_options(cls, v):
        return _unique_flags(v, "opciones de export")

    def export_line(self) -> ExportLine:
        return ExportLine(path=self.path, cidr=self.client_cidr, options=tuple(self.options))

    def directory(self) -> DirectorySpec:
        return DirectorySpec(path=self.path, owner=self.owner, group=self.group, mode=f"{self.mode:04o}")


class AutomountEntry(BaseModel):
    """Entrada de un mapa directo de autofs."""
    model_config = ConfigDict(frozen=True)

    local_path: str
    server: str
    remote_path: str
    options: Tuple[str, ...] = tuple(DEFAULT_AUTOFS_OPTIONS)

    def render(self) -> str:
        return f"{self.local_path}    {','.join(self.options)}    {self.server}:{self.remote_path}"


MAP_HEADER = "# direct map: localpath   mount-options    server:/remote/path"


def render_automount_map(entries: List[AutomountEntry]) -> str:
    """Contenido completo del mapa directo; se regenera entero, nunca se parchea."""
    lines = [MAP_HEADER] + [e.render() for e in entries]
    return "\n".join(lines) + "\n"


def master_reference(map_file: str) -> str:
    """Línea de auto.master que referencia el mapa directo."""
    return f"/-    {map_file}"


class ClientMountSpec(DirectorySpec):
    """Punto de montaje local gestionado por autofs en el cliente."""
    remote_path: str = Field(..., description="Ruta exportada en el servidor (ej: /srv/hr)")
    options: List[str] = Field(default_factory=lambda: list(DEFAULT_AUTOFS_OPTIONS))

    @field_validator("remote_path")
    @classmethod
    def _check_remote(cls, v):
        return _absolute_path(v)

    @field_validator("options")
    @classmethod
    def _check_options(cls, v):
        return _unique_flags(v, "opciones de montaje")

    def entry(self, server: str) -> AutomountEntry:
        return AutomountEntry(
            local_path=self.path,
            server=server,
            remote_path=self.remote_path,
            options=tuple(self.options),
        )

    def directory(self) -> DirectorySpec:
        return DirectorySpec(path=self.path, owner=self.owner, group=self.group, mode=f"{self.mode:04o}")


class ServiceSpec(BaseModel):
    """Servicio systemd que debe quedar habilitado y activo."""
    name: str
    critical: bool = Field(True, description="Si falla al arrancar, se aborta la ejecución")
    if_present: bool = Field(False, description="Solo gestionar si la unidad existe")
    reload_on_change: bool = Field(False, description="Recargar si su configuración cambió y ya estaba activo")


class PackageSpec(BaseModel):
    name: str


class LabelSpec(BaseModel):
    """Regla de contexto SELinux para un árbol exportado."""
    path: str
    selinux_type: str

    @property
    def pattern(self) -> str:
        return f"{self.path}(/.*)?"


class BackupRecord(BaseModel):
    """Copia de seguridad de un archivo antes de mutarlo."""
    source: str
    destination: str
    created_at: datetime


class TargetState(BaseModel):
    """Estado objetivo completo de un host (servidor o cliente)."""
    role: Literal["server", "client"]
    backup_dir: str
    packages: List[PackageSpec] = Field(default_factory=list)
    groups: List[GroupSpec] = Field(default_factory=list)
    users: List[UserSpec] = Field(default_factory=list)
    directories: List[DirectorySpec] = Field(default_factory=list)
    labels: List[LabelSpec] = Field(default_factory=list)
    exports_file: Optional[str] = None
    export_lines: List[ExportLine] = Field(default_factory=list)
    master_file: Optional[str] = None
    map_file: Optional[str] = None
    map_entries: List[AutomountEntry] = Field(default_factory=list)
    services: List[ServiceSpec] = Field(default_factory=list)
    export_service: Optional[str] = None
    firewall_services: List[str] = Field(default_factory=list)
    server: Optional[str] = None

    @property
    def managed_groups(self) -> List[str]:
        return [g.name for g in self.groups]


def _check_memberships(groups: List[GroupSpec], users: List[UserSpec]) -> None:
    names = {g.name for g in groups}
    if len(names) != len(groups):
        raise ValueError("hay grupos declarados más de una vez")
    if len({u.name for u in users}) != len(users):
        raise ValueError("hay usuarios declarados más de una vez")
    for user in users:
        unknown = [g for g in user.groups if g not in names]
        if unknown:
            raise ValueError(f"el usuario {user.name} referencia grupos no declarados: {', '.join(unknown)}")


class ServerConfig(BaseModel):
    """Declaración del servidor NFS."""
    groups: List[GroupSpec] = Field(default_factory=list)
    users: List[UserSpec] = Field(default_factory=list)
    shares: List[ShareSpec] = Field(default_factory=list)
    exports_file: str = "/etc/exports"
    backup_dir: str = "/root/nfs-setup-backups"
    services: List[ServiceSpec] = Field(default_factory=lambda: [
        ServiceSpec(name="rpcbind", critical=False, if_present=True),
        ServiceSpec(name="nfs-server", critical=True),
    ])
    export_service: str = "nfs-server"
    selinux_type: Optional[str] = Field("nfsd_anon_t", description="Tipo SELinux para los shares (None = no etiquetar)")
    firewall_services: List[str] = Field(default_factory=lambda: ["nfs", "rpc-bind", "mountd"])

    @model_validator(mode="after")
    def _check(self):
        _check_memberships(self.groups, self.users)
        paths = [s.path for s in self.shares]
        if len(set(paths)) != len(paths):
            raise ValueError("hay shares declarados más de una vez")
        return self

    def target(self) -> TargetState:
        export_lines = []
        for share in self.shares:
            line = share.export_line()
            if line not in export_lines:
                export_lines.append(line)
        labels = []
        if self.selinux_type:
            labels = [LabelSpec(path=s.path, selinux_type=self.selinux_type) for s in self.shares if s.label]
        return TargetState(
            role="server",
            backup_dir=self.backup_dir,
            groups=self.groups,
            users=self.users,
            directories=[s.directory() for s in self.shares],
            labels=labels,
            exports_file=self.exports_file,
            export_lines=export_lines,
            services=self.services,
            export_service=self.export_service,
            firewall_services=self.firewall_services,
        )


class ClientConfig(BaseModel):
    """Declaración de un cliente autofs."""
    groups: List[GroupSpec] = Field(default_factory=list)
    users: List[UserSpec] = Field(default_factory=list)
    mounts: List[ClientMountSpec] = Field(default_factory=list)
    auto_master: str = "/etc/auto.master"
    map_file: str = "/etc/auto.hr"
    backup_dir: str = "/root/autofs-setup-backups"
    packages: List[PackageSpec] = Field(default_factory=lambda: [PackageSpec(name="autofs")])
    services: List[ServiceSpec] = Field(default_factory=lambda: [
        ServiceSpec(name="autofs", critical=True, reload_on_change=True),
    ])

    @model_validator(mode="after")
    def _check(self):
        _check_memberships(self.groups, self.users)
        return self

    def target(self, server: str) -> TargetState:
        server = (server or "").strip()
        if not server or any(c.isspace() for c in server):
            raise ValueError(f"servidor NFS inválido: {server!r}")
        return TargetState(
            role="client",
            backup_dir=self.backup_dir,
            packages=self.packages,
            groups=self.groups,
            users=self.users,
            directories=[m.directory() for m in self.mounts],
            master_file=self.auto_master,
            map_file=self.map_file,
            map_entries=[m.entry(server) for m in self.mounts],
            services=self.services,
            server=server,
        )


class Declaration(BaseModel):
    """Raíz del archivo declarativo (nfsplane.yaml)."""
    version: int = Field(1, description="Versión del esquema")
    server: Optional[ServerConfig] = None
    client: Optional[ClientConfig] = None
