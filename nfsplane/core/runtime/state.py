"""
Tipos de estado actual del host.

NotFound se modela como None: no encontrar un grupo o un archivo es un
resultado normal de la sonda, nunca una excepción.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Presence(Enum):
    """Presencia de una línea exacta en un archivo de configuración"""
    PRESENT = "present"
    ABSENT = "absent"


class LabelState(Enum):
    """Estado de una regla de contexto SELinux"""
    DISABLED = "disabled"        # SELinux no presente o deshabilitado
    UNAVAILABLE = "unavailable"  # SELinux activo pero sin semanage
    PRESENT = "present"
    ABSENT = "absent"


@dataclass
class GroupState:
    gid: int


@dataclass
class UserState:
    groups: List[str] = field(default_factory=list)
    primary: Optional[str] = None


@dataclass
class PathState:
    owner: str
    group: str
    mode: int
    is_dir: bool = True


@dataclass
class ServiceState:
    installed: bool = True
    enabled: bool = False
    active: bool = False

    @property
    def running(self) -> bool:
        return self.enabled and self.active


@dataclass
class HostSnapshot:
    """
    Foto del estado actual para un TargetState.

    Solo la usa el Reconciler para calcular el plan; el executor vuelve a
    consultar el host antes de cada acción.
    """
    packages: Dict[str, bool] = field(default_factory=dict)
    groups: Dict[str, Optional[GroupState]] = field(default_factory=dict)
    users: Dict[str, Optional[UserState]] = field(default_factory=dict)
    paths: Dict[str, Optional[PathState]] = field(default_factory=dict)
    labels: Dict[str, LabelState] = field(default_factory=dict)
    export_lines: Dict[str, Presence] = field(default_factory=dict)
    exports_file_exists: bool = False
    master_reference: Presence = Presence.ABSENT
    map_content: Optional[str] = None
    services: Dict[str, ServiceState] = field(default_factory=dict)
    firewall_active: bool = False
