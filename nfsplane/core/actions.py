"""
Acciones de reconciliación y plan ordenado.

Un Plan es un artefacto de primera clase: lista ordenada por fase de
dependencias, más conflictos y notas detectados al planificar.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional


class Phase(IntEnum):
    """Orden de dependencias entre acciones"""
    PACKAGES = 0
    GROUPS = 1
    USERS = 2
    DIRECTORIES = 3
    LABELS = 4
    CONFIG = 5
    SERVICES = 6
    REFRESH = 7


class ActionKind(Enum):
    INSTALL_PACKAGE = ("install_package", Phase.PACKAGES)
    CREATE_GROUP = ("create_group", Phase.GROUPS)
    CREATE_USER = ("create_user", Phase.USERS)
    LOCK_USER = ("lock_user", Phase.USERS)
    ADD_TO_GROUP = ("add_to_group", Phase.USERS)
    REMOVE_FROM_GROUP = ("remove_from_group", Phase.USERS)
    MAKE_DIRECTORY = ("make_directory", Phase.DIRECTORIES)
    SET_OWNER = ("set_owner", Phase.DIRECTORIES)
    SET_MODE = ("set_mode", Phase.DIRECTORIES)
    LABEL_PATH = ("label_path", Phase.LABELS)
    BACKUP_FILE = ("backup_file", Phase.CONFIG)
    APPEND_LINE = ("append_line", Phase.CONFIG)
    ADD_MAP_REFERENCE = ("add_map_reference", Phase.CONFIG)
    WRITE_FILE = ("write_file", Phase.CONFIG)
    ENABLE_SERVICE = ("enable_service", Phase.SERVICES)
    RELOAD_SERVICE = ("reload_service", Phase.SERVICES)
    REFRESH_EXPORTS = ("refresh_exports", Phase.REFRESH)

    def __init__(self, label: str, phase: Phase):
        self.label = label
        self.phase = phase


@dataclass
class Action:
    """Una primitiva idempotente contra el estado del host."""
    kind: ActionKind
    target: str
    params: Dict[str, Any] = field(default_factory=dict)
    best_effort: bool = False
    description: str = ""

    @property
    def phase(self) -> Phase:
        return self.kind.phase

    def __str__(self) -> str:
        return self.description or f"{self.kind.label} {self.target}"


class IssueKind(Enum):
    CONFLICT = "conflict"
    RECOVERABLE = "recoverable"
    NOTE = "note"


@dataclass
class Issue:
    """Conflicto, fallo recuperable o nota para el resumen final."""
    kind: IssueKind
    resource: str
    message: str
    hint: Optional[str] = None


@dataclass
class Plan:
    actions: List[Action] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)

    def add(self, action: Action) -> None:
        self.actions.append(action)

    def conflict(self, resource: str, message: str, hint: Optional[str] = None) -> None:
        self.issues.append(Issue(IssueKind.CONFLICT, resource, message, hint))

    def recoverable(self, resource: str, message: str, hint: Optional[str] = None) -> None:
        self.issues.append(Issue(IssueKind.RECOVERABLE, resource, message, hint))

    def note(self, resource: str, message: str, hint: Optional[str] = None) -> None:
        self.issues.append(Issue(IssueKind.NOTE, resource, message, hint))

    def ordered(self) -> List[Action]:
        # sorted() es estable: dentro de una fase se respeta el orden de declaración
        return sorted(self.actions, key=lambda a: a.phase)

    @property
    def conflicts(self) -> List[Issue]:
        return [i for i in self.issues if i.kind == IssueKind.CONFLICT]

    @property
    def is_empty(self) -> bool:
        return not self.actions
