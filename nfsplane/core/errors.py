"""
Errores de nfsplane.

El core solo define excepciones; la CLI se encarga del formato de salida
y del código de salida.
"""

from typing import Optional


class NfsPlaneError(Exception):
    """Error base de nfsplane."""
    exit_code: int = 1


class ValidationError(NfsPlaneError):
    """Error de validación de modelos declarativos."""
    exit_code = 4


class ConfigError(NfsPlaneError):
    """Error de configuración (archivo faltante, YAML inválido, esquema)."""
    exit_code = 4


class PrivilegeError(NfsPlaneError):
    """No se ejecuta con privilegios de administrador."""
    exit_code = 1


class MissingArgumentError(NfsPlaneError):
    """Falta un argumento obligatorio (p. ej. el servidor NFS del cliente)."""
    exit_code = 2


class HostCommandError(NfsPlaneError):
    """Un colaborador externo (comando del sistema) terminó con error."""

    def __init__(self, command: list, returncode: Optional[int], output: str = ""):
        self.command = command
        self.returncode = returncode
        self.output = output
        detail = f": {output}" if output else ""
        super().__init__(f"{' '.join(command)} (rc={returncode}){detail}")


class ActionError(NfsPlaneError):
    """Error clasificado al aplicar una acción de reconciliación."""
    kind: str = "error"

    def __init__(self, message: str, action=None):
        self.action = action
        super().__init__(message)


class FatalActionError(ActionError):
    """Falló una acción crítica (p. ej. el servicio NFS no arranca). Aborta la ejecución."""
    kind = "fatal"
    exit_code = 3


class RecoverableActionError(ActionError):
    """Falló una acción best-effort (SELinux, bloqueo de login). Se registra y se continúa."""
    kind = "recoverable"


class ConflictError(ActionError):
    """El estado existente es incompatible con el declarado. Se omite el recurso."""
    kind = "conflict"
