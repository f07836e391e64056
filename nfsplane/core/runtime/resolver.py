"""
Resolución de rutas de configuración y backups.

- declaration_path(): archivo declarativo a usar (opción CLI > NFSPLANE_CONFIG > fixture por defecto).
- backup_dir_override(): NFSPLANE_BACKUP_DIR, si está definido, reemplaza el backup_dir declarado.

El core NO lee ni escribe estos archivos; solo resuelve las rutas.
"""

import os
from pathlib import Path
from typing import Optional


DEFAULT_DECLARATION = Path(__file__).resolve().parents[3] / "nfstool" / "declarative" / "fixtures" / "default.yaml"


def declaration_path(explicit: Optional[Path] = None) -> Path:
    """Archivo declarativo efectivo."""
    if explicit:
        return Path(explicit).expanduser()
    env = os.environ.get("NFSPLANE_CONFIG", "").strip()
    if env:
        return Path(env).expanduser()
    return DEFAULT_DECLARATION


def backup_dir_override() -> Optional[str]:
    value = os.environ.get("NFSPLANE_BACKUP_DIR", "").strip()
    return value or None
