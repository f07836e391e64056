"""
Loader del archivo declarativo (nfsplane.yaml).
Carga YAML y lo convierte a modelos Pydantic.
"""

import yaml
from pathlib import Path
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape

from nfsplane.core.errors import ConfigError
from nfsplane.core.models import ClientConfig, Declaration, ServerConfig
from nfsplane.core.runtime.resolver import backup_dir_override, declaration_path


def _format_errors(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location or '<raíz>'}: {item.get('msg')}")
    return "; ".join(parts)


class DeclarationLoader:
    """Carga la declaración una sola vez y entrega la parte de cada rol"""

    def __init__(self, path: Optional[Path] = None, console: Optional[Console] = None):
        self.path = declaration_path(path)
        self.console = console
        self._declaration: Optional[Declaration] = None

    def load(self) -> Declaration:
        if self._declaration is not None:
            return self._declaration

        if not self.path.exists():
            raise ConfigError(f"No existe el archivo declarativo: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigError(f"YAML inválido en {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{self.path}: se esperaba un mapa en la raíz")

        try:
            self._declaration = Declaration(**data)
        except PydanticValidationError as e:
            raise ConfigError(f"{self.path}: {_format_errors(e)}") from e

        if self.console:
            self.console.print(f"[dim]Declaración: {escape(str(self.path))}[/dim]")
        return self._declaration

    def server(self) -> ServerConfig:
        config = self.load().server
        if config is None:
            raise ConfigError(f"{self.path}: falta la sección 'server'")
        override = backup_dir_override()
        return config.model_copy(update={"backup_dir": override}) if override else config

    def client(self) -> ClientConfig:
        config = self.load().client
        if config is None:
            raise ConfigError(f"{self.path}: falta la sección 'client'")
        override = backup_dir_override()
        return config.model_copy(update={"backup_dir": override}) if override else config


def load_declaration(path: Optional[Path] = None) -> Declaration:
    """Atajo: carga la declaración efectiva (opción > NFSPLANE_CONFIG > fixture)"""
    return DeclarationLoader(path).load()
