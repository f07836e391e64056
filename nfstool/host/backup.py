"""
BackupManager: copia con timestamp de un archivo antes de mutarlo.

Los backups nunca se deduplican ni se borran: cada ejecución que muta un
archivo deja su propia copia como rastro de auditoría.
"""

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from rich.console import Console
from rich.markup import escape

from nfsplane.core.models import BackupRecord, DEFAULT_FILE_MODE


class BackupManager:
    """Gestiona los backups de una ejecución"""

    def __init__(self, backup_dir: str, console: Optional[Console] = None, clock=datetime.now):
        self.backup_dir = Path(backup_dir)
        self.console = console
        self.clock = clock
        self.records: List[BackupRecord] = []

    def _destination(self, source: Path, now: datetime) -> Path:
        stamp = now.strftime("%Y%m%d-%H%M%S")
        destination = self.backup_dir / f"{source.name}.bak.{stamp}"
        counter = 1
        while destination.exists():
            destination = self.backup_dir / f"{source.name}.bak.{stamp}.{counter}"
            counter += 1
        return destination

    def backup(self, path: str) -> Optional[BackupRecord]:
        """
        Copia el archivo (contenido + permisos + fechas) al directorio de backups

        Si el origen no existe no hay backup: se crea un archivo vacío con
        modo 0644 en la ruta de origen para que las escrituras siguientes
        partan de un estado definido.

        Returns:
            BackupRecord o None si el origen no existía
        """
        source = Path(path)
        if not source.exists():
            source.parent.mkdir(parents=True, exist_ok=True)
            source.touch()
            os.chmod(source, DEFAULT_FILE_MODE)
            if self.console:
                self.console.print(f"  [dim]No existía {escape(str(source))}; creado vacío (0644)[/dim]")
            return None

        self.backup_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.backup_dir, 0o700)

        now = self.clock()
        destination = self._destination(source, now)
        shutil.copy2(source, destination)

        record = BackupRecord(source=str(source), destination=str(destination), created_at=now)
        self.records.append(record)
        if self.console:
            self.console.print(f"  [dim]Backup: {escape(str(source))} → {escape(str(destination))}[/dim]")
        return record
