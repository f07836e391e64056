"""
Pruebas de acceso en el cliente: crear, listar y leer archivos en el
montaje autofs como cada usuario declarado.

A diferencia del DiagnosticCollector, esto SÍ muta: crea un archivo de
prueba por usuario dentro del share. Solo se ejecuta bajo petición.
"""

import shlex
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from nfsplane.core.infra.contracts import HostContract


@dataclass
class AccessResult:
    user: str
    identity: str
    created: bool
    listed: bool
    read_reference: Optional[bool]
    detail: str = ""


def run_access_tests(host: HostContract, mount_path: str, users: List[str], stamp: Optional[str] = None) -> List[AccessResult]:
    """
    Ejecuta las pruebas como cada usuario

    El archivo del primer usuario sirve de referencia para la prueba de
    lectura del resto. Acceder al montaje dispara el montaje de autofs.
    """
    stamp = stamp or datetime.now().strftime("%Y%m%d-%H%M%S")
    base = f"autofs_test_{stamp}"
    reference = Path(mount_path) / f"{base}.{users[0]}.txt" if users else None
    results = []

    for user in users:
        test_file = Path(mount_path) / f"{base}.{user}.txt"
        _, identity = host.run_as_user(user, "id")
        created, create_out = host.run_as_user(user, f"touch {shlex.quote(str(test_file))}")
        listed, _ = host.run_as_user(user, f"ls -l {shlex.quote(mount_path)}")

        read_reference = None
        if reference is not None and reference.exists():
            read_reference, _ = host.run_as_user(user, f"cat {shlex.quote(str(reference))}")

        results.append(AccessResult(
            user=user,
            identity=identity,
            created=created,
            listed=listed,
            read_reference=read_reference,
            detail="" if created else create_out,
        ))

    return results
