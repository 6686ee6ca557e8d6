"""
Escáner del sistema de archivos — detección de working directories.

Recorre un subárbol y emite cada directorio que contiene un directorio
marcador de control de versiones (por defecto `.git`).

Reglas del recorrido:
- Un repositorio detectado se emite y NO se desciende en él: los
  repositorios anidados (submódulos, checkouts vendorizados) no se indexan.
- Los enlaces simbólicos nunca se siguen (evita bucles con enlaces cíclicos).
- Los directorios ilegibles se registran como aviso y se saltan; nunca
  abortan el escaneo completo.
- Los directorios ocultos se recorren salvo que un patrón de exclusión
  los descarte.
"""

import fnmatch
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import structlog

from ..errors import InvalidRoot

logger = structlog.get_logger()


# Marcadores por defecto
DEFAULT_MARKERS: tuple[str, ...] = (".git",)

# Directorios que nunca contienen working directories útiles
DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    "node_modules",
    "target",
)


@dataclass
class ScanWarning:
    """Directorio que no se pudo leer durante el escaneo."""

    path: str
    error: str


def is_repository(
    path: str | Path,
    markers: tuple[str, ...] = DEFAULT_MARKERS,
    strict: bool = False,
) -> bool:
    """True si path contiene alguno de los marcadores como directorio real.

    Con strict=True, un marcador que no se puede inspeccionar por falta de
    permisos lanza PermissionError en vez de contar como ausente.
    """
    for marker in markers:
        try:
            info = os.lstat(os.path.join(path, marker))
        except PermissionError:
            if strict:
                raise
            continue
        except OSError:
            continue
        if stat.S_ISDIR(info.st_mode):
            return True
    return False


class RepoScanner:
    """Iterador perezoso de working directories bajo una raíz.

    Es finito y no reiniciable: una vez consumido, volver a iterarlo no
    produce nada. Cada escaneo necesita un RepoScanner nuevo.

    Usage:
        scanner = RepoScanner(Path("~/src").expanduser())
        for repo_path in scanner:
            ...
        print(scanner.warnings)
    """

    def __init__(
        self,
        root: str | Path,
        markers: tuple[str, ...] | list[str] = DEFAULT_MARKERS,
        exclude_dirs: tuple[str, ...] | list[str] = DEFAULT_EXCLUDE_DIRS,
    ) -> None:
        """Valida la raíz y prepara el recorrido.

        Args:
            root: Directorio raíz a escanear
            markers: Nombres de directorio que identifican un repositorio
            exclude_dirs: Patrones glob de directorios a no recorrer

        Raises:
            InvalidRoot: Si la raíz no existe o no es un directorio
        """
        raw = Path(root).expanduser()
        if not raw.exists():
            raise InvalidRoot(str(root), "does not exist")
        if not raw.is_dir():
            raise InvalidRoot(str(root), "not a directory")

        self.root = str(raw.resolve())
        self.markers = tuple(markers)
        self.exclude_dirs = tuple(exclude_dirs)
        self.warnings: list[ScanWarning] = []
        self.visited = 0
        self._iter = self._walk()

    def __iter__(self) -> "RepoScanner":
        return self

    def __next__(self) -> str:
        return next(self._iter)

    def _walk(self) -> Iterator[str]:
        """Recorrido top-down con poda in-place de dirnames."""
        for dirpath, dirnames, _filenames in os.walk(
            self.root, onerror=self._on_error, followlinks=False
        ):
            self.visited += 1

            if is_repository(dirpath, self.markers):
                logger.debug("scan.repo_found", path=dirpath)
                # No descender: los repos anidados no se indexan
                dirnames[:] = []
                yield dirpath
                continue

            dirnames[:] = sorted(
                d for d in dirnames
                if d not in self.markers
                and not self._is_excluded(d)
                and not os.path.islink(os.path.join(dirpath, d))
            )

    def _is_excluded(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.exclude_dirs)

    def _on_error(self, error: OSError) -> None:
        """os.walk llama aquí cuando un directorio no se puede listar."""
        path = error.filename or self.root
        warning = ScanWarning(path=str(path), error=error.strerror or str(error))
        self.warnings.append(warning)
        logger.warning("scan.unreadable", path=warning.path, error=warning.error)
