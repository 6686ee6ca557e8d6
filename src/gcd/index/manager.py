"""
Index Manager — orquesta escaneos y mantiene el índice persistido.

Dos formas de incorporar un subárbol:
- build(root): reemplaza todo lo indexado bajo root con el resultado
  del escaneo.
- update(root): fusiona. Añade lo nuevo, refresca last_seen de lo ya
  conocido y solo elimina entradas del subárbol que ya no son
  repositorios en disco.

Tras cada operación que modifica el índice se llama a store.save(),
de modo que un proceso interrumpido pierde como mucho el escaneo en curso.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import structlog

from .models import Index, RepoRecord, is_under
from .scanner import (
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_MARKERS,
    RepoScanner,
    ScanWarning,
    is_repository,
)
from .store import IndexStore

logger = structlog.get_logger()


@dataclass
class ScanReport:
    """Resultado de un build/update."""

    root: str
    added: list[str] = field(default_factory=list)
    refreshed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)
    visited: int = 0
    elapsed_ms: float = 0.0

    @property
    def found(self) -> int:
        return len(self.added) + len(self.refreshed)


class IndexManager:
    """Único escritor del índice durante un build/update."""

    def __init__(
        self,
        store: IndexStore,
        markers: tuple[str, ...] | list[str] = DEFAULT_MARKERS,
        exclude_dirs: tuple[str, ...] | list[str] = DEFAULT_EXCLUDE_DIRS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Inicializa el manager.

        Args:
            store: Persistencia del índice
            markers: Directorios marcador de control de versiones
            exclude_dirs: Patrones de directorios a no recorrer
            clock: Fuente de timestamps para last_seen
        """
        self.store = store
        self.markers = tuple(markers)
        self.exclude_dirs = tuple(exclude_dirs)
        self.clock = clock

    def load(self) -> Index:
        return self.store.load()

    def save(self, index: Index) -> None:
        self.store.save(index)

    def build(self, root: str | Path) -> ScanReport:
        """Reindexa root desde cero.

        Las entradas fuera de root se conservan; todas las de dentro se
        sustituyen por lo que encuentre el escaneo.

        Raises:
            InvalidRoot: Si root no existe o no es un directorio
            IndexIOError: Si el índice no se puede leer o escribir
        """
        start_ms = time.monotonic() * 1000
        scanner = self._scanner(root)
        index = self.load()

        previous = set(index.paths_under(scanner.root))
        for path in previous:
            index.remove(path)

        now = self.clock()
        report = ScanReport(root=scanner.root)
        for repo_path in scanner:
            index.upsert(RepoRecord.for_path(repo_path, last_seen=now))
            if repo_path in previous:
                report.refreshed.append(repo_path)
            else:
                report.added.append(repo_path)

        found = set(report.added) | set(report.refreshed)
        report.removed = sorted(previous - found)
        self._finish(report, scanner, start_ms)

        self.save(index)
        logger.info(
            "index.built",
            root=report.root,
            found=report.found,
            removed=len(report.removed),
            warnings=len(report.warnings),
            elapsed_ms=report.elapsed_ms,
        )
        return report

    def update(self, root: str | Path) -> ScanReport:
        """Fusiona un nuevo escaneo de root con el índice existente.

        Raises:
            InvalidRoot: Si root no existe o no es un directorio
            IndexIOError: Si el índice no se puede leer o escribir
        """
        start_ms = time.monotonic() * 1000
        scanner = self._scanner(root)
        index = self.load()

        now = self.clock()
        report = ScanReport(root=scanner.root)
        seen: set[str] = set()
        for repo_path in scanner:
            seen.add(repo_path)
            if index.upsert(RepoRecord.for_path(repo_path, last_seen=now)):
                report.added.append(repo_path)
            else:
                report.refreshed.append(repo_path)

        # Lo que el escaneo no vio solo se elimina si consta que ya no es un
        # repositorio
        skipped = [warning.path for warning in scanner.warnings]
        for path in index.paths_under(scanner.root):
            if path not in seen and self._vanished(path, skipped):
                index.remove(path)
                report.removed.append(path)

        self._finish(report, scanner, start_ms)

        self.save(index)
        logger.info(
            "index.updated",
            root=report.root,
            added=len(report.added),
            refreshed=len(report.refreshed),
            removed=len(report.removed),
            warnings=len(report.warnings),
            elapsed_ms=report.elapsed_ms,
        )
        return report

    def prune(self) -> list[str]:
        """Elimina del índice todas las rutas que ya no son repositorios.

        Returns:
            Rutas eliminadas, ordenadas.
        """
        index = self.load()
        removed = [
            record.path for record in index.records()
            if self._vanished(record.path)
        ]
        for path in removed:
            index.remove(path)

        if removed:
            self.save(index)
            logger.info("index.pruned", removed=len(removed))
        return removed

    def forget(self, path: str | Path) -> bool:
        """Quita una única entrada del índice.

        Returns:
            True si la ruta estaba indexada.
        """
        index = self.load()
        target = str(path)
        if index.remove(target) is None:
            # Probar también con la ruta normalizada
            target = str(Path(path).expanduser().resolve())
            if index.remove(target) is None:
                return False

        self.save(index)
        logger.info("index.forgotten", path=target)
        return True

    def _vanished(self, path: str, skipped: list[str] | None = None) -> bool:
        """True solo si consta que path ya no es un repositorio.

        Las rutas bajo un directorio que el escaneo no pudo leer, o cuyo
        marcador no se puede inspeccionar por permisos, se conservan.
        """
        if any(is_under(path, root) for root in skipped or ()):
            return False
        try:
            return not is_repository(path, self.markers, strict=True)
        except PermissionError:
            logger.debug("index.keep_unreadable", path=path)
            return False

    def _scanner(self, root: str | Path) -> RepoScanner:
        return RepoScanner(root, markers=self.markers, exclude_dirs=self.exclude_dirs)

    def _finish(self, report: ScanReport, scanner: RepoScanner, start_ms: float) -> None:
        report.warnings = list(scanner.warnings)
        report.visited = scanner.visited
        report.elapsed_ms = round(time.monotonic() * 1000 - start_ms, 1)
