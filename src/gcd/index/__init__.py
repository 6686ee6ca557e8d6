"""
Módulo index — descubrimiento y persistencia de working directories.

Proporciona el escáner del sistema de archivos, el modelo del índice,
su persistencia en JSON y el manager que orquesta build/update.
"""

from .manager import IndexManager, ScanReport
from .models import Index, RepoRecord
from .scanner import RepoScanner, ScanWarning, is_repository
from .store import IndexStore

__all__ = [
    "Index",
    "IndexManager",
    "IndexStore",
    "RepoRecord",
    "RepoScanner",
    "ScanReport",
    "ScanWarning",
    "is_repository",
]
