"""
Fixtures compartidas: aislamiento del entorno y creación de repositorios.
"""

import logging
from pathlib import Path
from typing import Callable

import pytest
import structlog


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Cada test usa su propio directorio de configuración y logging limpio."""
    monkeypatch.setenv("GCD_HOME", str(tmp_path / "gcd-home"))
    for var in ("GCD_INDEX_FILE", "GCD_TIE_BREAK", "GCD_LOG_LEVEL", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(var, raising=False)
    yield
    logging.root.handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def make_repo() -> Callable[..., Path]:
    """Crea un working directory (directorio con un marcador dentro)."""

    def _make(path: Path, marker: str = ".git") -> Path:
        (path / marker).mkdir(parents=True, exist_ok=True)
        return path

    return _make
