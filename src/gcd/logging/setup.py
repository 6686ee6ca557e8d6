"""
Configuración del sistema de logging estructurado.

Dos pipelines independientes:
1. Archivo (JSON) — Si config.file está configurado. Captura todo (DEBUG+).
2. Console (stderr) — Nivel según config.level y los flags -v.

stdout queda reservado para la ruta resuelta que consume la función de
shell: ningún handler escribe nunca en stdout.

Sin -v: solo WARNING+. Con -v: añade INFO. Con -vv: añade DEBUG.
Con --quiet: silencia la consola (el archivo sigue activo).
"""

import logging
import sys
from pathlib import Path

import structlog

from ..config.schema import LoggingConfig

_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(config: LoggingConfig, quiet: bool = False) -> None:
    """Configura el logging con pipeline de archivo y de consola.

    Args:
        config: Configuración de logging (level, file, verbose)
        quiet: Si True, desactiva el handler de consola
    """
    # Limpiar configuración anterior
    logging.root.handlers.clear()
    structlog.reset_defaults()

    # Root logger captura todo; los handlers filtran por nivel
    logging.root.setLevel(logging.DEBUG)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    # ── Pipeline 1: Archivo JSON ──────────────────────────────────────────
    if config.file:
        file_path = Path(config.file).expanduser()
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(str(file_path), encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(file_handler)

    # ── Pipeline 2: Console (stderr) ──────────────────────────────────────
    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(_console_level(config))
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
                foreign_pre_chain=shared_processors,
            )
        )
        logging.root.addHandler(console_handler)

    if not logging.root.handlers:
        logging.root.addHandler(logging.NullHandler())

    # ── Configurar structlog ──────────────────────────────────────────────
    structlog.configure(
        processors=shared_processors + [
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # El CLI puede reconfigurar varias veces en el mismo proceso (tests)
        cache_logger_on_first_use=False,
    )


def _console_level(config: LoggingConfig) -> int:
    """Nivel más detallado entre config.level y el contador de -v."""
    return min(_LEVELS.get(config.level, logging.WARNING), _verbose_to_level(config.verbose))


def _verbose_to_level(verbose: int) -> int:
    """Convierte nivel de verbose a nivel de logging.

    Sin -v  → WARNING
    -v      → INFO
    -vv+    → DEBUG
    """
    levels = {
        0: logging.WARNING,
        1: logging.INFO,
    }
    return levels.get(verbose, logging.DEBUG)


def get_logger(name: str) -> structlog.BoundLogger:
    """Obtiene un logger estructurado.

    Args:
        name: Nombre del logger (usualmente __name__)

    Returns:
        Logger estructurado de structlog
    """
    return structlog.get_logger(name)
