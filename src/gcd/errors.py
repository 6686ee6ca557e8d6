"""
Jerarquía de errores de gcd.

Cada error fatal lleva su propio código de salida para que los scripts
puedan distinguir el motivo del fallo. Los códigos son estables entre
versiones: no reordenar ni reutilizar.
"""

# Exit codes
EXIT_SUCCESS = 0
EXIT_NO_MATCH = 1
EXIT_USAGE = 2          # Reservado para errores de uso de Click
EXIT_INVALID_ROOT = 3
EXIT_IO_ERROR = 4
EXIT_CONFIG_ERROR = 5
EXIT_AMBIGUOUS = 6
EXIT_UNSUPPORTED_SHELL = 7
EXIT_INTERRUPTED = 130


class GcdError(Exception):
    """Base de todos los errores de gcd."""

    exit_code: int = 1


class InvalidRoot(GcdError):
    """El directorio a escanear no existe o no es un directorio."""

    exit_code = EXIT_INVALID_ROOT

    def __init__(self, root: str, reason: str = "not a directory") -> None:
        self.root = root
        self.reason = reason
        super().__init__(f"invalid root '{root}': {reason}")


class NoMatch(GcdError):
    """Ningún repositorio indexado coincide con la consulta."""

    exit_code = EXIT_NO_MATCH

    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"no matching repository found for '{query}'")


class AmbiguousMatch(GcdError):
    """Varios repositorios empatan en la mejor puntuación (política 'report')."""

    exit_code = EXIT_AMBIGUOUS

    def __init__(self, query: str, candidates: list) -> None:
        self.query = query
        self.candidates = candidates
        super().__init__(
            f"'{query}' is ambiguous: {len(candidates)} repositories tie for the best match"
        )


class IndexCorrupt(GcdError):
    """El archivo de índice no se puede decodificar.

    Nunca llega al usuario: IndexStore.load() lo captura y devuelve un
    índice vacío para que siempre se pueda reindexar.
    """


class IndexIOError(GcdError):
    """Fallo de lectura/escritura del archivo de índice."""

    exit_code = EXIT_IO_ERROR


class ConfigError(GcdError):
    """Archivo de configuración inexistente o inválido."""

    exit_code = EXIT_CONFIG_ERROR


class UnsupportedShell(GcdError):
    """Shell sin integración disponible."""

    exit_code = EXIT_UNSUPPORTED_SHELL

    def __init__(self, shell: str, supported: list[str]) -> None:
        self.shell = shell
        super().__init__(
            f"unsupported shell '{shell}' (supported: {', '.join(supported)})"
        )
