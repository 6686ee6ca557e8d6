"""
Shell integration — instala la función `gcd` en el rc del shell.

El binario solo imprime una ruta; el cambio de directorio lo hace una
función de shell que captura stdout y ejecuta `cd`. Los subcomandos y
los flags se pasan tal cual al binario.

Soporta bash, zsh, fish y PowerShell. La instalación es idempotente:
el bloque se añade una sola vez bajo MARKER.
"""

import os
from pathlib import Path

import structlog

from .errors import UnsupportedShell

logger = structlog.get_logger()

MARKER = "### GCD Integration"

# Subcomandos que no deben provocar un cd
_PASSTHROUGH = "index|list|prune|forget|install"

BASH_INTEGRATION = f"""
gcd() {{
    case "$1" in
        ""|-*|{_PASSTHROUGH})
            command gcd "$@"
            ;;
        *)
            local target
            target=$(command gcd "$@") || return $?
            cd "$target" || return 1
            ;;
    esac
}}
"""

ZSH_INTEGRATION = BASH_INTEGRATION

FISH_INTEGRATION = f"""
function gcd
    if test (count $argv) -eq 0
        command gcd
        return $status
    end
    switch $argv[1]
        case '-*' {_PASSTHROUGH.replace("|", " ")}
            command gcd $argv
        case '*'
            set -l target (command gcd $argv)
            or return $status
            cd $target
    end
end
"""

POWERSHELL_INTEGRATION = f"""
function gcd {{
    if ($args.Count -eq 0 -or $args[0] -like '-*' -or $args[0] -match '^({_PASSTHROUGH})$') {{
        & gcd.exe @args
        return
    }}
    $target = & gcd.exe @args
    if ($LASTEXITCODE -eq 0) {{
        Set-Location $target
    }}
}}
"""

SNIPPETS: dict[str, str] = {
    "bash": BASH_INTEGRATION,
    "zsh": ZSH_INTEGRATION,
    "fish": FISH_INTEGRATION,
    "ps": POWERSHELL_INTEGRATION,
}

SUPPORTED_SHELLS: list[str] = list(SNIPPETS)


def snippet_for(shell: str) -> str:
    """Devuelve el bloque de integración para un shell.

    Raises:
        UnsupportedShell: Si el shell no está soportado
    """
    try:
        return SNIPPETS[shell]
    except KeyError:
        raise UnsupportedShell(shell, SUPPORTED_SHELLS) from None


def rc_path(shell: str, home: Path | None = None) -> Path:
    """Archivo de arranque donde se instala la integración."""
    home = home or Path.home()
    if shell == "bash":
        return home / ".bashrc"
    if shell == "zsh":
        return home / ".zshrc"
    if shell == "fish":
        return home / ".config" / "fish" / "config.fish"
    if shell == "ps":
        base = Path(os.environ["USERPROFILE"]) if "USERPROFILE" in os.environ else home
        return base / "Documents" / "WindowsPowerShell" / "Microsoft.PowerShell_profile.ps1"
    raise UnsupportedShell(shell, SUPPORTED_SHELLS)


def install(shell: str, home: Path | None = None) -> tuple[Path, bool]:
    """Añade la integración al rc del shell si no está ya.

    Args:
        shell: bash, zsh, fish o ps
        home: Directorio home (por defecto el del usuario)

    Returns:
        (ruta del rc, True si se modificó)

    Raises:
        UnsupportedShell: Si el shell no está soportado
        OSError: Si el rc no se puede leer o escribir
    """
    snippet = snippet_for(shell)
    target = rc_path(shell, home)

    content = target.read_text(encoding="utf-8") if target.exists() else ""
    if MARKER in content:
        logger.info("shell.already_installed", shell=shell, path=str(target))
        return target, False

    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as handle:
        if content and not content.endswith("\n"):
            handle.write("\n")
        handle.write(f"\n{MARKER}\n{snippet}")

    logger.info("shell.installed", shell=shell, path=str(target))
    return target, True
