"""
Cargador de configuración con deep merge.

Orden de precedencia (de menor a mayor):
1. Defaults (definidos en los schemas Pydantic)
2. Archivo YAML (--config, o config.yaml en el directorio de configuración)
3. Variables de entorno
4. Argumentos CLI

El merge es recursivo para preservar todas las claves en todos los niveles.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .schema import AppConfig, default_config_dir

CONFIG_FILENAME = "config.yaml"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge recursivo de diccionarios.

    Args:
        base: Diccionario base
        override: Diccionario que sobreescribe valores del base

    Returns:
        Nuevo diccionario con valores merged. Override gana en conflictos de hojas.

    Example:
        >>> base = {"a": {"b": 1, "c": 2}, "d": 3}
        >>> override = {"a": {"b": 99}, "e": 4}
        >>> deep_merge(base, override)
        {"a": {"b": 99, "c": 2}, "d": 3, "e": 4}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def find_config_file(config_path: Path | None) -> Path | None:
    """Resuelve qué archivo YAML usar.

    Un path explícito debe existir. Sin path explícito se usa
    config.yaml del directorio de configuración solo si existe.
    """
    if config_path:
        return config_path
    candidate = default_config_dir() / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_yaml_config(config_path: Path | None) -> dict[str, Any]:
    """Carga configuración desde archivo YAML.

    Args:
        config_path: Path al archivo YAML, o None para omitir

    Returns:
        Diccionario con la configuración, o dict vacío si no hay archivo

    Raises:
        ConfigError: Si el archivo no existe o no es YAML válido
    """
    if not config_path:
        return {}

    if not config_path.exists():
        raise ConfigError(f"configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"cannot read {config_path}: {e.strerror or e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top-level value must be a mapping")
    return data


def load_env_overrides() -> dict[str, Any]:
    """Carga overrides desde variables de entorno.

    Variables soportadas:
        GCD_INDEX_FILE: sobreescribe index.file
        GCD_TIE_BREAK: sobreescribe match.tie_break
        GCD_LOG_LEVEL: sobreescribe logging.level

    Returns:
        Diccionario con overrides desde env vars
    """
    overrides: dict[str, Any] = {}

    if index_file := os.environ.get("GCD_INDEX_FILE"):
        overrides.setdefault("index", {})["file"] = index_file

    if tie_break := os.environ.get("GCD_TIE_BREAK"):
        overrides.setdefault("match", {})["tie_break"] = tie_break.lower()

    if log_level := os.environ.get("GCD_LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = log_level.lower()

    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Aplica overrides desde argumentos CLI.

    Args:
        config_dict: Configuración base (ya merged con YAML y env)
        cli_args: Diccionario con argumentos CLI

    Returns:
        Configuración con overrides de CLI aplicados
    """
    overrides: dict[str, Any] = {}

    if cli_args.get("index_file"):
        overrides.setdefault("index", {})["file"] = cli_args["index_file"]

    if cli_args.get("tie_break"):
        overrides.setdefault("match", {})["tie_break"] = cli_args["tie_break"]

    if cli_args.get("log_file"):
        overrides.setdefault("logging", {})["file"] = cli_args["log_file"]

    if cli_args.get("verbose"):
        overrides.setdefault("logging", {})["verbose"] = cli_args["verbose"]

    return deep_merge(config_dict, overrides)


def load_config(
    config_path: Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> AppConfig:
    """Carga y valida la configuración completa de la aplicación.

    Args:
        config_path: Path al archivo YAML de configuración
        cli_args: Diccionario con argumentos de la CLI

    Returns:
        AppConfig validado y completo

    Raises:
        ConfigError: Si el archivo no existe, no es YAML válido o la
            configuración final no pasa la validación
    """
    cli_args = cli_args or {}

    yaml_config = load_yaml_config(find_config_file(config_path))
    merged = deep_merge(yaml_config, load_env_overrides())
    merged = apply_cli_overrides(merged, cli_args)

    try:
        return AppConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
