"""Shared TOML config-loading utilities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, TypeVar
import tomllib


@dataclass(frozen=True)
class BaseNamedConfig:
    """Minimal metadata shared by configs loaded from a directory."""

    name: str
    description: str | None
    file_path: Path


T = TypeVar("T", bound=BaseNamedConfig)


def read_toml(file_path: Path) -> dict[str, Any]:
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")
    with file_path.open("rb") as file:
        return tomllib.load(file)


def load_toml_configs(
    config_dir: Path,
    parser: Callable[[dict[str, Any], Path], T],
    *,
    duplicate_name_label: str = "config",
) -> list[T]:
    """Load all TOML files in a directory with duplicate-name validation."""
    if not config_dir.exists():
        raise FileNotFoundError(f"Config directory not found: {config_dir}")
    if not config_dir.is_dir():
        raise NotADirectoryError(f"Config path is not a directory: {config_dir}")

    config_files = sorted(config_dir.glob("*.toml"))
    if not config_files:
        raise ValueError(f"No .toml config files found in: {config_dir}")

    configs = [parser(read_toml(file_path), file_path) for file_path in config_files]

    names = [config.name for config in configs]
    if len(names) != len(set(names)):
        raise ValueError(f"Duplicate {duplicate_name_label} names found in {config_dir}: {names}")

    return configs


def require_str(table: dict[str, Any], key: str, *, file_path: Path, section: str) -> str:
    value = str(table.get(key, "")).strip()
    if not value:
        raise ValueError(f"{file_path}: [{section}].{key} is required")
    return value


def optional_str(table: dict[str, Any], key: str) -> str | None:
    value = table.get(key)
    return None if value is None else str(value)


__all__ = [
    "BaseNamedConfig",
    "load_toml_configs",
    "optional_str",
    "read_toml",
    "require_str",
]
