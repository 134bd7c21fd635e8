"""Configuration management for the CLI."""

import os
from pathlib import Path
from typing import Any

import yaml


class Config:
    """Configuration management for the CLI application."""

    @staticmethod
    def from_file(path: Path) -> dict[str, Any]:
        """Load configuration from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ValueError(f"Error reading config file: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")
        return data

    @staticmethod
    def get_config_paths() -> list[Path]:
        """Get the default configuration file paths to check."""
        paths = []

        # User config
        xdg_config_home = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        )
        paths.append(xdg_config_home / "refmerge" / "config.yaml")

        # Project config
        paths.append(Path(".refmerge.yaml"))
        paths.append(Path("refmerge.yaml"))

        return paths


def default_data_dir() -> Path:
    """XDG data location used when nothing else is configured."""
    xdg_data_home = Path(
        os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
    )
    return xdg_data_home / "refmerge"


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from files and environment variables.

    Default locations are read in order, later files winning. An explicit
    ``path`` replaces the default locations.
    """
    config: dict[str, Any] = {}

    paths = [path] if path else Config.get_config_paths()
    for candidate in paths:
        if candidate.exists():
            config.update(Config.from_file(candidate))

    # Override with environment variables
    if data_dir := os.environ.get("REFMERGE_DATA_DIR"):
        config["data_dir"] = data_dir
    if storage_dir := os.environ.get("REFMERGE_STORAGE_DIR"):
        config["storage_dir"] = storage_dir

    return config


def resolve_paths(
    config: dict[str, Any], data_dir: Path | None = None
) -> tuple[Path, Path]:
    """Database file and attachment root for a loaded configuration.

    ``data_dir`` from the command line wins over everything, including
    explicit ``database`` and ``storage_dir`` keys.
    """
    if data_dir:
        base = Path(data_dir).expanduser()
        return base / "refmerge.db", base / "storage"

    base = Path(config.get("data_dir") or default_data_dir()).expanduser()
    database = Path(config.get("database") or base / "refmerge.db").expanduser()
    storage = Path(config.get("storage_dir") or base / "storage").expanduser()
    return database, storage
