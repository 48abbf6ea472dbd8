"""Emitter options and their TOML configuration file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

# Table read from a standalone config file
CONFIG_TABLE = "typed-stores"


@dataclass(frozen=True)
class EmitterOptions:
    """Options controlling where and how store modules are emitted."""

    output_dir: Path = Path("tsp-output")
    store_dir_name: str = "store"
    file_extension: str = ".ts"
    strict: bool = False
    keep_going: bool = False

    @property
    def store_dir(self) -> Path:
        """Directory the store modules are written to."""
        return self.output_dir / self.store_dir_name

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> EmitterOptions:
        """Build options from a mapping, using kebab- or snake-case keys.

        Raises:
            ValueError: An unknown key or a value of the wrong type is present.
        """
        known = {f.name: f for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = key.replace("-", "_")
            if name not in known:
                raise ValueError(f"Unknown option '{key}'")
            if name == "output_dir":
                if not isinstance(value, str):
                    raise ValueError(f"Option '{key}' must be a string")
                value = Path(value)
            elif name in ("strict", "keep_going"):
                if not isinstance(value, bool):
                    raise ValueError(f"Option '{key}' must be a boolean")
            elif not isinstance(value, str):
                raise ValueError(f"Option '{key}' must be a string")
            values[name] = value
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> EmitterOptions:
        """Return a copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_options(config_path: Path | str) -> EmitterOptions:
    """Load options from a TOML file.

    A ``pyproject.toml`` is read from its ``[tool.typed-stores]`` table, any
    other file from its ``[typed-stores]`` table. A file without the table
    yields the defaults. A relative ``output-dir`` is taken relative to the
    config file's directory.

    Raises:
        FileNotFoundError: The config file does not exist.
        ValueError: The file is not valid TOML or holds unknown options.
    """
    if isinstance(config_path, str):
        config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            document = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

    if config_path.name == "pyproject.toml":
        table = document.get("tool", {}).get(CONFIG_TABLE, {})
    else:
        table = document.get(CONFIG_TABLE, {})

    options = EmitterOptions.from_mapping(table)
    has_output_dir = "output-dir" in table or "output_dir" in table
    if has_output_dir and not options.output_dir.is_absolute():
        options = replace(options, output_dir=config_path.parent / options.output_dir)
    return options
