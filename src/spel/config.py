"""TOML config loading for spel.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILENAME = "spel.toml"


@dataclass
class ParserConfig:
    """Guards against pathological input. ``None`` means unbounded."""

    max_expression_length: int | None = None
    max_node_count: int | None = None
    max_nesting_depth: int = 64


@dataclass
class OutputConfig:
    color: bool = True


@dataclass
class SpelConfig:
    parser: ParserConfig = field(default_factory=ParserConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find spel.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_FILENAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> SpelConfig:
    """Parse a spel.toml file into a SpelConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = SpelConfig()

    if "parser" in data:
        psr = data["parser"]
        config.parser = ParserConfig(
            max_expression_length=psr.get("max_expression_length"),
            max_node_count=psr.get("max_node_count"),
            max_nesting_depth=psr.get("max_nesting_depth", 64),
        )

    if "output" in data:
        out = data["output"]
        config.output = OutputConfig(
            color=out.get("color", True),
        )

    return config


def discover_config(start_path: Path | None = None) -> SpelConfig:
    """Load the nearest spel.toml, falling back to defaults when there is none."""
    try:
        return load_config(find_config(start_path))
    except FileNotFoundError:
        return SpelConfig()
