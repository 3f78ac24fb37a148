"""Configuration loading for implgen (.implgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .pipeline.introspector import DEFAULT_WRAPPER_TYPES
from .pipeline.selector import DEFAULT_MARKER_NAMES
from .pipeline.synthesizer import DEFAULT_DIRECTIVE

CONFIG_FILENAME = ".implgen.yml"
DEFAULT_SUFFIX = ".g.py"
DEFAULT_OUTPUT_DIR = "_generated"
DEFAULT_CACHE_PATH = ".implgen/cache.json"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class OutputConfig:
    """Where generated units are written and how they are named."""

    dir: str = DEFAULT_OUTPUT_DIR
    suffix: str = DEFAULT_SUFFIX


@dataclass
class CacheConfig:
    enabled: bool = True
    path: str = DEFAULT_CACHE_PATH


@dataclass
class ImplgenConfig:
    """Settings defined in .implgen.yml; every field has a usable default."""

    root: Path
    markers: List[str] = field(default_factory=lambda: list(DEFAULT_MARKER_NAMES))
    wrappers: List[str] = field(default_factory=lambda: list(DEFAULT_WRAPPER_TYPES))
    directive: Optional[str] = DEFAULT_DIRECTIVE
    output: OutputConfig = field(default_factory=OutputConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    workers: int = 1
    source_roots: List[str] = field(default_factory=list)
    exclude_paths: List[str] = field(default_factory=list)
    templates_dir: Optional[Path] = None

    @property
    def output_dir(self) -> Path:
        return self.root / self.output.dir

    @property
    def cache_path(self) -> Path:
        return self.root / self.cache.path


def load_config(config_path: Path) -> ImplgenConfig:
    """Load configuration from a root directory or a config file path."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ImplgenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = ImplgenConfig(root=root)
    if "markers" in data:
        config.markers = _as_str_list(data.get("markers")) or config.markers
    if "wrappers" in data:
        config.wrappers = _as_str_list(data.get("wrappers")) or config.wrappers
    if "directive" in data:
        # null, false or an empty string disables the directive line.
        directive = data.get("directive")
        config.directive = directive.strip() if isinstance(directive, str) and directive.strip() else None

    output_data = _as_dict(data.get("output"))
    if output_data:
        config.output = OutputConfig(
            dir=_as_str(output_data.get("dir")) or DEFAULT_OUTPUT_DIR,
            suffix=_as_str(output_data.get("suffix")) or DEFAULT_SUFFIX,
        )
        if "/" in config.output.suffix:
            raise ConfigError("output.suffix must not contain a path separator")

    cache_data = _as_dict(data.get("cache"))
    if cache_data:
        enabled = _as_bool(cache_data.get("enabled"))
        config.cache = CacheConfig(
            enabled=True if enabled is None else enabled,
            path=_as_str(cache_data.get("path")) or DEFAULT_CACHE_PATH,
        )

    if "workers" in data:
        workers = _as_int(data.get("workers"))
        if workers is None or workers < 1:
            raise ConfigError("workers must be a positive integer")
        config.workers = workers

    config.source_roots = _as_str_list(data.get("source_roots"))
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    templates_dir = _as_str(data.get("templates_dir"))
    config.templates_dir = root / templates_dir if templates_dir else None
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["CacheConfig", "ConfigError", "ImplgenConfig", "OutputConfig", "load_config"]
