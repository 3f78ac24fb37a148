"""Source tree scanning: which modules a generation pass sees."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .config import ConfigError, ImplgenConfig, load_config
from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    ".idea",
    ".implgen",
}

_SOURCE_SUFFIX = ".py"


@dataclass(frozen=True)
class ModuleMeta:
    """One scanned module: path relative to the scan root plus its dotted name."""

    path: str
    module: str
    is_package: bool = False


@dataclass
class SourceManifest:
    root: str
    modules: List[ModuleMeta] = field(default_factory=list)

    def module_names(self) -> List[str]:
        return [meta.module for meta in self.modules]


@dataclass
class IgnoreRule:
    """An ignore rule parsed from .gitignore or ``exclude_paths``."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool

    @property
    def has_slash(self) -> bool:
        return "/" in self.pattern

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern or (self.directory_only and not is_dir):
            return False
        if self.anchored or self.has_slash:
            return fnmatchcase(rel_path, self.pattern) or (
                self.directory_only and rel_path.startswith(f"{self.pattern}/")
            )
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None
    directory_only = pattern.endswith("/")
    pattern = pattern.rstrip("/")
    anchored = pattern.startswith("/")
    pattern = pattern.lstrip("/")
    return IgnoreRule(pattern=pattern, directory_only=directory_only, anchored=anchored, negate=negate)


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []
    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        rule = build_ignore_rule(line[1:] if negate else line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def module_name_for(rel_path: str) -> tuple[str, bool]:
    """Map ``pkg/sub/mod.py`` to ``("pkg.sub.mod", False)`` and ``pkg/__init__.py`` to ``("pkg", True)``."""
    parts = rel_path[: -len(_SOURCE_SUFFIX)].split("/")
    if parts[-1] == "__init__":
        return ".".join(parts[:-1]), True
    return ".".join(parts), False


class SourceScanner:
    """Walks a source tree and lists its Python modules."""

    def __init__(self) -> None:
        self.logger = get_logger("scanner")

    def scan(self, root: str, config: ImplgenConfig | None = None) -> SourceManifest:
        """Return the modules under ``root`` in a stable order."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Source path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Source path is not a directory: {root}")

        if config is None:
            try:
                config = load_config(root_path)
            except ConfigError as exc:
                self.logger.warning("Ignoring invalid configuration: %s", exc)
                config = ImplgenConfig(root=root_path)

        rules = parse_gitignore(root_path / ".gitignore")
        rules.extend(
            rule for rule in (build_ignore_rule(p) for p in config.exclude_paths) if rule is not None
        )
        generated_dir = build_ignore_rule(f"/{config.output.dir}/")
        if generated_dir is not None:
            rules.append(generated_dir)

        modules: List[ModuleMeta] = []
        seen: set[str] = set()
        for base in self._source_bases(root_path, config):
            for path in self._iter_sources(root_path, base, rules):
                rel_path = path.relative_to(root_path).as_posix()
                module, is_package = module_name_for(path.relative_to(base).as_posix())
                if not module or module in seen:
                    continue
                seen.add(module)
                modules.append(ModuleMeta(path=rel_path, module=module, is_package=is_package))
        self.logger.debug("Scanned %d module(s) under %s", len(modules), root_path)
        return SourceManifest(root=str(root_path), modules=modules)

    def _source_bases(self, root: Path, config: ImplgenConfig) -> List[Path]:
        if not config.source_roots:
            return [root]
        bases: List[Path] = []
        for entry in config.source_roots:
            base = (root / entry).resolve()
            if not base.is_dir():
                self.logger.warning("Source root %s does not exist; skipping", entry)
                continue
            bases.append(base)
        return bases

    @staticmethod
    def _iter_sources(root: Path, base: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(base):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
            dirnames[:] = sorted(
                name
                for name in dirnames
                if name not in _EXCLUDED_DIRS
                and name.isidentifier()
                and not should_ignore(f"{rel_dir}/{name}" if rel_dir else name, True, rules)
            )
            for filename in sorted(filenames):
                if not filename.endswith(_SOURCE_SUFFIX):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if should_ignore(rel_path, False, rules):
                    continue
                yield current_dir / filename


__all__ = [
    "IgnoreRule",
    "ModuleMeta",
    "SourceManifest",
    "SourceScanner",
    "build_ignore_rule",
    "module_name_for",
    "parse_gitignore",
    "should_ignore",
]
