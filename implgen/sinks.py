"""Destinations for generated units."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Protocol, Tuple

from .logging import get_logger


class OutputSink(Protocol):
    def add(self, identifier: str, text: str) -> None:
        ...


class MemorySink:
    """Collects units in insertion order; used for dry runs and tests."""

    def __init__(self) -> None:
        self.units: Dict[str, str] = {}

    def add(self, identifier: str, text: str) -> None:
        if identifier in self.units:
            raise ValueError(f"Unit {identifier} was already emitted")
        self.units[identifier] = text

    def items(self) -> List[Tuple[str, str]]:
        return list(self.units.items())


class DirectorySink:
    """Writes each unit to ``root/<identifier>``; unchanged files are left untouched."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.written: List[Path] = []
        self.unchanged: List[Path] = []
        self.removed: List[Path] = []
        self.logger = get_logger("sinks")

    def add(self, identifier: str, text: str) -> None:
        if "/" in identifier or "\\" in identifier or identifier in {"", ".", ".."}:
            raise ValueError(f"Invalid unit identifier: {identifier!r}")
        self.root.mkdir(parents=True, exist_ok=True)
        path = self.root / identifier
        if path.exists() and path.read_text(encoding="utf-8") == text:
            self.unchanged.append(path)
            return
        path.write_text(text, encoding="utf-8")
        self.written.append(path)
        self.logger.debug("Wrote %s", path)

    def prune(self, keep: Iterable[str], suffix: str) -> List[Path]:
        """Delete generated ``*<suffix>`` files under root whose identifier is not in ``keep``.

        Files without an implgen header or failure comment are left alone.
        """
        if not self.root.is_dir():
            return []
        keep_names = set(keep)
        for path in sorted(self.root.iterdir()):
            if not path.is_file() or not path.name.endswith(suffix) or path.name in keep_names:
                continue
            if not _is_generated(path):
                continue
            path.unlink()
            self.removed.append(path)
            self.logger.debug("Removed stale %s", path)
        return list(self.removed)


_GENERATED_MARKERS = ("# Generated by implgen", "# implgen: could not generate")


def _is_generated(path: Path) -> bool:
    try:
        head = path.read_text(encoding="utf-8").splitlines()[:3]
    except (OSError, UnicodeDecodeError):
        return False
    return any(line.startswith(_GENERATED_MARKERS) for line in head)


__all__ = ["DirectorySink", "MemorySink", "OutputSink"]
