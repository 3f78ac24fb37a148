"""Persistent cache of generated units."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import Diagnostic

_CACHE_VERSION = 1


@dataclass(frozen=True)
class CachedUnit:
    """Text and diagnostics of a previously generated unit."""

    text: str
    diagnostics: Tuple[Diagnostic, ...] = ()


class UnitCache:
    """Stores unit text keyed by owning type, generator signature and declaration fingerprint."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str, *, signature: str, fingerprint: str) -> Optional[CachedUnit]:
        entry = self._entries.get(key)
        if not entry:
            return None
        if entry.get("signature") != signature or entry.get("fingerprint") != fingerprint:
            return None
        text = entry.get("text")
        if not isinstance(text, str):
            return None
        diagnostics: List[Diagnostic] = []
        for payload in entry.get("diagnostics") or []:
            diagnostic = _diagnostic_from_dict(payload)
            if diagnostic is not None:
                diagnostics.append(diagnostic)
        return CachedUnit(text=text, diagnostics=tuple(diagnostics))

    def store(
        self,
        key: str,
        *,
        signature: str,
        fingerprint: str,
        text: str,
        diagnostics: Iterable[Diagnostic] = (),
    ) -> None:
        self._entries[key] = {
            "signature": signature,
            "fingerprint": fingerprint,
            "text": text,
            "diagnostics": [diagnostic.to_dict() for diagnostic in diagnostics],
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> None:
        keep = set(keys_to_keep)
        removed = [key for key in self._entries if key not in keep]
        for key in removed:
            del self._entries[key]
        if removed:
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {"version": _CACHE_VERSION, "entries": self._entries}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        self._entries = {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str)
            and isinstance(raw, dict)
            and {"signature", "fingerprint", "text"} <= raw.keys()
        }


def _diagnostic_from_dict(payload: object) -> Optional[Diagnostic]:
    if not isinstance(payload, dict):
        return None
    subject = payload.get("subject")
    message = payload.get("message")
    trace = payload.get("trace", "")
    if not isinstance(subject, str) or not isinstance(message, str):
        return None
    return Diagnostic(subject=subject, message=message, trace=trace if isinstance(trace, str) else "")


__all__ = ["CachedUnit", "UnitCache"]
