"""Tests for the unit cache store."""

from __future__ import annotations

import json
from pathlib import Path

from implgen.models import Diagnostic
from implgen.stores import UnitCache


def test_unit_cache_round_trip(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache = UnitCache(cache_path)
    diagnostic = Diagnostic(subject="IRepo.get", message="ContractShapeError: bad", trace="Traceback")
    cache.store(
        "app.widgets.Widget",
        signature="sig-1",
        fingerprint="fp-abc",
        text="class Widget:\n    pass\n",
        diagnostics=[diagnostic],
    )
    cache.persist()

    loaded = UnitCache(cache_path)
    reuse = loaded.get("app.widgets.Widget", signature="sig-1", fingerprint="fp-abc")

    assert reuse is not None
    assert reuse.text == "class Widget:\n    pass\n"
    assert reuse.diagnostics == (diagnostic,)


def test_unit_cache_invalidates_on_signature_or_fingerprint_change(tmp_path: Path) -> None:
    cache = UnitCache(tmp_path / "cache.json")
    cache.store("a.B", signature="sig-1", fingerprint="fp", text="x = 1\n")

    assert cache.get("a.B", signature="sig-1", fingerprint="fp") is not None
    assert cache.get("a.B", signature="sig-2", fingerprint="fp") is None
    assert cache.get("a.B", signature="sig-1", fingerprint="fp-changed") is None


def test_unit_cache_prune_removes_unused(tmp_path: Path) -> None:
    cache = UnitCache(tmp_path / "cache.json")
    cache.store("a", signature="s", fingerprint="fp", text="")
    cache.store("b", signature="s", fingerprint="fp", text="")

    cache.prune(["a"])
    cache.persist()

    reloaded = UnitCache(tmp_path / "cache.json")
    assert len(reloaded) == 1
    assert reloaded.get("a", signature="s", fingerprint="fp") is not None
    assert reloaded.get("b", signature="s", fingerprint="fp") is None


def test_unit_cache_ignores_other_versions_and_corrupt_files(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache_path.write_text(json.dumps({"version": 99, "entries": {"a": {}}}), encoding="utf-8")
    assert len(UnitCache(cache_path)) == 0

    cache_path.write_text("{not json", encoding="utf-8")
    assert len(UnitCache(cache_path)) == 0


def test_persist_without_changes_does_not_write(tmp_path: Path) -> None:
    cache_path = tmp_path / "nested" / "cache.json"

    UnitCache(cache_path).persist()

    assert not cache_path.exists()
