"""End-to-end generation over a source tree, including loading the generated units."""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import inspect
from pathlib import Path

import pytest

from implgen.orchestrator import Orchestrator
from tests._fixtures.source_tree import SourceTreeBuilder

TREE = {
    "shopkit/__init__.py": "",
    "shopkit/contracts/__init__.py": "from .orders import IOrderBook\nfrom .repo import IRepo\n",
    "shopkit/contracts/repo.py": """
        from typing import Generic, Optional, Protocol, TypeVar

        T = TypeVar("T")


        class IReader(Protocol[T]):
            async def get(self, key: str) -> Optional[T]: ...


        class IRepo(IReader[T], Protocol[T]):
            async def put(self, item: T, *, overwrite: bool = False) -> None: ...

            @property
            def size(self) -> int: ...
    """,
    "shopkit/contracts/orders.py": """
        from collections.abc import Awaitable
        from typing import Protocol

        from shopkit.models import Order


        class IOrderBook(Protocol):
            def place(self, order: Order) -> Awaitable[int]: ...

            def cancel(self, order_id: int) -> bool: ...
    """,
    "shopkit/models.py": """
        from dataclasses import dataclass


        @dataclass
        class Order:
            sku: str
            quantity: int = 1
    """,
    "shopkit/services.py": """
        from implgen import AddImplementation, add_implementation

        from shopkit.contracts import IOrderBook, IRepo
        from shopkit.models import Order


        @AddImplementation[IRepo[Order]]
        @AddImplementation[IOrderBook]
        class OrderService:
            pass


        @add_implementation(IRepo)
        class Cache[T]:
            pass
    """,
}


def _load(path: Path, name: str):
    spec = importlib.util.spec_from_file_location(name, path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_generate_tree_end_to_end(source_tree: SourceTreeBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    source_tree.write(TREE)
    root = source_tree.path()

    outcome = Orchestrator().run_generate(str(root), use_cache=False)

    assert outcome.report.identifiers == [
        "shopkit.services.OrderService.g.py",
        "shopkit.services.Cache[T].g.py",
    ]
    service_text = (root / "_generated" / "shopkit.services.OrderService.g.py").read_text(encoding="utf-8")
    assert "from shopkit.contracts.orders import IOrderBook" in service_text
    assert "from shopkit.contracts.repo import IRepo" in service_text
    assert "from shopkit.models import Order" in service_text
    assert "from typing import Optional" in service_text
    assert "async def put(self, item: Order, *, overwrite: bool = False) -> None:" in service_text
    assert "async def get(self, key: str) -> Optional[Order]:" in service_text
    assert "async def place(self, order: Order) -> int:" in service_text
    assert "# implgen: could not generate IOrderBook.cancel" in service_text
    assert "__implements__ = (IRepo[Order], IOrderBook)" in service_text

    monkeypatch.syspath_prepend(str(root))
    generated = _load(root / "_generated" / "shopkit.services.OrderService.g.py", "_implgen_order_service")
    service = generated.OrderService()
    assert asyncio.run(service.get("sku-1")) is None
    assert asyncio.run(service.place(object())) is None
    assert asyncio.run(service.cancel(1, force=True)) is None

    cache_text = (root / "_generated" / "shopkit.services.Cache[T].g.py").read_text(encoding="utf-8")
    assert "class Cache[T](_Cache_IRepo[T]):" in cache_text
    assert "async def put(self, item: T, *, overwrite: bool = False) -> None:" in cache_text
    assert "from shopkit.contracts.repo import IRepo, T" in cache_text


RELAY_TREE = {
    "relay/__init__.py": "",
    "relay/settings.py": "DEFAULT_TIMEOUT = 5.0\n",
    "relay/a.py": """
        from typing import Protocol


        class IRepo(Protocol):
            async def load(self, key: str) -> bytes: ...
    """,
    "relay/b.py": """
        import os
        from typing import Protocol

        from relay.settings import DEFAULT_TIMEOUT


        class IRepo(Protocol):
            async def save(self, key: str, timeout: float = DEFAULT_TIMEOUT, separator: str = os.sep) -> None: ...
    """,
    "relay/services.py": """
        from implgen import add_implementation

        from relay import a, b


        @add_implementation(a.IRepo, b.IRepo)
        class Both:
            pass
    """,
}


def test_generated_unit_imports_clashing_interfaces_and_default_names(
    source_tree: SourceTreeBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    source_tree.write(RELAY_TREE)
    root = source_tree.path()

    Orchestrator().run_generate(str(root), use_cache=False)

    path = root / "_generated" / "relay.services.Both.g.py"
    text = path.read_text(encoding="utf-8")
    assert "from relay.a import IRepo as _relay_a_IRepo" in text
    assert "from relay.b import IRepo as _relay_b_IRepo" in text
    assert "from relay.settings import DEFAULT_TIMEOUT" in text
    assert "from os import sep" in text
    assert (
        "async def save(self, key: str, timeout: float = DEFAULT_TIMEOUT, separator: str = sep) -> None:"
        in text
    )

    monkeypatch.syspath_prepend(str(root))
    generated = _load(path, "_implgen_relay_both")
    first = importlib.import_module("relay.a")
    second = importlib.import_module("relay.b")
    assert generated.Both.__implements__ == (first.IRepo, second.IRepo)
    assert first.IRepo in generated.Both.__mro__ and second.IRepo in generated.Both.__mro__
    assert inspect.signature(generated.Both.save).parameters["timeout"].default == 5.0
    assert asyncio.run(generated.Both().save("key")) is None
