"""Module sources shared by pipeline tests."""

from __future__ import annotations

CONTRACTS = """
    from typing import Awaitable, Protocol

    class IGreeter(Protocol):
        async def greet(self, name: str) -> str: ...

        async def say(self, name: str) -> str: ...


    class IFarewell(Protocol):
        def say(self) -> Awaitable[None]: ...
"""

WIDGETS = """
    from implgen import AddImplementation, add_implementation

    from app.contracts import IFarewell, IGreeter


    @AddImplementation[IGreeter]
    class Widget:
        pass


    @add_implementation(IGreeter, IFarewell)
    class Gadget:
        pass
"""

SAMPLE_MODULES = {"app.contracts": CONTRACTS, "app.widgets": WIDGETS}
