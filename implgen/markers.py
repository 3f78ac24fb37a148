"""Runtime marker that opts a class into stub generation.

The marker only records metadata; implgen reads it statically from source::

    @AddImplementation[IGreeter]
    @add_implementation(IFarewell, IAuditable)
    class Widget:
        ...

``@AddImplementation`` without a subscript is the bare form and names no
interface. Markers may be stacked; :func:`declared_interfaces` returns the
interfaces in source order.
"""

from __future__ import annotations

from typing import Any, Callable, Tuple, TypeVar

_T = TypeVar("_T", bound=type)

MARKER_ATTRIBUTE = "__implgen_interfaces__"


def _mark(cls: _T, interfaces: Tuple[Any, ...]) -> _T:
    if not isinstance(cls, type):
        raise TypeError("implementation markers can only decorate classes")
    existing: Tuple[Any, ...] = cls.__dict__.get(MARKER_ATTRIBUTE, ())
    # Decorators apply bottom-up, so prepending keeps source order.
    setattr(cls, MARKER_ATTRIBUTE, tuple(interfaces) + existing)
    return cls


class _AddImplementationMarker:
    """Bare (``@AddImplementation``) and parameterized (``@AddImplementation[I]``) marker."""

    def __call__(self, cls: _T) -> _T:
        return _mark(cls, ())

    def __getitem__(self, interfaces: Any) -> Callable[[_T], _T]:
        if not isinstance(interfaces, tuple):
            interfaces = (interfaces,)

        def decorator(cls: _T) -> _T:
            return _mark(cls, interfaces)

        return decorator

    def __repr__(self) -> str:
        return "AddImplementation"


AddImplementation = _AddImplementationMarker()


def add_implementation(*interfaces: Any) -> Callable[[_T], _T]:
    """Call form of the marker; with no arguments it behaves like the bare form."""

    def decorator(cls: _T) -> _T:
        return _mark(cls, interfaces)

    return decorator


def declared_interfaces(cls: type) -> Tuple[Any, ...]:
    """Return the interfaces recorded on ``cls`` by implementation markers."""
    return tuple(cls.__dict__.get(MARKER_ATTRIBUTE, ()))


__all__ = ["AddImplementation", "MARKER_ATTRIBUTE", "add_implementation", "declared_interfaces"]
