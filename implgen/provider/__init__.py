"""Type-system providers the generation pipeline can query."""

from __future__ import annotations

from .base import (
    Declaration,
    DeclarationKind,
    DecoratorRef,
    InterfaceSymbol,
    MarkerLookup,
    MemberKind,
    MemberSymbol,
    ParameterSymbol,
    ResolutionError,
    TypeContext,
    TypeResolutionError,
    TypeSystemProvider,
)
from .python_ast import AstTypeSystemProvider, ModuleSource

__all__ = [
    "AstTypeSystemProvider",
    "Declaration",
    "DeclarationKind",
    "DecoratorRef",
    "InterfaceSymbol",
    "MarkerLookup",
    "MemberKind",
    "MemberSymbol",
    "ModuleSource",
    "ParameterSymbol",
    "ResolutionError",
    "TypeContext",
    "TypeResolutionError",
    "TypeSystemProvider",
]
