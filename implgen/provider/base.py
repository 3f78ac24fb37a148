"""Query surface of the type system that the generation pipeline runs against."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple

from ..models import AnnotationUsage, InterfaceReference, ParameterKind, ResolvedType, TypeRef


class ResolutionError(LookupError):
    """Raised when an interface reference cannot be bound to a class."""


class TypeResolutionError(ResolutionError):
    """Raised when an annotation names something the provider cannot resolve."""


class DeclarationKind(str, Enum):
    CLASS = "class"
    RECORD = "record"
    FUNCTION = "function"

    @property
    def is_type(self) -> bool:
        return self is not DeclarationKind.FUNCTION


@dataclass(frozen=True)
class DecoratorRef:
    """Syntactic view of one decorator expression."""

    name: str
    dotted: str
    arguments: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Declaration:
    """A declaration visible to the pipeline, identified by module and qualname."""

    module: str
    qualname: str
    kind: DeclarationKind
    decorators: Tuple[DecoratorRef, ...] = ()
    text: str = ""
    path: Optional[str] = None

    @property
    def identity(self) -> Tuple[str, str]:
        return self.module, self.qualname


@dataclass(frozen=True)
class MarkerLookup:
    """Result of asking the provider for marker usages: found with usages, or not found."""

    found: bool
    usages: Tuple[AnnotationUsage, ...] = ()

    @classmethod
    def not_found(cls) -> "MarkerLookup":
        return cls(found=False)

    @classmethod
    def with_usages(cls, usages: Iterable[AnnotationUsage]) -> "MarkerLookup":
        return cls(found=True, usages=tuple(usages))


@dataclass(frozen=True)
class TypeContext:
    """Scope in which annotation text is resolved."""

    module: str
    substitutions: Tuple[Tuple[str, TypeRef], ...] = ()

    def lookup(self, name: str) -> Optional[TypeRef]:
        for key, value in self.substitutions:
            if key == name:
                return value
        return None


class MemberKind(str, Enum):
    METHOD = "method"
    STATIC = "static"
    CLASS_METHOD = "class_method"
    PROPERTY = "property"
    SPECIAL = "special"
    OVERLOAD = "overload"
    ATTRIBUTE = "attribute"


@dataclass(frozen=True)
class ParameterSymbol:
    name: str
    kind: ParameterKind
    annotation: Optional[str] = None
    default: Optional[str] = None


@dataclass(frozen=True)
class MemberSymbol:
    """A member of an interface with its annotations still in source form."""

    name: str
    kind: MemberKind
    owner: str
    context: TypeContext
    is_async: bool = False
    parameters: Tuple[ParameterSymbol, ...] = ()
    returns: Optional[str] = None


@dataclass(frozen=True)
class InterfaceSymbol:
    """A resolved interface class plus the generic arguments it was referenced with."""

    type_ref: TypeRef
    module: str
    qualname: str
    context: TypeContext = field(default_factory=lambda: TypeContext(module=""))

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.qualname}"


class TypeSystemProvider(ABC):
    """Contract for the host type system the pipeline queries."""

    @abstractmethod
    def declarations(self) -> Iterable[Declaration]:
        """Return every declaration visible to this pass, in a stable order."""

    @abstractmethod
    def resolve_declaration(self, declaration: Declaration) -> Optional[ResolvedType]:
        """Bind ``declaration`` to a type, or return None when it cannot be bound."""

    @abstractmethod
    def find_markers(self, declaration: Declaration, marker_names: Iterable[str]) -> MarkerLookup:
        """Return the marker usages attached to ``declaration``."""

    @abstractmethod
    def resolve_interface(self, reference: InterfaceReference) -> InterfaceSymbol:
        """Bind an interface reference; raise ResolutionError when impossible."""

    @abstractmethod
    def members(self, interface: InterfaceSymbol) -> Iterable[MemberSymbol]:
        """Enumerate every member visible on ``interface``, inherited ones included."""

    @abstractmethod
    def resolve_type(self, expression: str, context: TypeContext) -> TypeRef:
        """Resolve annotation text; raise TypeResolutionError when impossible."""

    @abstractmethod
    def resolve_value(
        self, expression: str, context: TypeContext
    ) -> Tuple[Tuple[str, TypeRef], ...]:
        """Bind the dotted names a default-value expression references.

        Returns ``(source text, TypeRef)`` pairs in first-use order; builtins are
        omitted. Raise TypeResolutionError for a name that cannot be bound.
        """

    def source_text(self, module: str, qualname: str) -> str:
        """Return the declaration text of ``module.qualname`` for fingerprinting."""
        return ""


__all__ = [
    "Declaration",
    "DeclarationKind",
    "DecoratorRef",
    "InterfaceSymbol",
    "MarkerLookup",
    "MemberKind",
    "MemberSymbol",
    "ParameterSymbol",
    "ResolutionError",
    "TypeContext",
    "TypeResolutionError",
    "TypeSystemProvider",
]
