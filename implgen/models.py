"""Core data models shared across implgen pipeline stages."""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

# Names bound in this module are visible everywhere without an import.
GLOBAL_NAMESPACE = "builtins"


class TypeKind(str, Enum):
    """Syntactic category of a type reference."""

    NAMED = "named"
    UNION = "union"
    NONE = "none"
    LITERAL = "literal"
    ELLIPSIS = "ellipsis"
    LIST = "list"
    TYPEVAR = "typevar"


@dataclass(frozen=True)
class TypeRef:
    """A resolved reference to a type, as it appears in an annotation."""

    name: str
    namespace: str = GLOBAL_NAMESPACE
    args: Tuple["TypeRef", ...] = ()
    kind: TypeKind = TypeKind.NAMED

    @property
    def import_name(self) -> str:
        """Name to import from ``namespace`` (the head of a dotted nested-class name)."""
        return self.name.split(".", 1)[0]

    @property
    def is_global(self) -> bool:
        return self.namespace == GLOBAL_NAMESPACE

    def local_name(self, aliases: Optional[ImportAliases] = None) -> str:
        """``name`` as bound in a unit, with an aliased import head substituted."""
        if aliases and self.kind is TypeKind.NAMED and not self.is_global:
            alias = aliases.get((self.namespace, self.import_name))
            if alias is not None:
                return alias + self.name[len(self.import_name) :]
        return self.name

    def render(self, aliases: Optional[ImportAliases] = None) -> str:
        """Return the minimally-qualified source text for this reference.

        ``aliases`` maps ``(namespace, import_name)`` to the local name used when
        two namespaces export the same name.
        """
        if self.kind is TypeKind.UNION:
            return " | ".join(arg.render(aliases) for arg in self.args)
        if self.kind is TypeKind.LIST:
            return "[" + ", ".join(arg.render(aliases) for arg in self.args) + "]"
        name = self.local_name(aliases)
        if self.kind is TypeKind.NAMED and self.args:
            return f"{name}[{', '.join(arg.render(aliases) for arg in self.args)}]"
        return name


ImportAliases = Mapping[Tuple[str, str], str]


NONE_TYPE = TypeRef(name="None", kind=TypeKind.NONE)


class ParameterKind(str, Enum):
    POSITIONAL_ONLY = "positional_only"
    POSITIONAL_OR_KEYWORD = "positional_or_keyword"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


@dataclass(frozen=True)
class Parameter:
    """One parameter of a method contract, self excluded."""

    name: str
    kind: ParameterKind = ParameterKind.POSITIONAL_OR_KEYWORD
    annotation: Optional[TypeRef] = None
    default: Optional[str] = None
    # Dotted names the default references, keyed by their source text.
    default_names: Tuple[Tuple[str, TypeRef], ...] = ()


class ResultKind(str, Enum):
    VOID = "void"
    VALUE = "value"
    ASYNC_VALUE = "async-value"


@dataclass(frozen=True)
class ResultShape:
    """Result descriptor of a signature; ``value`` is absent for bare completion."""

    kind: ResultKind
    value: Optional[TypeRef] = None

    @property
    def carries_value(self) -> bool:
        return self.kind is not ResultKind.VOID and self.value is not None

    def render_annotation(self, aliases: Optional[ImportAliases] = None) -> str:
        return self.value.render(aliases) if self.value is not None else "None"


@dataclass(frozen=True)
class Signature:
    """Method contract of one interface member."""

    name: str
    parameters: Tuple[Parameter, ...]
    result: ResultShape

    def type_refs(self) -> Iterator[TypeRef]:
        """Yield every type reference the stub for this signature mentions."""
        if self.result.value is not None:
            yield self.result.value
        for parameter in self.parameters:
            if parameter.annotation is not None:
                yield parameter.annotation
            for _, ref in parameter.default_names:
                yield ref


@dataclass(frozen=True)
class Diagnostic:
    """Human-readable record of a failure, embedded in generated output."""

    subject: str
    message: str
    trace: str = ""

    @classmethod
    def from_exception(cls, subject: str, exc: BaseException) -> "Diagnostic":
        message = f"{type(exc).__name__}: {exc}"
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(subject=subject, message=message, trace=trace.rstrip())

    def to_dict(self) -> Dict[str, str]:
        return {"subject": self.subject, "message": self.message, "trace": self.trace}


@dataclass(frozen=True)
class MemberFailure:
    """A member that could not be turned into a Signature."""

    name: str
    diagnostic: Diagnostic


MemberResult = Union[Signature, MemberFailure]


@dataclass(frozen=True)
class InterfaceContract:
    """A resolved interface and the ordered results for its qualifying members."""

    interface: TypeRef
    members: Tuple[MemberResult, ...] = ()

    @property
    def signatures(self) -> Tuple[Signature, ...]:
        return tuple(member for member in self.members if isinstance(member, Signature))

    @property
    def failures(self) -> Tuple[MemberFailure, ...]:
        return tuple(member for member in self.members if isinstance(member, MemberFailure))


@dataclass(frozen=True)
class InterfaceReference:
    """An interface named by a marker, as written in the declaring module."""

    expression: str
    module: str
    type_params: Tuple[str, ...] = ()


class MarkerKind(str, Enum):
    BARE = "bare"
    PARAMETERIZED = "parameterized"


@dataclass(frozen=True)
class AnnotationUsage:
    """One marker instance attached to a declaration."""

    module: str
    qualname: str
    kind: MarkerKind
    target: Optional[InterfaceReference] = None

    @classmethod
    def bare(cls, module: str, qualname: str) -> "AnnotationUsage":
        return cls(module=module, qualname=qualname, kind=MarkerKind.BARE)

    @classmethod
    def parameterized(
        cls, module: str, qualname: str, target: InterfaceReference
    ) -> "AnnotationUsage":
        return cls(module=module, qualname=qualname, kind=MarkerKind.PARAMETERIZED, target=target)


@dataclass(frozen=True)
class ResolvedType:
    """Fully identified declared type that owns marker usages."""

    module: str
    qualname: str
    type_params: Tuple[str, ...] = ()
    kind: str = "class"

    @property
    def name(self) -> str:
        return self.qualname.rsplit(".", 1)[-1]

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.qualname}"

    @property
    def arity(self) -> int:
        return len(self.type_params)

    @property
    def display_name(self) -> str:
        if not self.type_params:
            return self.name
        return f"{self.name}[{', '.join(self.type_params)}]"

    @property
    def fully_qualified_display(self) -> str:
        if not self.type_params:
            return self.qualified_name
        return f"{self.qualified_name}[{', '.join(self.type_params)}]"


@dataclass(frozen=True)
class GeneratedUnit:
    """Final text artifact for one resolved type."""

    identifier: str
    text: str
    owner: ResolvedType
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


# ----------------------------------------------------------------------
# Pure namespace reducers


def iter_type_imports(ref: TypeRef) -> Iterator[Tuple[str, str]]:
    """Yield ``(namespace, import_name)`` for ``ref`` and all nested arguments."""
    if ref.kind is TypeKind.NAMED and not ref.is_global:
        yield ref.namespace, ref.import_name
    for arg in ref.args:
        yield from iter_type_imports(arg)


def collect_namespaces(refs: Iterable[TypeRef]) -> Tuple[str, ...]:
    """Return the sorted, deduplicated namespaces touched by ``refs``."""
    return tuple(sorted({namespace for ref in refs for namespace, _ in iter_type_imports(ref)}))


def import_aliases(refs: Iterable[TypeRef]) -> Dict[Tuple[str, str], str]:
    """Local names for every imported name that more than one namespace provides.

    ``app.a.IRepo`` and ``app.b.IRepo`` become ``_app_a_IRepo`` and
    ``_app_b_IRepo``; names with a single provider are imported as is.
    """
    providers: Dict[str, Set[str]] = {}
    for ref in refs:
        for namespace, name in iter_type_imports(ref):
            providers.setdefault(name, set()).add(namespace)
    aliases: Dict[Tuple[str, str], str] = {}
    for name, namespaces in providers.items():
        if len(namespaces) > 1:
            for namespace in namespaces:
                aliases[(namespace, name)] = f"_{namespace.replace('.', '_')}_{name}"
    return aliases


def collect_imports(
    refs: Iterable[TypeRef], aliases: Optional[ImportAliases] = None
) -> Tuple[Tuple[str, Tuple[str, ...]], ...]:
    """Group imported names by namespace, both levels sorted.

    Clashing names are imported under their alias (``IRepo as _app_a_IRepo``);
    when ``aliases`` is omitted it is computed from ``refs``.
    """
    refs = list(refs)
    if aliases is None:
        aliases = import_aliases(refs)
    grouped: Dict[str, Set[str]] = {}
    for ref in refs:
        for namespace, name in iter_type_imports(ref):
            alias = aliases.get((namespace, name))
            grouped.setdefault(namespace, set()).add(f"{name} as {alias}" if alias else name)
    return tuple((namespace, tuple(sorted(grouped[namespace]))) for namespace in sorted(grouped))


def contract_type_refs(contracts: Iterable[InterfaceContract]) -> List[TypeRef]:
    """Every type reference a unit built from ``contracts`` will mention."""
    refs: List[TypeRef] = []
    for contract in contracts:
        refs.append(contract.interface)
        for signature in contract.signatures:
            refs.extend(signature.type_refs())
    return refs
