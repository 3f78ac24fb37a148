"""Interface introspection: members of an interface as Signature entries."""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import (
    Diagnostic,
    InterfaceContract,
    InterfaceReference,
    MemberFailure,
    MemberResult,
    Parameter,
    ResultKind,
    ResultShape,
    Signature,
    TypeKind,
    TypeRef,
)
from ..provider.base import InterfaceSymbol, MemberKind, MemberSymbol, TypeSystemProvider

DEFAULT_WRAPPER_TYPES: Tuple[str, ...] = (
    "typing.Awaitable",
    "collections.abc.Awaitable",
    "typing.Coroutine",
    "collections.abc.Coroutine",
    "asyncio.Future",
    "asyncio.Task",
)

_COROUTINE_NAMES = {"Coroutine"}


class ContractShapeError(TypeError):
    """Raised when a member's return type is not an awaitable wrapper."""


class InterfaceIntrospector:
    """Turns interface members into Signatures; every result is treated as async."""

    def __init__(
        self, provider: TypeSystemProvider, wrapper_types: Sequence[str] | None = None
    ) -> None:
        self.provider = provider
        self.wrapper_types: FrozenSet[Tuple[str, str]] = frozenset(
            _split_qualified(name) for name in (wrapper_types or DEFAULT_WRAPPER_TYPES)
        )
        self.logger = get_logger("introspector")

    def introspect(self, reference: InterfaceReference) -> InterfaceContract:
        """Resolve ``reference`` and describe its qualifying members.

        Resolution errors propagate: an unknown interface is a type-level failure.
        """
        interface = self.provider.resolve_interface(reference)
        return self.describe(interface)

    def describe(self, interface: InterfaceSymbol) -> InterfaceContract:
        results: List[MemberResult] = []
        for member in self.provider.members(interface):
            if member.kind is not MemberKind.METHOD:
                self.logger.debug(
                    "Skipping %s.%s (%s)", interface.qualified_name, member.name, member.kind.value
                )
                continue
            try:
                results.append(self.signature_for(member))
            except Exception as exc:
                subject = f"{interface.qualname}.{member.name}"
                self.logger.warning("Cannot describe %s: %s", subject, exc)
                results.append(
                    MemberFailure(name=member.name, diagnostic=Diagnostic.from_exception(subject, exc))
                )
        return InterfaceContract(interface=interface.type_ref, members=tuple(results))

    def signature_for(self, member: MemberSymbol) -> Signature:
        declared = self._resolve(member.returns, member)
        parameters = tuple(
            Parameter(
                name=parameter.name,
                kind=parameter.kind,
                annotation=self._resolve(parameter.annotation, member),
                default=parameter.default,
                default_names=self._bind_default(parameter.default, member),
            )
            for parameter in member.parameters
        )
        return Signature(
            name=member.name,
            parameters=parameters,
            result=self.result_shape(member, declared),
        )

    def result_shape(self, member: MemberSymbol, declared: Optional[TypeRef]) -> ResultShape:
        if member.is_async:
            # ``async def`` annotations already name the awaited type.
            return ResultShape(ResultKind.ASYNC_VALUE, _value_or_none(declared))

        if declared is None:
            raise ContractShapeError(
                f"Method {member.name} must be async or return an awaitable; it has no return annotation"
            )
        if declared.kind is not TypeKind.NAMED or not self.is_wrapper(declared):
            raise ContractShapeError(
                f"Method {member.name} must be async or return an awaitable, got {declared.render()}"
            )
        if not declared.args:
            return ResultShape(ResultKind.ASYNC_VALUE)
        if declared.name in _COROUTINE_NAMES and len(declared.args) == 3:
            return ResultShape(ResultKind.ASYNC_VALUE, _value_or_none(declared.args[-1]))
        if len(declared.args) != 1:
            raise ContractShapeError(
                f"Method {member.name} returns {declared.render()}; expected exactly one type argument"
            )
        return ResultShape(ResultKind.ASYNC_VALUE, _value_or_none(declared.args[0]))

    def is_wrapper(self, ref: TypeRef) -> bool:
        return (ref.namespace, ref.name) in self.wrapper_types

    def _resolve(self, expression: Optional[str], member: MemberSymbol) -> Optional[TypeRef]:
        if expression is None:
            return None
        return self.provider.resolve_type(expression, member.context)

    def _bind_default(
        self, expression: Optional[str], member: MemberSymbol
    ) -> Tuple[Tuple[str, TypeRef], ...]:
        if expression is None:
            return ()
        return self.provider.resolve_value(expression, member.context)


def describe_all(
    introspector: InterfaceIntrospector, references: Iterable[InterfaceReference]
) -> Tuple[InterfaceContract, ...]:
    """Introspect ``references`` in order, duplicates included."""
    return tuple(introspector.introspect(reference) for reference in references)


def _value_or_none(ref: Optional[TypeRef]) -> Optional[TypeRef]:
    if ref is None or ref.kind is TypeKind.NONE:
        return None
    return ref


def _split_qualified(name: str) -> Tuple[str, str]:
    module, _, attribute = name.rpartition(".")
    return module, attribute


__all__ = [
    "ContractShapeError",
    "DEFAULT_WRAPPER_TYPES",
    "InterfaceIntrospector",
    "describe_all",
]
