"""Type-system provider backed by Python's ``ast`` module."""

from __future__ import annotations

import ast
import builtins
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from ..logging import get_logger
from ..models import (
    GLOBAL_NAMESPACE,
    NONE_TYPE,
    AnnotationUsage,
    InterfaceReference,
    ParameterKind,
    ResolvedType,
    TypeKind,
    TypeRef,
)
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

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..source_scanner import SourceManifest

_BUILTIN_NAMES = frozenset(dir(builtins))
_RECORD_DECORATORS = {"dataclass", "define", "frozen", "attrs"}
_RECORD_BASES = {"NamedTuple", "TypedDict"}
_GENERIC_BASES = {"Generic", "Protocol"}
_TYPEVAR_FACTORIES = {"TypeVar", "ParamSpec", "TypeVarTuple"}
_PROPERTY_DECORATORS = {"property", "cached_property", "abstractproperty"}
_ACCESSOR_SUFFIXES = (".setter", ".getter", ".deleter")
_MAX_REEXPORT_DEPTH = 8


@dataclass(frozen=True)
class ModuleSource:
    """Source text of one module as handed to the provider."""

    name: str
    text: str
    path: Optional[str] = None
    is_package: bool = False


@dataclass
class _ModuleScope:
    name: str
    text: str
    tree: ast.Module
    path: Optional[str] = None
    is_package: bool = False
    lines: List[str] = field(default_factory=list)
    imports: Dict[str, Tuple[str, Optional[str]]] = field(default_factory=dict)
    module_imports: Set[str] = field(default_factory=set)
    classes: Dict[str, ast.ClassDef] = field(default_factory=dict)
    names: Set[str] = field(default_factory=set)
    typevars: Set[str] = field(default_factory=set)


class AstTypeSystemProvider(TypeSystemProvider):
    """Answers type-system queries from parsed module sources.

    All sources are parsed once at construction, so the view stays fixed for
    the whole pass even if files change on disk meanwhile.
    """

    def __init__(self, sources: Iterable[ModuleSource]) -> None:
        self.logger = get_logger("provider")
        self._modules: Dict[str, _ModuleScope] = {}
        for source in sources:
            if source.name in self._modules:
                self.logger.debug("Ignoring duplicate module %s (%s)", source.name, source.path)
                continue
            scope = self._parse(source)
            if scope is not None:
                self._modules[source.name] = scope

    @classmethod
    def from_sources(cls, sources: Mapping[str, str]) -> "AstTypeSystemProvider":
        """Build a provider from ``module name -> source text``; ``pkg.__init__`` keys mark packages."""
        modules = []
        for name, text in sources.items():
            is_package = name.endswith(".__init__")
            module_name = name[: -len(".__init__")] if is_package else name
            modules.append(ModuleSource(name=module_name, text=text, is_package=is_package))
        return cls(modules)

    @classmethod
    def from_manifest(cls, manifest: SourceManifest) -> "AstTypeSystemProvider":
        logger = get_logger("provider")
        modules = []
        for meta in manifest.modules:
            path = Path(manifest.root) / meta.path
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Skipping unreadable module %s: %s", meta.path, exc)
                continue
            modules.append(
                ModuleSource(name=meta.module, text=text, path=meta.path, is_package=meta.is_package)
            )
        return cls(modules)

    @property
    def module_names(self) -> List[str]:
        return list(self._modules)

    # ------------------------------------------------------------------
    # Declarations

    def declarations(self) -> Iterable[Declaration]:
        for scope in self._modules.values():
            yield from self._walk_declarations(scope, scope.tree.body, prefix="")

    def _walk_declarations(
        self, scope: _ModuleScope, body: Sequence[ast.stmt], prefix: str
    ) -> Iterator[Declaration]:
        for node in _flatten_statements(body):
            if isinstance(node, ast.ClassDef):
                qualname = f"{prefix}{node.name}"
                yield Declaration(
                    module=scope.name,
                    qualname=qualname,
                    kind=_class_kind(node),
                    decorators=tuple(_decorator_ref(expr) for expr in node.decorator_list),
                    text=_declaration_text(scope, node),
                    path=scope.path,
                )
                yield from self._walk_declarations(scope, node.body, prefix=f"{qualname}.")
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                qualname = f"{prefix}{node.name}"
                if node.decorator_list:
                    yield Declaration(
                        module=scope.name,
                        qualname=qualname,
                        kind=DeclarationKind.FUNCTION,
                        decorators=tuple(_decorator_ref(expr) for expr in node.decorator_list),
                        text=_declaration_text(scope, node),
                        path=scope.path,
                    )
                yield from self._walk_declarations(scope, node.body, prefix=f"{qualname}.<locals>.")

    def resolve_declaration(self, declaration: Declaration) -> Optional[ResolvedType]:
        if not declaration.kind.is_type:
            return None
        scope = self._modules.get(declaration.module)
        if scope is None:
            return None
        node = scope.classes.get(declaration.qualname)
        if node is None:
            # Function-local classes never land in the class table.
            return None
        return ResolvedType(
            module=scope.name,
            qualname=declaration.qualname,
            type_params=_class_type_params(node, scope),
            kind=declaration.kind.value,
        )

    def find_markers(self, declaration: Declaration, marker_names: Iterable[str]) -> MarkerLookup:
        names = set(marker_names)
        scope = self._modules.get(declaration.module)
        node = scope.classes.get(declaration.qualname) if scope is not None else None
        type_params = _class_type_params(node, scope) if node is not None and scope is not None else ()

        usages: List[AnnotationUsage] = []
        matched = False
        for decorator in declaration.decorators:
            if decorator.name not in names and decorator.dotted not in names:
                continue
            matched = True
            if not decorator.arguments:
                usages.append(AnnotationUsage.bare(declaration.module, declaration.qualname))
                continue
            for argument in decorator.arguments:
                reference = InterfaceReference(
                    expression=argument, module=declaration.module, type_params=type_params
                )
                usages.append(
                    AnnotationUsage.parameterized(declaration.module, declaration.qualname, reference)
                )
        if not matched:
            return MarkerLookup.not_found()
        return MarkerLookup.with_usages(usages)

    def source_text(self, module: str, qualname: str) -> str:
        scope = self._modules.get(module)
        if scope is None:
            return ""
        node = scope.classes.get(qualname)
        return _declaration_text(scope, node) if node is not None else ""

    # ------------------------------------------------------------------
    # Interfaces and members

    def resolve_interface(self, reference: InterfaceReference) -> InterfaceSymbol:
        scope = self._modules.get(reference.module)
        if scope is None:
            raise ResolutionError(f"Module {reference.module} is not part of this pass")
        context = TypeContext(
            module=reference.module,
            substitutions=tuple(
                (name, TypeRef(name=name, kind=TypeKind.TYPEVAR)) for name in reference.type_params
            ),
        )
        try:
            expression = ast.parse(reference.expression, mode="eval").body
        except SyntaxError as exc:
            raise ResolutionError(f"Invalid interface expression '{reference.expression}'") from exc

        base_expr, arg_exprs = _split_subscript(expression)
        parts = _dotted_parts(base_expr)
        if parts is None:
            raise ResolutionError(f"Interface '{reference.expression}' is not a class reference")
        module, qualname = self._locate_class(parts, scope, reference.expression)
        target_scope = self._modules[module]
        node = target_scope.classes[qualname]

        args = tuple(self._convert(arg, context) for arg in arg_exprs)
        params = _class_type_params(node, target_scope)
        if args and len(args) != len(params):
            raise ResolutionError(
                f"Interface {module}.{qualname} takes {len(params)} type argument(s), got {len(args)}"
            )

        return InterfaceSymbol(
            type_ref=TypeRef(name=qualname, namespace=module, args=args),
            module=module,
            qualname=qualname,
            context=TypeContext(module=module, substitutions=tuple(zip(params, args))),
        )

    def members(self, interface: InterfaceSymbol) -> Iterable[MemberSymbol]:
        collected: List[MemberSymbol] = []
        self._collect_members(
            interface.module, interface.qualname, interface.context, set(), collected, set()
        )
        return collected

    def _collect_members(
        self,
        module: str,
        qualname: str,
        context: TypeContext,
        seen: Set[str],
        collected: List[MemberSymbol],
        visited: Set[Tuple[str, str]],
    ) -> None:
        if (module, qualname) in visited:
            return
        visited.add((module, qualname))
        scope = self._modules[module]
        node = scope.classes[qualname]
        owner = f"{module}.{qualname}"

        for statement in node.body:
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                kind = _member_kind(statement)
                if kind is not MemberKind.OVERLOAD:
                    if statement.name in seen:
                        continue
                    seen.add(statement.name)
                collected.append(_member_symbol(statement, kind, owner, context))
            elif isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
                if statement.target.id in seen:
                    continue
                seen.add(statement.target.id)
                collected.append(
                    MemberSymbol(
                        name=statement.target.id,
                        kind=MemberKind.ATTRIBUTE,
                        owner=owner,
                        context=context,
                        returns=ast.unparse(statement.annotation),
                    )
                )

        for base in node.bases:
            base_expr, arg_exprs = _split_subscript(base)
            parts = _dotted_parts(base_expr)
            if parts is None:
                continue
            try:
                base_module, base_qualname = self._locate_class(parts, scope, ast.unparse(base))
            except ResolutionError:
                # Bases outside the scanned sources (Protocol, ABC, object...) add nothing.
                continue
            base_scope = self._modules[base_module]
            params = _class_type_params(base_scope.classes[base_qualname], base_scope)
            try:
                args = tuple(self._convert(arg, context) for arg in arg_exprs)
            except TypeResolutionError:
                args = ()
            base_context = TypeContext(module=base_module, substitutions=tuple(zip(params, args)))
            self._collect_members(base_module, base_qualname, base_context, seen, collected, visited)

    # ------------------------------------------------------------------
    # Annotations

    def resolve_type(self, expression: str, context: TypeContext) -> TypeRef:
        try:
            node = ast.parse(expression.strip(), mode="eval").body
        except SyntaxError as exc:
            raise TypeResolutionError(f"Invalid annotation '{expression}'") from exc
        return self._convert(node, context)

    def _convert(self, node: ast.expr, context: TypeContext) -> TypeRef:
        if isinstance(node, ast.Constant):
            if node.value is None:
                return NONE_TYPE
            if node.value is Ellipsis:
                return TypeRef(name="...", kind=TypeKind.ELLIPSIS)
            if isinstance(node.value, str):
                return self.resolve_type(node.value, context)
            return TypeRef(name=repr(node.value), kind=TypeKind.LITERAL)

        if isinstance(node, (ast.Name, ast.Attribute)):
            parts = _dotted_parts(node)
            if parts is None:
                raise TypeResolutionError(f"Unsupported annotation '{ast.unparse(node)}'")
            if len(parts) == 1:
                substituted = context.lookup(parts[0])
                if substituted is not None:
                    return substituted
            scope = self._modules.get(context.module)
            if scope is None:
                raise TypeResolutionError(f"Module {context.module} is not part of this pass")
            namespace, qualname = self._bind(parts, scope)
            return TypeRef(name=qualname, namespace=namespace)

        if isinstance(node, ast.Subscript):
            base = self._convert(node.value, context)
            if base.kind is not TypeKind.NAMED:
                raise TypeResolutionError(f"Cannot subscript '{ast.unparse(node.value)}'")
            elements = _subscript_elements(node)
            if base.name == "Literal":
                args = tuple(TypeRef(name=ast.unparse(e), kind=TypeKind.LITERAL) for e in elements)
            elif base.name == "Annotated" and elements:
                metadata = tuple(TypeRef(name=ast.unparse(e), kind=TypeKind.LITERAL) for e in elements[1:])
                args = (self._convert(elements[0], context),) + metadata
            else:
                args = tuple(self._convert(element, context) for element in elements)
            return replace(base, args=args)

        if isinstance(node, ast.Tuple) and not node.elts:
            return TypeRef(name="()", kind=TypeKind.LITERAL)

        if isinstance(node, ast.List):
            return TypeRef(
                name="",
                kind=TypeKind.LIST,
                args=tuple(self._convert(element, context) for element in node.elts),
            )

        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            members: List[TypeRef] = []
            for side in (node.left, node.right):
                converted = self._convert(side, context)
                members.extend(converted.args if converted.kind is TypeKind.UNION else (converted,))
            return TypeRef(name="|", kind=TypeKind.UNION, args=tuple(members))

        raise TypeResolutionError(f"Unsupported annotation '{ast.unparse(node)}'")

    def resolve_value(
        self, expression: str, context: TypeContext
    ) -> Tuple[Tuple[str, TypeRef], ...]:
        try:
            node = ast.parse(expression.strip(), mode="eval").body
        except SyntaxError as exc:
            raise TypeResolutionError(f"Invalid default value '{expression}'") from exc
        scope = self._modules.get(context.module)
        if scope is None:
            raise TypeResolutionError(f"Module {context.module} is not part of this pass")

        bound: Dict[str, TypeRef] = {}
        seen: Set[str] = set()
        for parts in _name_chains(node):
            text = ".".join(parts)
            if text in seen:
                continue
            seen.add(text)
            namespace, qualname = self._bind(parts, scope)
            if namespace != GLOBAL_NAMESPACE:
                bound[text] = TypeRef(name=qualname, namespace=namespace)
        return tuple(bound.items())

    # ------------------------------------------------------------------
    # Name binding

    def _bind(self, parts: Sequence[str], scope: _ModuleScope) -> Tuple[str, str]:
        """Map a dotted name used in ``scope`` to ``(defining namespace, qualname)``."""
        head = parts[0]
        if head in scope.names:
            return scope.name, ".".join(parts)
        if head in scope.imports:
            module, attribute = scope.imports[head]
            if attribute is not None:
                submodule = f"{module}.{attribute}"
                if submodule not in self._modules:
                    return module, ".".join([attribute, *parts[1:]])
                module = submodule
            if len(parts) == 1:
                raise TypeResolutionError(f"Module '{head}' used where a type was expected")
            # Longest dotted prefix that names a scanned module wins.
            for split in range(len(parts) - 1, 0, -1):
                candidate = ".".join([module, *parts[1:split]])
                if candidate in self._modules or candidate in scope.module_imports or split == 1:
                    return candidate, ".".join(parts[split:])
        if head in _BUILTIN_NAMES:
            return GLOBAL_NAMESPACE, ".".join(parts)
        raise TypeResolutionError(f"Cannot resolve name '{head}' in module {scope.name}")

    def _locate_class(
        self, parts: Sequence[str], scope: _ModuleScope, expression: str
    ) -> Tuple[str, str]:
        current_parts = list(parts)
        current_scope = scope
        for _ in range(_MAX_REEXPORT_DEPTH):
            try:
                module, qualname = self._bind(current_parts, current_scope)
            except TypeResolutionError as exc:
                raise ResolutionError(f"Cannot resolve interface '{expression}': {exc}") from exc
            target = self._modules.get(module)
            if target is None:
                break
            if qualname in target.classes:
                return module, qualname
            head = qualname.split(".", 1)[0]
            if head not in target.imports or target is current_scope:
                break
            # Follow a re-export such as ``from .greeter import IGreeter`` in a package.
            current_parts = qualname.split(".")
            current_scope = target
        raise ResolutionError(
            f"Cannot resolve interface '{expression}' in module {scope.name}: no such class in the scanned sources"
        )

    # ------------------------------------------------------------------
    # Parsing

    def _parse(self, source: ModuleSource) -> Optional[_ModuleScope]:
        try:
            tree = ast.parse(source.text, filename=source.path or source.name)
        except SyntaxError as exc:
            self.logger.warning("Skipping %s: cannot parse (%s)", source.path or source.name, exc)
            return None
        scope = _ModuleScope(
            name=source.name,
            text=source.text,
            tree=tree,
            path=source.path,
            is_package=source.is_package,
            lines=source.text.splitlines(),
        )
        for node in _flatten_statements(tree.body):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    scope.module_imports.add(alias.name)
                    if alias.asname:
                        scope.imports[alias.asname] = (alias.name, None)
                    else:
                        head = alias.name.split(".", 1)[0]
                        scope.imports[head] = (head, None)
            elif isinstance(node, ast.ImportFrom):
                base = _resolve_relative(scope.name, scope.is_package, node.level, node.module)
                for alias in node.names:
                    if alias.name == "*":
                        continue
                    scope.imports[alias.asname or alias.name] = (base, alias.name)
            elif isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
                scope.names.add(node.name)
            elif isinstance(node, ast.Assign):
                for target in node.targets:
                    if isinstance(target, ast.Name):
                        scope.names.add(target.id)
                        if _is_typevar_call(node.value):
                            scope.typevars.add(target.id)
            elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
                scope.names.add(node.target.id)
                if node.value is not None and _is_typevar_call(node.value):
                    scope.typevars.add(node.target.id)
            elif isinstance(node, ast.TypeAlias) and isinstance(node.name, ast.Name):
                scope.names.add(node.name.id)
        _index_classes(scope, tree.body, prefix="")
        return scope


# ----------------------------------------------------------------------
# AST helpers


def _flatten_statements(body: Sequence[ast.stmt]) -> Iterator[ast.stmt]:
    """Yield statements, descending into module-level ``if``/``try`` blocks."""
    for node in body:
        if isinstance(node, ast.If):
            yield from _flatten_statements(node.body)
            yield from _flatten_statements(node.orelse)
        elif isinstance(node, ast.Try):
            yield from _flatten_statements(node.body)
            for handler in node.handlers:
                yield from _flatten_statements(handler.body)
            yield from _flatten_statements(node.orelse)
            yield from _flatten_statements(node.finalbody)
        else:
            yield node


def _index_classes(scope: _ModuleScope, body: Sequence[ast.stmt], prefix: str) -> None:
    for node in _flatten_statements(body):
        if isinstance(node, ast.ClassDef):
            qualname = f"{prefix}{node.name}"
            scope.classes[qualname] = node
            _index_classes(scope, node.body, prefix=f"{qualname}.")


def _resolve_relative(module: str, is_package: bool, level: int, target: Optional[str]) -> str:
    if level == 0:
        return target or ""
    parts = module.split(".")
    if not is_package:
        parts = parts[:-1]
    if level > 1:
        parts = parts[: max(len(parts) - (level - 1), 0)]
    base = ".".join(parts)
    if target:
        return f"{base}.{target}" if base else target
    return base


def _dotted_parts(node: ast.expr) -> Optional[List[str]]:
    if isinstance(node, ast.Name):
        return [node.id]
    if isinstance(node, ast.Attribute):
        head = _dotted_parts(node.value)
        return None if head is None else [*head, node.attr]
    return None


def _name_chains(node: ast.AST) -> Iterator[List[str]]:
    """Yield the outermost dotted names (``a``, ``a.b.c``) read by an expression."""
    if isinstance(node, ast.Name) and not isinstance(node.ctx, ast.Load):
        return
    if isinstance(node, (ast.Name, ast.Attribute)):
        parts = _dotted_parts(node)
        if parts is not None:
            yield parts
            return
    for child in ast.iter_child_nodes(node):
        yield from _name_chains(child)


def _split_subscript(node: ast.expr) -> Tuple[ast.expr, List[ast.expr]]:
    if isinstance(node, ast.Subscript):
        return node.value, _subscript_elements(node)
    return node, []


def _subscript_elements(node: ast.Subscript) -> List[ast.expr]:
    # ``tuple[()]`` keeps its empty tuple as the single element.
    if isinstance(node.slice, ast.Tuple) and node.slice.elts:
        return list(node.slice.elts)
    return [node.slice]


def _decorator_ref(expression: ast.expr) -> DecoratorRef:
    target = expression
    arguments: Tuple[str, ...] = ()
    if isinstance(expression, ast.Call):
        target = expression.func
        arguments = tuple(ast.unparse(arg) for arg in expression.args)
    elif isinstance(expression, ast.Subscript):
        target = expression.value
        arguments = tuple(ast.unparse(element) for element in _subscript_elements(expression))
    parts = _dotted_parts(target)
    dotted = ".".join(parts) if parts else ast.unparse(target)
    return DecoratorRef(name=dotted.rsplit(".", 1)[-1], dotted=dotted, arguments=arguments)


def _decorator_names(node: ast.ClassDef | ast.FunctionDef | ast.AsyncFunctionDef) -> List[str]:
    return [_decorator_ref(expression).dotted for expression in node.decorator_list]


def _class_kind(node: ast.ClassDef) -> DeclarationKind:
    if any(name.rsplit(".", 1)[-1] in _RECORD_DECORATORS for name in _decorator_names(node)):
        return DeclarationKind.RECORD
    for base in node.bases:
        parts = _dotted_parts(base)
        if parts and parts[-1] in _RECORD_BASES:
            return DeclarationKind.RECORD
    return DeclarationKind.CLASS


def _class_type_params(node: ast.ClassDef, scope: _ModuleScope) -> Tuple[str, ...]:
    declared = getattr(node, "type_params", None) or []
    if declared:
        return tuple(param.name for param in declared)
    implicit: List[str] = []
    for base in node.bases:
        base_expr, elements = _split_subscript(base)
        parts = _dotted_parts(base_expr)
        names = [e.id for e in elements if isinstance(e, ast.Name)]
        if parts and parts[-1] in _GENERIC_BASES:
            # Generic[...] / Protocol[...] fix the order explicitly.
            return tuple(names)
        for name in names:
            if name in scope.typevars and name not in implicit:
                implicit.append(name)
    return tuple(implicit)


def _is_typevar_call(value: ast.expr) -> bool:
    if not isinstance(value, ast.Call):
        return False
    parts = _dotted_parts(value.func)
    return parts is not None and parts[-1] in _TYPEVAR_FACTORIES


def _declaration_text(scope: _ModuleScope, node: ast.stmt) -> str:
    decorators = getattr(node, "decorator_list", [])
    start = min([node.lineno, *(d.lineno for d in decorators)])
    end = node.end_lineno or node.lineno
    return "\n".join(scope.lines[start - 1 : end])


def _member_kind(node: ast.FunctionDef | ast.AsyncFunctionDef) -> MemberKind:
    names = _decorator_names(node)
    simple = {name.rsplit(".", 1)[-1] for name in names}
    if "overload" in simple:
        return MemberKind.OVERLOAD
    if "staticmethod" in simple:
        return MemberKind.STATIC
    if "classmethod" in simple:
        return MemberKind.CLASS_METHOD
    if simple & _PROPERTY_DECORATORS or any(name.endswith(_ACCESSOR_SUFFIXES) for name in names):
        return MemberKind.PROPERTY
    if node.name.startswith("__") and node.name.endswith("__"):
        return MemberKind.SPECIAL
    return MemberKind.METHOD


def _member_symbol(
    node: ast.FunctionDef | ast.AsyncFunctionDef,
    kind: MemberKind,
    owner: str,
    context: TypeContext,
) -> MemberSymbol:
    arguments = node.args
    positional = [(arg, ParameterKind.POSITIONAL_ONLY) for arg in arguments.posonlyargs]
    positional += [(arg, ParameterKind.POSITIONAL_OR_KEYWORD) for arg in arguments.args]
    defaults: List[Optional[ast.expr]] = [None] * (len(positional) - len(arguments.defaults))
    defaults += list(arguments.defaults)

    parameters: List[ParameterSymbol] = []
    for index, ((arg, param_kind), default) in enumerate(zip(positional, defaults)):
        if index == 0 and kind is not MemberKind.STATIC:
            continue
        parameters.append(_parameter_symbol(arg, param_kind, default))
    if arguments.vararg is not None:
        parameters.append(_parameter_symbol(arguments.vararg, ParameterKind.VAR_POSITIONAL, None))
    for arg, default in zip(arguments.kwonlyargs, arguments.kw_defaults):
        parameters.append(_parameter_symbol(arg, ParameterKind.KEYWORD_ONLY, default))
    if arguments.kwarg is not None:
        parameters.append(_parameter_symbol(arguments.kwarg, ParameterKind.VAR_KEYWORD, None))

    return MemberSymbol(
        name=node.name,
        kind=kind,
        owner=owner,
        context=context,
        is_async=isinstance(node, ast.AsyncFunctionDef),
        parameters=tuple(parameters),
        returns=ast.unparse(node.returns) if node.returns is not None else None,
    )


def _parameter_symbol(arg: ast.arg, kind: ParameterKind, default: Optional[ast.expr]) -> ParameterSymbol:
    return ParameterSymbol(
        name=arg.arg,
        kind=kind,
        annotation=ast.unparse(arg.annotation) if arg.annotation is not None else None,
        default=ast.unparse(default) if default is not None else None,
    )


__all__ = ["AstTypeSystemProvider", "ModuleSource"]
