"""Code synthesis: one companion module per resolved type."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, StrictUndefined

from ..failsafe import failed_unit, member_placeholder
from ..logging import get_logger
from ..models import (
    Diagnostic,
    ImportAliases,
    InterfaceContract,
    MemberFailure,
    Parameter,
    ParameterKind,
    ResolvedType,
    Signature,
    TypeRef,
    collect_imports,
    contract_type_refs,
    import_aliases,
)

DEFAULT_DIRECTIVE = "# pyright: strict"
UNIT_TEMPLATE = "unit.py.j2"
_INDENT = "    "
_PLACEHOLDER_RETURN = "return None  # type: ignore[return-value]"

_DEFAULT_TEMPLATES = {
    UNIT_TEMPLATE: '''\
{% if directive %}
{{ directive }}
{% endif %}
# Generated by implgen from {{ owner }}. Do not edit.
from __future__ import annotations
{% if imports %}

{% for namespace, names in imports %}
from {{ namespace }} import {{ names | join(", ") }}
{% endfor %}
{% endif %}
{% for mixin in mixins %}


class {{ mixin.header }}:
{% for line in mixin.lines %}
{{ line }}
{% endfor %}
{% endfor %}


class {{ companion }}:
    """Partial companion of {{ owner }}."""

    __implements__ = ({{ implements }})
''',
}


@dataclass(frozen=True)
class SynthesisResult:
    text: str
    diagnostics: Tuple[Diagnostic, ...] = ()


@dataclass(frozen=True)
class _Mixin:
    header: str
    lines: Tuple[str, ...]


class CodeSynthesizer:
    """Renders stub implementations of interface contracts for a type.

    Python has no explicit interface implementation, so each interface gets a
    mixin named after the owner and the interface; the companion class
    composes the mixins, keeping same-named members of different interfaces
    apart.
    """

    def __init__(
        self,
        *,
        directive: str | None = DEFAULT_DIRECTIVE,
        templates_dir: Path | None = None,
    ) -> None:
        self.directive = directive or ""
        self.templates_dir = templates_dir
        self._env = _create_env(templates_dir)
        self.logger = get_logger("synthesizer")

    def synthesize(
        self, resolved: ResolvedType, contracts: Sequence[InterfaceContract]
    ) -> SynthesisResult:
        """Always returns a unit; a type-level failure yields a comment-only unit."""
        try:
            return self._synthesize(resolved, contracts)
        except Exception as exc:
            return self.failure(resolved, exc)

    def failure(self, resolved: ResolvedType, exc: BaseException) -> SynthesisResult:
        diagnostic = Diagnostic.from_exception(resolved.qualified_name, exc)
        self.logger.warning("Generation failed for %s: %s", resolved.qualified_name, diagnostic.message)
        return SynthesisResult(text=failed_unit(diagnostic), diagnostics=(diagnostic,))

    # ------------------------------------------------------------------

    def _synthesize(
        self, resolved: ResolvedType, contracts: Sequence[InterfaceContract]
    ) -> SynthesisResult:
        type_params = _type_params(resolved)
        refs = contract_type_refs(contracts)
        aliases = import_aliases(refs)
        diagnostics: List[Diagnostic] = []
        used_names: Dict[str, int] = {}
        mixins: List[_Mixin] = []
        mixin_bases: List[str] = []

        for contract in contracts:
            name = _mixin_name(resolved, contract.interface, used_names)
            lines: List[str] = []
            for member in contract.members:
                if lines:
                    lines.append("")
                lines.extend(self._member_lines(resolved, contract, member, aliases, diagnostics))
            mixins.append(
                _Mixin(
                    header=f"{name}{type_params}({contract.interface.render(aliases)})",
                    lines=tuple(lines or [f"{_INDENT}pass"]),
                )
            )
            mixin_bases.append(f"{name}{type_params}")

        companion = f"{resolved.name}{type_params}"
        if mixin_bases:
            companion = f"{companion}({', '.join(mixin_bases)})"

        template = self._env.get_template(UNIT_TEMPLATE)
        text = template.render(
            directive=self.directive,
            owner=resolved.qualified_name,
            imports=collect_imports(refs, aliases),
            mixins=mixins,
            companion=companion,
            implements=implements_clause(contracts, aliases),
        )
        return SynthesisResult(text=text.rstrip() + "\n", diagnostics=tuple(diagnostics))

    def _member_lines(
        self,
        resolved: ResolvedType,
        contract: InterfaceContract,
        member: Signature | MemberFailure,
        aliases: ImportAliases,
        diagnostics: List[Diagnostic],
    ) -> List[str]:
        if isinstance(member, MemberFailure):
            diagnostics.append(member.diagnostic)
            return member_placeholder(member.name, member.diagnostic, indent=_INDENT)
        try:
            return render_stub(member, aliases)
        except Exception as exc:
            subject = f"{contract.interface.name}.{member.name}"
            diagnostic = Diagnostic.from_exception(subject, exc)
            self.logger.warning("Cannot render %s for %s: %s", subject, resolved.qualified_name, exc)
            diagnostics.append(diagnostic)
            return member_placeholder(member.name, diagnostic, indent=_INDENT)


def implements_clause(
    contracts: Sequence[InterfaceContract], aliases: Optional[ImportAliases] = None
) -> str:
    """Interfaces in annotation order, duplicates kept, as a tuple body."""
    rendered = [contract.interface.render(aliases) for contract in contracts]
    if len(rendered) == 1:
        return f"{rendered[0]},"
    return ", ".join(rendered)


def render_stub(signature: Signature, aliases: Optional[ImportAliases] = None) -> List[str]:
    parameters = ", ".join(["self", *render_parameters(signature.parameters, aliases)])
    returns = signature.result.render_annotation(aliases)
    body = _PLACEHOLDER_RETURN if signature.result.carries_value else "return"
    return [
        f"{_INDENT}async def {signature.name}({parameters}) -> {returns}:",
        f"{_INDENT}{_INDENT}{body}",
    ]


def render_parameters(
    parameters: Sequence[Parameter], aliases: Optional[ImportAliases] = None
) -> List[str]:
    """Render a parameter list, restoring the ``/`` and bare ``*`` separators."""
    rendered: List[str] = []
    open_positional_only = False
    star_emitted = False
    for parameter in parameters:
        if parameter.kind is ParameterKind.POSITIONAL_ONLY:
            open_positional_only = True
        elif open_positional_only:
            rendered.append("/")
            open_positional_only = False

        if parameter.kind is ParameterKind.VAR_POSITIONAL:
            star_emitted = True
            rendered.append(f"*{_parameter_text(parameter, aliases)}")
        elif parameter.kind is ParameterKind.VAR_KEYWORD:
            rendered.append(f"**{_parameter_text(parameter, aliases)}")
        else:
            if parameter.kind is ParameterKind.KEYWORD_ONLY and not star_emitted:
                rendered.append("*")
                star_emitted = True
            rendered.append(_parameter_text(parameter, aliases))
    if open_positional_only:
        rendered.append("/")
    return rendered


def render_default(parameter: Parameter, aliases: Optional[ImportAliases] = None) -> Optional[str]:
    """Default value text with each referenced name replaced by its local name in the unit."""
    if parameter.default is None:
        return None
    replacements = {text: ref.render(aliases) for text, ref in parameter.default_names}
    if all(text == local for text, local in replacements.items()):
        return parameter.default
    tree = _DefaultRewriter(replacements).visit(ast.parse(parameter.default, mode="eval"))
    return ast.unparse(tree.body)


class _DefaultRewriter(ast.NodeTransformer):
    def __init__(self, replacements: Mapping[str, str]) -> None:
        self.replacements = replacements

    def visit_Name(self, node: ast.Name) -> ast.expr:
        return self._replace(node) or node

    def visit_Attribute(self, node: ast.Attribute) -> ast.AST:
        return self._replace(node) or self.generic_visit(node)

    def _replace(self, node: ast.expr) -> Optional[ast.expr]:
        local = self.replacements.get(ast.unparse(node))
        if local is None:
            return None
        return ast.copy_location(ast.parse(local, mode="eval").body, node)


def _parameter_text(parameter: Parameter, aliases: Optional[ImportAliases] = None) -> str:
    text = parameter.name
    default = render_default(parameter, aliases)
    if parameter.annotation is not None:
        text = f"{text}: {parameter.annotation.render(aliases)}"
        if default is not None:
            text = f"{text} = {default}"
    elif default is not None:
        text = f"{text}={default}"
    return text


def _type_params(resolved: ResolvedType) -> str:
    return f"[{', '.join(resolved.type_params)}]" if resolved.type_params else ""


def _mixin_name(resolved: ResolvedType, interface: TypeRef, used: Dict[str, int]) -> str:
    base = f"_{resolved.name}_{interface.name.replace('.', '_')}"
    count = used.get(base, 0) + 1
    used[base] = count
    return base if count == 1 else f"{base}_{count}"


def _create_env(templates_dir: Path | None) -> Environment:
    loaders = []
    if templates_dir is not None:
        loaders.append(FileSystemLoader(str(templates_dir)))
    loaders.append(DictLoader(_DEFAULT_TEMPLATES))
    return Environment(
        loader=ChoiceLoader(loaders),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


__all__ = [
    "CodeSynthesizer",
    "DEFAULT_DIRECTIVE",
    "SynthesisResult",
    "implements_clause",
    "render_default",
    "render_parameters",
    "render_stub",
]
