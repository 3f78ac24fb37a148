"""Tests for implgen.pipeline.synthesizer."""

from __future__ import annotations

import ast
import textwrap
from pathlib import Path

from implgen.models import (
    Diagnostic,
    InterfaceContract,
    InterfaceReference,
    MemberFailure,
    Parameter,
    ParameterKind,
    ResolvedType,
    ResultKind,
    ResultShape,
    Signature,
    TypeKind,
    TypeRef,
)
from implgen.pipeline import CodeSynthesizer, InterfaceIntrospector, describe_all
from implgen.pipeline.synthesizer import render_parameters
from tests._fixtures.sample_sources import SAMPLE_MODULES
from tests._fixtures.source_tree import provider_from

WIDGET = ResolvedType(module="app.widgets", qualname="Widget")


def _contracts(*expressions: str):
    provider = provider_from(SAMPLE_MODULES)
    references = [InterfaceReference(expression, "app.widgets") for expression in expressions]
    return describe_all(InterfaceIntrospector(provider), references)


def test_greeter_unit_matches_expected_layout() -> None:
    result = CodeSynthesizer().synthesize(WIDGET, _contracts("IGreeter"))

    expected = textwrap.dedent(
        '''\
        # pyright: strict
        # Generated by implgen from app.widgets.Widget. Do not edit.
        from __future__ import annotations

        from app.contracts import IGreeter


        class _Widget_IGreeter(IGreeter):
            async def greet(self, name: str) -> str:
                return None  # type: ignore[return-value]

            async def say(self, name: str) -> str:
                return None  # type: ignore[return-value]


        class Widget(_Widget_IGreeter):
            """Partial companion of app.widgets.Widget."""

            __implements__ = (IGreeter,)
        '''
    )
    assert result.text == expected
    assert result.diagnostics == ()
    imports = [line for line in result.text.splitlines() if line.startswith("from ")]
    assert imports == ["from __future__ import annotations", "from app.contracts import IGreeter"]


def test_shared_member_names_stay_in_separate_mixins() -> None:
    result = CodeSynthesizer().synthesize(WIDGET, _contracts("IGreeter", "IFarewell"))
    tree = ast.parse(result.text)

    classes = {node.name: node for node in tree.body if isinstance(node, ast.ClassDef)}
    assert list(classes) == ["_Widget_IGreeter", "_Widget_IFarewell", "Widget"]
    farewell_say = classes["_Widget_IFarewell"].body[0]
    assert isinstance(farewell_say, ast.AsyncFunctionDef)
    assert ast.unparse(farewell_say.returns) == "None"
    assert isinstance(farewell_say.body[0], ast.Return)
    assert farewell_say.body[0].value is None
    assert "__implements__ = (IGreeter, IFarewell)" in result.text
    assert "from app.contracts import IFarewell, IGreeter" in result.text


def test_duplicate_interfaces_get_numbered_mixins() -> None:
    result = CodeSynthesizer().synthesize(WIDGET, _contracts("IGreeter", "IGreeter"))

    assert "class _Widget_IGreeter_2(IGreeter):" in result.text
    assert "class Widget(_Widget_IGreeter, _Widget_IGreeter_2):" in result.text
    assert "__implements__ = (IGreeter, IGreeter)" in result.text
    ast.parse(result.text)


def test_generic_owner_carries_type_parameters() -> None:
    repo = TypeRef(name="IRepo", namespace="store.api", args=(TypeRef(name="T", kind=TypeKind.TYPEVAR),))
    signature = Signature(
        name="get",
        parameters=(Parameter(name="key", annotation=TypeRef(name="str")),),
        result=ResultShape(ResultKind.ASYNC_VALUE, TypeRef(name="T", kind=TypeKind.TYPEVAR)),
    )
    owner = ResolvedType(module="store.impl", qualname="Box", type_params=("T",))

    result = CodeSynthesizer(directive=None).synthesize(owner, [InterfaceContract(repo, (signature,))])

    assert result.text.startswith("# Generated by implgen from store.impl.Box.")
    assert "class _Box_IRepo[T](IRepo[T]):" in result.text
    assert "class Box[T](_Box_IRepo[T]):" in result.text
    assert "from store.api import IRepo" in result.text
    ast.parse(result.text)


def test_failed_member_becomes_commented_placeholder() -> None:
    failure = MemberFailure(
        name="count",
        diagnostic=Diagnostic("IService.count", "ContractShapeError: not awaitable", "Traceback: here"),
    )
    ok = Signature(name="ping", parameters=(), result=ResultShape(ResultKind.ASYNC_VALUE))
    contract = InterfaceContract(TypeRef(name="IService", namespace="svc.api"), (failure, ok))

    result = CodeSynthesizer().synthesize(WIDGET, [contract])

    assert "    # implgen: could not generate IService.count" in result.text
    assert "    # ContractShapeError: not awaitable" in result.text
    assert "    async def count(self, *args: object, **kwargs: object) -> None:" in result.text
    assert "    async def ping(self) -> None:\n        return\n" in result.text
    assert result.diagnostics == (failure.diagnostic,)
    ast.parse(result.text)


def test_interface_without_members_gets_pass_body() -> None:
    contract = InterfaceContract(TypeRef(name="IMarker", namespace="app.contracts"))

    result = CodeSynthesizer().synthesize(WIDGET, [contract])

    assert "class _Widget_IMarker(IMarker):\n    pass\n" in result.text
    ast.parse(result.text)


def test_bare_marker_only_produces_plain_companion() -> None:
    result = CodeSynthesizer().synthesize(WIDGET, [])

    assert "class Widget:" in result.text
    assert "__implements__ = ()" in result.text
    ast.parse(result.text)


def test_template_failure_yields_comment_only_unit(tmp_path: Path) -> None:
    (tmp_path / "unit.py.j2").write_text("{{ not_provided }}\n", encoding="utf-8")

    result = CodeSynthesizer(templates_dir=tmp_path).synthesize(WIDGET, _contracts("IGreeter"))

    lines = result.text.splitlines()
    assert lines[0] == "# implgen: could not generate app.widgets.Widget"
    assert all(line.startswith("#") for line in lines)
    assert len(result.diagnostics) == 1
    ast.parse(result.text)


def test_template_override_is_used(tmp_path: Path) -> None:
    (tmp_path / "unit.py.j2").write_text("# custom {{ owner }}\nclass {{ companion }}:\n    pass\n", encoding="utf-8")

    result = CodeSynthesizer(templates_dir=tmp_path).synthesize(WIDGET, _contracts("IGreeter"))

    assert result.text == "# custom app.widgets.Widget\nclass Widget(_Widget_IGreeter):\n    pass\n"


def test_render_parameters_restores_separators() -> None:
    str_ref = TypeRef(name="str")
    parameters = [
        Parameter("key", ParameterKind.POSITIONAL_ONLY, str_ref),
        Parameter("limit", ParameterKind.POSITIONAL_OR_KEYWORD, TypeRef(name="int"), "10"),
        Parameter("strict", ParameterKind.KEYWORD_ONLY, None, "True"),
        Parameter("extra", ParameterKind.VAR_KEYWORD, str_ref),
    ]

    assert render_parameters(parameters) == [
        "key: str",
        "/",
        "limit: int = 10",
        "*",
        "strict=True",
        "**extra: str",
    ]


def test_render_parameters_keyword_only_after_var_positional() -> None:
    parameters = [
        Parameter("args", ParameterKind.VAR_POSITIONAL),
        Parameter("flag", ParameterKind.KEYWORD_ONLY, TypeRef(name="bool")),
    ]

    assert render_parameters(parameters) == ["*args", "flag: bool"]


def test_repeated_synthesis_is_byte_identical() -> None:
    synthesizer = CodeSynthesizer()
    contracts = _contracts("IGreeter", "IFarewell")

    assert synthesizer.synthesize(WIDGET, contracts).text == synthesizer.synthesize(WIDGET, contracts).text


def test_same_named_interfaces_are_imported_under_aliases() -> None:
    load = Signature(name="load", parameters=(), result=ResultShape(ResultKind.ASYNC_VALUE, TypeRef(name="bytes")))
    save = Signature(name="save", parameters=(), result=ResultShape(ResultKind.ASYNC_VALUE))
    contracts = [
        InterfaceContract(TypeRef(name="IRepo", namespace="app.a"), (load,)),
        InterfaceContract(TypeRef(name="IRepo", namespace="app.b"), (save,)),
    ]

    result = CodeSynthesizer().synthesize(WIDGET, contracts)

    assert "from app.a import IRepo as _app_a_IRepo\nfrom app.b import IRepo as _app_b_IRepo\n" in result.text
    assert "class _Widget_IRepo(_app_a_IRepo):\n    async def load(self) -> bytes:" in result.text
    assert "class _Widget_IRepo_2(_app_b_IRepo):\n    async def save(self) -> None:" in result.text
    assert "__implements__ = (_app_a_IRepo, _app_b_IRepo)" in result.text
    ast.parse(result.text)


def test_default_values_use_imported_local_names() -> None:
    parameters = (
        Parameter(
            "timeout",
            annotation=TypeRef(name="float"),
            default="DEFAULT_TIMEOUT",
            default_names=(("DEFAULT_TIMEOUT", TypeRef(name="DEFAULT_TIMEOUT", namespace="net.settings")),),
        ),
        Parameter(
            "separator",
            kind=ParameterKind.KEYWORD_ONLY,
            annotation=TypeRef(name="str"),
            default="os.sep * 2",
            default_names=(("os.sep", TypeRef(name="sep", namespace="os")),),
        ),
    )
    signature = Signature(name="fetch", parameters=parameters, result=ResultShape(ResultKind.ASYNC_VALUE))
    contract = InterfaceContract(TypeRef(name="IFetcher", namespace="net.api"), (signature,))

    result = CodeSynthesizer().synthesize(WIDGET, [contract])

    assert "from net.settings import DEFAULT_TIMEOUT\nfrom os import sep\n" in result.text
    assert (
        "    async def fetch(self, timeout: float = DEFAULT_TIMEOUT, *, separator: str = sep * 2) -> None:"
        in result.text
    )
    ast.parse(result.text)
