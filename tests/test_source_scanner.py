"""Tests for implgen.source_scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from implgen.source_scanner import SourceScanner, build_ignore_rule, module_name_for, should_ignore
from tests._fixtures.source_tree import SourceTreeBuilder


def test_scan_lists_modules_with_names(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            "app/__init__.py": "",
            "app/widgets.py": "class Widget:\n    pass\n",
            "app/sub/__init__.py": "",
            "app/sub/deep.py": "x = 1\n",
            "README.md": "# readme\n",
            ".venv/lib/site.py": "print('nope')\n",
        }
    )

    manifest = source_tree.scan()

    assert manifest.root == str(source_tree.path().resolve())
    assert manifest.module_names() == ["app", "app.widgets", "app.sub", "app.sub.deep"]
    by_module = {meta.module: meta for meta in manifest.modules}
    assert by_module["app"].is_package
    assert by_module["app.widgets"].path == "app/widgets.py"


def test_scan_respects_gitignore_and_config_excludes(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            ".gitignore": "build/\n*_pb2.py\n",
            ".implgen.yml": "exclude_paths:\n  - migrations/\n",
            "app/models.py": "",
            "app/models_pb2.py": "",
            "build/lib/app.py": "",
            "migrations/0001.py": "",
            "_generated/app.widgets.Widget.g.py": "",
        }
    )

    assert source_tree.scan().module_names() == ["app.models"]


def test_scan_uses_source_roots(source_tree: SourceTreeBuilder) -> None:
    source_tree.write(
        {
            ".implgen.yml": "source_roots: [src]\n",
            "src/pkg/__init__.py": "",
            "src/pkg/core.py": "",
            "scripts/tool.py": "",
        }
    )

    manifest = source_tree.scan()

    assert manifest.module_names() == ["pkg", "pkg.core"]
    assert manifest.modules[1].path == "src/pkg/core.py"


def test_scan_rejects_missing_and_non_directory_paths(tmp_path: Path) -> None:
    scanner = SourceScanner()
    with pytest.raises(FileNotFoundError):
        scanner.scan(str(tmp_path / "missing"))

    file_path = tmp_path / "file.py"
    file_path.write_text("", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        scanner.scan(str(file_path))


def test_module_name_for_packages_and_modules() -> None:
    assert module_name_for("pkg/__init__.py") == ("pkg", True)
    assert module_name_for("pkg/mod.py") == ("pkg.mod", False)


def test_negated_rule_reincludes_path() -> None:
    rules = [build_ignore_rule("*.py"), build_ignore_rule("keep.py", negate=True)]

    assert should_ignore("drop.py", False, [r for r in rules if r])
    assert not should_ignore("keep.py", False, [r for r in rules if r])
