"""Tests for implgen.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from implgen.config import ConfigError, ImplgenConfig, load_config
from implgen.pipeline import DEFAULT_DIRECTIVE, DEFAULT_MARKER_NAMES, DEFAULT_WRAPPER_TYPES


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ImplgenConfig)
    assert config.root == tmp_path.resolve()
    assert config.markers == list(DEFAULT_MARKER_NAMES)
    assert config.wrappers == list(DEFAULT_WRAPPER_TYPES)
    assert config.directive == DEFAULT_DIRECTIVE
    assert config.output.suffix == ".g.py"
    assert config.output_dir == tmp_path.resolve() / "_generated"
    assert config.cache.enabled is True
    assert config.cache_path == tmp_path.resolve() / ".implgen" / "cache.json"
    assert config.workers == 1
    assert config.source_roots == []
    assert config.exclude_paths == []
    assert config.templates_dir is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".implgen.yml"
    config_file.write_text(
        """
markers: [AddImplementation, stubs.implements]
wrappers:
  - typing.Awaitable
  - jobs.Deferred
directive: "# mypy: strict-optional"
output:
  dir: build/generated
  suffix: .impl.py
cache:
  enabled: "no"
  path: .cache/units.json
workers: 4
source_roots:
  - src
exclude_paths:
  - "migrations/"
templates_dir: templates
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.markers == ["AddImplementation", "stubs.implements"]
    assert config.wrappers == ["typing.Awaitable", "jobs.Deferred"]
    assert config.directive == "# mypy: strict-optional"
    assert config.output.dir == "build/generated"
    assert config.output.suffix == ".impl.py"
    assert config.cache.enabled is False
    assert config.cache_path == tmp_path.resolve() / ".cache" / "units.json"
    assert config.workers == 4
    assert config.source_roots == ["src"]
    assert config.exclude_paths == ["migrations/"]
    assert config.templates_dir == tmp_path.resolve() / "templates"


def test_directive_can_be_disabled(tmp_path: Path) -> None:
    (tmp_path / ".implgen.yml").write_text("directive: null\n", encoding="utf-8")

    assert load_config(tmp_path).directive is None


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".implgen.yml").write_text("\n# nothing here\n", encoding="utf-8")

    assert load_config(tmp_path).markers == list(DEFAULT_MARKER_NAMES)


@pytest.mark.parametrize(
    "content",
    [
        "- not\n- a mapping\n",
        "workers: 0\n",
        "workers: many\n",
        "output:\n  suffix: a/b.py\n",
        "markers: [unclosed\n",
    ],
)
def test_invalid_config_raises(tmp_path: Path, content: str) -> None:
    (tmp_path / ".implgen.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
