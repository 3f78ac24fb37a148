from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.source_tree import SourceTreeBuilder


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTreeBuilder:
    """Provide a reusable source tree rooted at the pytest tmp_path."""
    return SourceTreeBuilder(tmp_path)
