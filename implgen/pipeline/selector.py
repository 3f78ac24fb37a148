"""Candidate selection: declarations that carry the implementation marker."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Set, Tuple

from ..logging import get_logger
from ..provider.base import Declaration

DEFAULT_MARKER_NAMES: Tuple[str, ...] = ("AddImplementation", "add_implementation")


class CandidateSelector:
    """Filters declarations to marked class and record declarations."""

    def __init__(self, marker_names: Sequence[str] | None = None) -> None:
        self.marker_names: Tuple[str, ...] = tuple(marker_names or DEFAULT_MARKER_NAMES)
        self._names = frozenset(self.marker_names)
        self.logger = get_logger("selector")

    def matches(self, declaration: Declaration) -> bool:
        if not declaration.kind.is_type:
            return False
        return any(
            decorator.name in self._names or decorator.dotted in self._names
            for decorator in declaration.decorators
        )

    def select(self, declarations: Iterable[Declaration]) -> List[Declaration]:
        """Return matching declarations in input order, each identity once."""
        selected: List[Declaration] = []
        seen: Set[Tuple[str, str]] = set()
        for declaration in declarations:
            if declaration.identity in seen or not self.matches(declaration):
                continue
            seen.add(declaration.identity)
            selected.append(declaration)
        self.logger.debug("Selected %d candidate(s)", len(selected))
        return selected


__all__ = ["CandidateSelector", "DEFAULT_MARKER_NAMES"]
