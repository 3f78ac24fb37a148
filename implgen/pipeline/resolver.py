"""Symbol resolution for selected candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import InterfaceReference, MarkerKind, ResolvedType
from ..provider.base import Declaration, TypeSystemProvider
from .selector import DEFAULT_MARKER_NAMES


@dataclass(frozen=True)
class ResolvedCandidate:
    """A candidate bound to its type and the interfaces its markers name."""

    declaration: Declaration
    resolved: ResolvedType
    interfaces: Tuple[InterfaceReference, ...]


class SymbolResolver:
    """Binds candidate declarations and collects their target interfaces."""

    def __init__(
        self, provider: TypeSystemProvider, marker_names: Sequence[str] | None = None
    ) -> None:
        self.provider = provider
        self.marker_names = tuple(marker_names or DEFAULT_MARKER_NAMES)
        self.logger = get_logger("resolver")

    def resolve(self, declaration: Declaration) -> Optional[ResolvedCandidate]:
        """Return the bound candidate, or None when it is not ours to generate."""
        resolved = self.provider.resolve_declaration(declaration)
        if resolved is None:
            self.logger.debug(
                "Dropping %s.%s: declaration cannot be bound", declaration.module, declaration.qualname
            )
            return None

        lookup = self.provider.find_markers(declaration, self.marker_names)
        if not lookup.found:
            self.logger.debug("Dropping %s: no marker usage found", resolved.qualified_name)
            return None

        # Duplicates are kept: annotating twice with one interface yields two blocks.
        interfaces = tuple(
            usage.target
            for usage in lookup.usages
            if usage.kind is MarkerKind.PARAMETERIZED and usage.target is not None
        )
        return ResolvedCandidate(declaration=declaration, resolved=resolved, interfaces=interfaces)


__all__ = ["ResolvedCandidate", "SymbolResolver"]
