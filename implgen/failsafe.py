"""Inert fallbacks written into units when generation of a member or type fails."""

from __future__ import annotations

from typing import List

from .models import Diagnostic

_COMMENT_PREFIX = "# "


def comment_lines(diagnostic: Diagnostic, *, indent: str = "") -> List[str]:
    """Render ``diagnostic`` as comment lines that cannot affect the surrounding code."""
    lines = [f"implgen: could not generate {diagnostic.subject}"]
    lines.extend(diagnostic.message.splitlines() or [""])
    if diagnostic.trace:
        lines.append("")
        lines.extend(diagnostic.trace.splitlines())
    return [f"{indent}{_COMMENT_PREFIX}{line}".rstrip() for line in lines]


def member_placeholder(name: str, diagnostic: Diagnostic, *, indent: str = "    ") -> List[str]:
    """Comment block plus a no-value stub that accepts any call."""
    lines = comment_lines(diagnostic, indent=indent)
    lines.append(f"{indent}async def {name}(self, *args: object, **kwargs: object) -> None:")
    lines.append(f"{indent}{indent}return")
    return lines


def failed_unit(diagnostic: Diagnostic) -> str:
    """Text of a unit whose whole generation failed: the explanation and nothing else."""
    return "\n".join(comment_lines(diagnostic)) + "\n"


__all__ = ["comment_lines", "failed_unit", "member_placeholder"]
