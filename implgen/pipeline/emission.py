"""Emission: drives the pipeline over every candidate and hands units to a sink."""

from __future__ import annotations

import hashlib
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..logging import get_logger, unit_logger
from ..models import GeneratedUnit, ResolvedType
from ..provider.base import Declaration, ResolutionError, TypeSystemProvider
from ..sinks import OutputSink
from ..stores import UnitCache
from .introspector import InterfaceIntrospector, describe_all
from .resolver import ResolvedCandidate, SymbolResolver
from .selector import CandidateSelector
from .synthesizer import CodeSynthesizer, SynthesisResult

DEFAULT_SUFFIX = ".g.py"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.,\[\]-]")
_WHITESPACE = re.compile(r"\s+")


def hint_name(resolved: ResolvedType, suffix: str = DEFAULT_SUFFIX) -> str:
    """Derive a file-safe identifier from the fully qualified display name.

    ``app.widgets.Box[K, V]`` becomes ``app.widgets.Box[K,V].g.py``.
    """
    display = _WHITESPACE.sub("", resolved.fully_qualified_display)
    display = display.replace("<", "[").replace(">", "]")
    return _UNSAFE_CHARS.sub("_", display) + suffix


@dataclass
class EmissionReport:
    """Outcome of one pass."""

    units: List[GeneratedUnit] = field(default_factory=list)
    dropped: int = 0
    cached: int = 0
    cancelled: bool = False

    @property
    def identifiers(self) -> List[str]:
        return [unit.identifier for unit in self.units]

    @property
    def failed(self) -> List[GeneratedUnit]:
        return [unit for unit in self.units if not unit.ok]


@dataclass(frozen=True)
class _Outcome:
    resolved: ResolvedType
    result: SynthesisResult
    from_cache: bool = False


class EmissionController:
    """Runs selector, resolver, introspector and synthesizer for each candidate."""

    def __init__(
        self,
        provider: TypeSystemProvider,
        *,
        selector: CandidateSelector | None = None,
        resolver: SymbolResolver | None = None,
        introspector: InterfaceIntrospector | None = None,
        synthesizer: CodeSynthesizer | None = None,
        cache: UnitCache | None = None,
        suffix: str = DEFAULT_SUFFIX,
        workers: int = 1,
        signature: str = "",
    ) -> None:
        self.provider = provider
        self.selector = selector or CandidateSelector()
        self.resolver = resolver or SymbolResolver(provider, self.selector.marker_names)
        self.introspector = introspector or InterfaceIntrospector(provider)
        self.synthesizer = synthesizer or CodeSynthesizer()
        self.cache = cache
        self.suffix = suffix
        self.workers = max(1, workers)
        self.signature = signature
        self.logger = get_logger("emission")

    def run(self, sink: OutputSink, cancel: threading.Event | None = None) -> EmissionReport:
        """Generate every candidate's unit and add it to ``sink`` in candidate order.

        ``cancel`` is checked between candidates; units produced before it was set
        are still emitted.
        """
        report = EmissionReport()
        candidates = self.selector.select(self.provider.declarations())

        outcomes: List[Optional[_Outcome]]
        if self.workers > 1 and len(candidates) > 1:
            outcomes = self._run_parallel(candidates, cancel)
        else:
            outcomes = []
            for declaration in candidates:
                if _is_set(cancel):
                    break
                outcomes.append(self._process(declaration))

        report.cancelled = _is_set(cancel) and len(outcomes) < len(candidates)
        emitted: Dict[str, str] = {}
        for outcome in outcomes:
            if outcome is None:
                report.dropped += 1
                continue
            identifier = self._unique_identifier(outcome.resolved, emitted)
            sink.add(identifier, outcome.result.text)
            report.units.append(
                GeneratedUnit(
                    identifier=identifier,
                    text=outcome.result.text,
                    owner=outcome.resolved,
                    diagnostics=outcome.result.diagnostics,
                )
            )
            if outcome.from_cache:
                report.cached += 1

        if report.cancelled:
            self.logger.info(
                "Cancelled after %d of %d candidate(s)", len(outcomes), len(candidates)
            )
        self.logger.info(
            "Emitted %d unit(s) (%d cached, %d dropped, %d with diagnostics)",
            len(report.units),
            report.cached,
            report.dropped,
            len(report.failed),
        )
        return report

    def generate(self, candidate: ResolvedCandidate) -> SynthesisResult:
        """Introspect and synthesize one candidate; never raises."""
        resolved = candidate.resolved
        log = unit_logger(self.logger, resolved.qualified_name)
        try:
            contracts = describe_all(self.introspector, candidate.interfaces)
        except Exception as exc:
            log.debug("Interface introspection failed", exc_info=True)
            return self.synthesizer.failure(resolved, exc)
        log.debug("Synthesizing %d interface block(s)", len(contracts))
        return self.synthesizer.synthesize(resolved, contracts)

    def fingerprint(self, candidate: ResolvedCandidate) -> str:
        """Hash of the declaration text plus every directly referenced interface."""
        digest = hashlib.sha256()
        digest.update(candidate.declaration.text.encode("utf-8"))
        for reference in candidate.interfaces:
            digest.update(b"\0")
            digest.update(reference.expression.encode("utf-8"))
            try:
                symbol = self.provider.resolve_interface(reference)
            except ResolutionError:
                # Fingerprinted by expression alone.
                continue
            digest.update(b"\0")
            digest.update(self.provider.source_text(symbol.module, symbol.qualname).encode("utf-8"))
        return digest.hexdigest()

    # ------------------------------------------------------------------

    def _process(self, declaration: Declaration) -> Optional[_Outcome]:
        candidate = self.resolver.resolve(declaration)
        if candidate is None:
            return None
        if self.cache is None:
            return _Outcome(candidate.resolved, self.generate(candidate))

        key = candidate.resolved.qualified_name
        fingerprint = self.fingerprint(candidate)
        cached = self.cache.get(key, signature=self.signature, fingerprint=fingerprint)
        if cached is not None:
            self.logger.debug("Using cached unit for %s", key)
            result = SynthesisResult(text=cached.text, diagnostics=cached.diagnostics)
            return _Outcome(candidate.resolved, result, from_cache=True)
        result = self.generate(candidate)
        self.cache.store(
            key,
            signature=self.signature,
            fingerprint=fingerprint,
            text=result.text,
            diagnostics=result.diagnostics,
        )
        return _Outcome(candidate.resolved, result)

    def _run_parallel(
        self, candidates: Sequence[Declaration], cancel: threading.Event | None
    ) -> List[Optional[_Outcome]]:
        def _guarded(declaration: Declaration) -> Tuple[bool, Optional[_Outcome]]:
            if _is_set(cancel):
                return False, None
            return True, self._process(declaration)

        outcomes: List[Optional[_Outcome]] = []
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="implgen") as pool:
            # map() yields in submission order, so output order matches candidate order.
            for started, outcome in pool.map(_guarded, candidates):
                if not started:
                    break
                outcomes.append(outcome)
        return outcomes

    def _unique_identifier(self, resolved: ResolvedType, emitted: Dict[str, str]) -> str:
        base = hint_name(resolved, self.suffix)
        identifier = base
        counter = 2
        while identifier in emitted:
            identifier = _with_counter(base, self.suffix, counter)
            counter += 1
        if identifier != base:
            self.logger.warning(
                "Identifier %s for %s collides with %s; using %s",
                base,
                resolved.qualified_name,
                emitted[base],
                identifier,
            )
        emitted[identifier] = resolved.qualified_name
        return identifier


def _with_counter(base: str, suffix: str, counter: int) -> str:
    stem = base[: -len(suffix)] if suffix and base.endswith(suffix) else base
    return f"{stem}-{counter}{suffix}"


def _is_set(cancel: threading.Event | None) -> bool:
    return cancel is not None and cancel.is_set()


__all__ = ["DEFAULT_SUFFIX", "EmissionController", "EmissionReport", "hint_name"]
