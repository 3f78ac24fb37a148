"""Pipeline orchestration for the generate and list commands."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from . import __version__
from .config import ImplgenConfig, load_config
from .logging import get_logger
from .pipeline import (
    CandidateSelector,
    CodeSynthesizer,
    EmissionController,
    EmissionReport,
    InterfaceIntrospector,
    SymbolResolver,
    hint_name,
)
from .pipeline.synthesizer import UNIT_TEMPLATE
from .provider import AstTypeSystemProvider
from .sinks import DirectorySink, MemorySink
from .source_scanner import SourceScanner
from .stores import UnitCache


@dataclass
class GenerateOutcome:
    """Result of a generate run."""

    report: EmissionReport
    output_dir: Path | None
    dry_run: bool
    written: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    units: List[Tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class CandidateListing:
    qualified_name: str
    identifier: str
    interfaces: Tuple[str, ...]


class Orchestrator:
    """Wires scanner, provider, pipeline, cache and sink for one source tree."""

    def __init__(self, scanner: SourceScanner | None = None) -> None:
        self.scanner = scanner or SourceScanner()
        self.logger = get_logger("orchestrator")

    def run_generate(
        self,
        path: str,
        *,
        output_dir: str | None = None,
        dry_run: bool = False,
        use_cache: bool = True,
        cancel: threading.Event | None = None,
    ) -> GenerateOutcome:
        """Generate companion units for every marked class under ``path``."""
        root = Path(path).expanduser().resolve()
        self.logger.info("Starting generate run for %s", root)
        config = load_config(root)
        manifest = self.scanner.scan(str(root), config)
        self.logger.debug("Scanner discovered %d module(s)", len(manifest.modules))

        provider = AstTypeSystemProvider.from_manifest(manifest)
        cache = UnitCache(config.cache_path) if use_cache and config.cache.enabled and not dry_run else None
        controller = self._build_controller(provider, config, cache)

        target = Path(output_dir).expanduser().resolve() if output_dir else config.output_dir
        if dry_run:
            memory = MemorySink()
            report = controller.run(memory, cancel)
            return GenerateOutcome(report=report, output_dir=None, dry_run=True, units=memory.items())

        sink = DirectorySink(target)
        report = controller.run(sink, cancel)
        if not report.cancelled:
            sink.prune(report.identifiers, config.output.suffix)
        if cache is not None:
            if not report.cancelled:
                cache.prune(unit.owner.qualified_name for unit in report.units)
            cache.persist()
        self.logger.info(
            "Wrote %d unit(s) to %s (%d unchanged, %d removed)",
            len(sink.written),
            target,
            len(sink.unchanged),
            len(sink.removed),
        )
        return GenerateOutcome(
            report=report,
            output_dir=target,
            dry_run=False,
            written=list(sink.written),
            removed=list(sink.removed),
            units=[(unit.identifier, unit.text) for unit in report.units],
        )

    def run_list(self, path: str) -> List[CandidateListing]:
        """List marked classes that would be generated, without synthesizing anything."""
        root = Path(path).expanduser().resolve()
        config = load_config(root)
        manifest = self.scanner.scan(str(root), config)
        provider = AstTypeSystemProvider.from_manifest(manifest)
        selector = CandidateSelector(config.markers)
        resolver = SymbolResolver(provider, selector.marker_names)

        listings: List[CandidateListing] = []
        for declaration in selector.select(provider.declarations()):
            candidate = resolver.resolve(declaration)
            if candidate is None:
                continue
            listings.append(
                CandidateListing(
                    qualified_name=candidate.resolved.qualified_name,
                    identifier=hint_name(candidate.resolved, config.output.suffix),
                    interfaces=tuple(reference.expression for reference in candidate.interfaces),
                )
            )
        return listings

    def _build_controller(
        self, provider: AstTypeSystemProvider, config: ImplgenConfig, cache: UnitCache | None
    ) -> EmissionController:
        selector = CandidateSelector(config.markers)
        return EmissionController(
            provider,
            selector=selector,
            resolver=SymbolResolver(provider, selector.marker_names),
            introspector=InterfaceIntrospector(provider, config.wrappers),
            synthesizer=CodeSynthesizer(directive=config.directive, templates_dir=config.templates_dir),
            cache=cache,
            suffix=config.output.suffix,
            workers=config.workers,
            signature=self.settings_signature(config),
        )

    @staticmethod
    def settings_signature(config: ImplgenConfig) -> str:
        """Hash of every setting that changes unit text; a new value invalidates the cache."""
        template_text = ""
        if config.templates_dir is not None:
            override = config.templates_dir / UNIT_TEMPLATE
            if override.is_file():
                template_text = override.read_text(encoding="utf-8")
        payload = {
            "version": __version__,
            "markers": list(config.markers),
            "wrappers": list(config.wrappers),
            "directive": config.directive,
            "template": template_text,
        }
        encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()

    def log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = ["CandidateListing", "GenerateOutcome", "Orchestrator"]
