"""Generation pipeline: selector, resolver, introspector, synthesizer, emission."""

from .emission import DEFAULT_SUFFIX, EmissionController, EmissionReport, hint_name
from .introspector import DEFAULT_WRAPPER_TYPES, ContractShapeError, InterfaceIntrospector, describe_all
from .resolver import ResolvedCandidate, SymbolResolver
from .selector import DEFAULT_MARKER_NAMES, CandidateSelector
from .synthesizer import DEFAULT_DIRECTIVE, CodeSynthesizer, SynthesisResult

__all__ = [
    "CandidateSelector",
    "CodeSynthesizer",
    "ContractShapeError",
    "DEFAULT_DIRECTIVE",
    "DEFAULT_MARKER_NAMES",
    "DEFAULT_SUFFIX",
    "DEFAULT_WRAPPER_TYPES",
    "EmissionController",
    "EmissionReport",
    "InterfaceIntrospector",
    "ResolvedCandidate",
    "SymbolResolver",
    "SynthesisResult",
    "describe_all",
    "hint_name",
]
