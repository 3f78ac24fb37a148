"""implgen: generate async stub implementations for marked classes."""

from .markers import AddImplementation, add_implementation, declared_interfaces

__version__ = "0.2.0"

__all__ = ["AddImplementation", "__version__", "add_implementation", "declared_interfaces"]
