"""Exceptions raised by the standoff conversion."""


class ConfigurationError(ValueError):
    """Raised at initialization when a component is configured inconsistently."""


class SpanStackError(RuntimeError):
    """Raised by a strict builder on unbalanced or out-of-state events."""
