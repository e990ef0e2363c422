"""
Exceptions raised by the labeled ANS coder.

All of them derive from ValueError, so callers that only care about
"bad input" can keep catching ValueError.
"""


class FurorError(ValueError):
    """Base class for coder errors."""


class ConfigurationError(FurorError):
    """Labeling / length relationship cannot produce a working coder."""


class InvalidFrequencyError(FurorError):
    """A symbol frequency is not a positive finite real."""


class UnknownSymbolError(FurorError):
    """Encode was asked for a symbol that is not in the labeling."""


class MalformedStateError(FurorError):
    """A state that cannot be decoded (negative, or does not shrink)."""
