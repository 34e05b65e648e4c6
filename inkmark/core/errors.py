"""
Exception types raised at the I/O seams of the engine.
"""


class InkmarkError(Exception):
    """Base class for engine errors."""


class PersistenceError(InkmarkError):
    """A store read or write did not complete."""


class DocumentError(InkmarkError):
    """The document could not be opened or read."""
