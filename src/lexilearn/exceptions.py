"""Exceptions raised by the practice services."""


class LexiLearnError(Exception):
    """Base class for application errors."""


class ValidationError(LexiLearnError, ValueError):
    """A test configuration or request failed validation."""


class GenerationError(LexiLearnError, RuntimeError):
    """The language model call failed or returned unusable content."""


class StorageError(LexiLearnError):
    """The key-value backend could not be read or written."""
