"""
Error kinds raised by the editing core.

Both are recoverable: the operation that raised them committed nothing.
"""


class EditorError(Exception):
    """Base class for all editor errors."""


class DatasetValidationError(EditorError):
    """An imported document is malformed (unparsable, wrong shape or field types)."""


class PreconditionError(EditorError):
    """An edit was invoked with a selection or argument it cannot act on."""
