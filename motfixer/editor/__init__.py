from motfixer.editor.errors import DatasetValidationError, EditorError, PreconditionError
from motfixer.editor.allocator import IdentityAllocator
from motfixer.editor.state import EditorState
from motfixer.editor.store import TrackStore

__all__ = [
    "DatasetValidationError",
    "EditorError",
    "EditorState",
    "IdentityAllocator",
    "PreconditionError",
    "TrackStore",
]
