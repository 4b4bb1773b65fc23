"""mdviewer widgets."""

from .document_view import DocumentView
from .modals import EncodingModal, OpenFileModal

__all__ = [
    "DocumentView",
    "EncodingModal",
    "OpenFileModal",
]
