from .document_sequence import DocumentSequence

__all__ = ["DocumentSequence"]
