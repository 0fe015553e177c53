"""Agreement document loading."""

from .document_loader import load_agreement_text
from .exceptions import DocumentCorruptedError, ParseError, UnsupportedFormatError

__all__ = [
    "load_agreement_text",
    "DocumentCorruptedError",
    "ParseError",
    "UnsupportedFormatError",
]
