"""Errors raised while reading an agreement file into text."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class ParseError(Exception):
    """
    An agreement file could not be turned into text.

    Attributes:
        message: What went wrong.
        file_path: The file being loaded.
        location: Where in the file the problem is (extension, header, byte).
        details: Extra context such as the underlying library error.
    """
    message: str
    file_path: Optional[str] = None
    location: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.details = dict(self.details or {})
        super().__init__(str(self))

    @property
    def file_name(self) -> Optional[str]:
        return Path(self.file_path).name if self.file_path else None

    def __str__(self) -> str:
        where = ", ".join(p for p in (self.file_name, self.location) if p)
        return f"{self.message} ({where})" if where else self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "file_path": self.file_path,
            "location": self.location,
            "details": self.details,
        }


@dataclass
class DocumentCorruptedError(ParseError):
    """The file exists but cannot be read (corrupted, encrypted or mislabelled)."""


@dataclass
class UnsupportedFormatError(ParseError):
    """The file extension has no loader."""

    def get_supported_formats(self) -> List[str]:
        return list(self.details.get("supported_formats", []))
