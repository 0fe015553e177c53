"""Loading agreement text from files on disk."""

import logging
from pathlib import Path
from typing import Callable, Dict
from zipfile import BadZipFile

import pdfplumber
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from .exceptions import DocumentCorruptedError, ParseError, UnsupportedFormatError


logger = logging.getLogger(__name__)


def _load_plain_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DocumentCorruptedError(
            message="Text file is not valid UTF-8",
            file_path=str(path),
            location=f"byte {e.start}",
            details={"original_error": str(e)},
        )


def _load_docx(path: Path) -> str:
    try:
        doc = Document(str(path))
    except (BadZipFile, PackageNotFoundError) as e:
        raise DocumentCorruptedError(
            message="Document is corrupted or not a valid Word file",
            file_path=str(path),
            location="file header",
            details={"original_error": str(e)},
        )

    paragraphs = [para.text for para in doc.paragraphs if para.text.strip()]
    return "\n".join(paragraphs)


def _load_pdf(path: Path) -> str:
    # PyPDF2 validates the file; pdfplumber gives better text layout.
    try:
        page_count = len(PdfReader(str(path)).pages)
    except PdfReadError as e:
        raise DocumentCorruptedError(
            message="PDF file is corrupted or encrypted",
            file_path=str(path),
            location="file header",
            details={"original_error": str(e)},
        )

    try:
        with pdfplumber.open(str(path)) as pdf:
            text_parts = []
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    text_parts.append(page_text)
    except Exception as e:
        raise ParseError(
            message=f"Failed to extract PDF text: {str(e)}",
            file_path=str(path),
            details={"original_error": str(e), "page_count": page_count},
        )

    return "\n\n".join(text_parts)


LOADERS: Dict[str, Callable[[Path], str]] = {
    ".txt": _load_plain_text,
    ".md": _load_plain_text,
    ".docx": _load_docx,
    ".pdf": _load_pdf,
}


def load_agreement_text(file_path) -> str:
    """
    Read the text of an agreement from a file.

    Args:
        file_path: Path to a .txt, .md, .docx or .pdf file.

    Returns:
        The document text.

    Raises:
        FileNotFoundError: If the file does not exist.
        UnsupportedFormatError: If the extension is not supported.
        DocumentCorruptedError: If the file cannot be read.
        ParseError: If the file opened but text extraction failed.
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    loader = LOADERS.get(path.suffix.lower())
    if loader is None:
        raise UnsupportedFormatError(
            message=f"Unsupported file format: {path.suffix or '(none)'}",
            file_path=str(path),
            location="file extension",
            details={"supported_formats": sorted(LOADERS)},
        )

    text = loader(path)
    logger.info(f"Loaded {len(text)} characters from {path.name}")
    return text
