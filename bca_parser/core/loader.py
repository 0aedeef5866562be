"""
Document loading and raw text extraction.
"""
import io
import pdfplumber
import re
from pathlib import Path
from typing import List, Union
import logging

logger = logging.getLogger(__name__)

# Text objects: BT ... ET
_TEXT_OBJECT = re.compile(r'BT\s+(.+?)\s+ET', re.DOTALL)
# String operands inside a text object: (literal) or <literal>
_STRING_OPERAND = re.compile(r'[(<]([^)>]+)[)>]')
_ESCAPE = re.compile(r'\\([\\()rnt])')

_ESCAPES = {
    'n': ' ',
    'r': '',
    't': ' ',
    '\\': '\\',
    '(': '(',
    ')': ')',
}


def unescape_literal(literal: str) -> str:
    """
    Decode the backslash escapes of a string operand.

    Only \\n, \\r, \\t, \\\\, \\( and \\) are decoded; any other escaped
    character is left as it is, backslash included.
    """
    return _ESCAPE.sub(lambda m: _ESCAPES[m.group(1)], literal)


def extract_text(data: bytes) -> str:
    """
    Extract a linear text approximation from raw document bytes.

    Every string operand found inside a BT/ET text object is unescaped and
    the results are joined with single spaces, in stream order. Compressed
    content streams are invisible to this scan.

    Args:
        data: Raw document bytes

    Returns:
        Extracted text, empty when no text object is found
    """
    raw = data.decode('utf-8', errors='replace')
    parts: List[str] = []

    for text_object in _TEXT_OBJECT.finditer(raw):
        for operand in _STRING_OPERAND.finditer(text_object.group(1)):
            parts.append(unescape_literal(operand.group(1)))

    return ' '.join(parts)


class DocumentLoader:
    """Loads a statement document into memory."""

    def __init__(self, source: Union[bytes, Path, str]):
        self.source = source
        self._data = None

    def load(self) -> bytes:
        """Return the document bytes, reading the file on first use."""
        if self._data is not None:
            return self._data

        if isinstance(self.source, (bytes, bytearray)):
            self._data = bytes(self.source)
        else:
            path = Path(self.source)
            if not path.exists():
                raise FileNotFoundError(f"Document not found: {path}")
            self._data = path.read_bytes()
            logger.debug(f"Loaded {len(self._data)} bytes from {path}")

        return self._data

    def extract_text(self) -> str:
        return extract_text(self.load())


class PdfPlumberFallback:
    """Fallback text extraction using pdfplumber."""

    @staticmethod
    def extract_text(data: bytes) -> str:
        """
        Extract text with pdfplumber, which decodes compressed streams.

        Args:
            data: Raw PDF bytes

        Returns:
            Page texts joined with newlines
        """
        pages = []
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            logger.info(f"pdfplumber fallback on {len(pdf.pages)} pages")
            for page in pdf.pages:
                pages.append(page.extract_text() or '')

        return '\n'.join(pages)
