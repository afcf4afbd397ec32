"""Text extraction for uploaded files."""

import json
import logging
import re

import pymupdf  # PyMuPDF

logger = logging.getLogger(__name__)

# Control characters that Postgres TEXT/VARCHAR cannot store (NUL, etc.)
_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

PASSTHROUGH_TYPES = frozenset({"text/plain", "text/markdown", "text/csv"})
JSON_TYPE = "application/json"
PDF_TYPE = "application/pdf"


class FileProcessor:
    """Derives searchable text from file bytes based on the declared MIME type."""

    @staticmethod
    def extract_text(data: bytes, mime_type: str) -> str | None:
        """
        Extract text from file bytes.

        Args:
            data: Raw bytes of the file
            mime_type: MIME type declared by the uploader (trusted as-is)

        Returns:
            - text/plain, text/markdown, text/csv: the UTF-8 text unchanged
            - application/json: the document re-indented with two spaces,
              or the raw text if it does not parse
            - application/pdf: text of every page, separated by blank lines
            - anything else (or a PDF that cannot be read): None

        Example:
            >>> FileProcessor.extract_text(b'{"a":1}', "application/json")
            '{\\n  "a": 1\\n}'
        """
        if mime_type in PASSTHROUGH_TYPES:
            text = data.decode("utf-8", errors="replace")
        elif mime_type == JSON_TYPE:
            text = data.decode("utf-8", errors="replace")
            try:
                text = json.dumps(json.loads(text), indent=2, ensure_ascii=False)
            except ValueError:
                pass
        elif mime_type == PDF_TYPE:
            text = FileProcessor._extract_pdf_text(data)
            if text is None:
                return None
        else:
            return None

        # Strip NUL bytes and other control chars that Postgres rejects
        return _ILLEGAL_CHARS.sub("", text)

    @staticmethod
    def _extract_pdf_text(data: bytes) -> str | None:
        try:
            doc = pymupdf.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.warning("Could not open PDF for text extraction: %s", str(e))
            return None

        try:
            # Combine all pages with double newline separator
            return "\n\n".join(page.get_text() for page in doc)
        finally:
            doc.close()


# Stateless; shared
file_processor = FileProcessor()
