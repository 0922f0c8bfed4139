"""
Uploaded file -> plain resume text.

Dispatch is on content type first and file extension second, since browsers
often send DOCX as application/octet-stream.
"""

import logging
from typing import Optional

from resume_ingest.core.docx_extractor import extract_docx_text
from resume_ingest.core.errors import EmptyDocumentError, UnsupportedFileTypeError
from resume_ingest.core.pdf_extractor import extract_pdf_text
from resume_ingest.core.schemas import ExtractedText

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"

TEXT_CONTENT_TYPES = {"text/plain", "text/markdown", "text/x-markdown"}
TEXT_EXTENSIONS = (".txt", ".md", ".markdown")


def detect_mime_type(filename: Optional[str], content_type: Optional[str]) -> Optional[str]:
    """
    Canonical MIME type for a supported upload, or None.

    Examples:
        ("resume.pdf", "application/octet-stream") -> "application/pdf"
        ("notes.md", None) -> "text/plain"
        ("photo.png", "image/png") -> None
    """
    name = (filename or "").lower()
    ctype = (content_type or "").split(";")[0].strip().lower()

    if ctype == PDF_MIME:
        return PDF_MIME
    if ctype == DOCX_MIME:
        return DOCX_MIME
    if ctype in TEXT_CONTENT_TYPES:
        return TEXT_MIME

    if name.endswith(".pdf"):
        return PDF_MIME
    if name.endswith(".docx"):
        return DOCX_MIME
    if name.endswith(TEXT_EXTENSIONS):
        return TEXT_MIME
    return None


def extract_text(data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> ExtractedText:
    """
    Extract the text of an uploaded resume.

    Raises EmptyDocumentError for an empty upload or one without a text
    layer, UnsupportedFileTypeError for anything but PDF, DOCX or plain text.
    """
    if not data:
        raise EmptyDocumentError("Empty file uploaded.")

    mime_type = detect_mime_type(filename, content_type)
    if mime_type is None:
        raise UnsupportedFileTypeError(f"Unsupported content type: {content_type or filename or 'unknown'}")

    if mime_type == TEXT_MIME:
        text = data.decode("utf-8", errors="replace")
    else:
        reader = extract_pdf_text if mime_type == PDF_MIME else extract_docx_text
        try:
            text = reader(data)
        except Exception as e:
            # pdfminer and python-docx each raise their own family of parse errors
            logger.warning(f"Could not read {filename or 'upload'} as {mime_type}: {type(e).__name__}: {e}")
            raise EmptyDocumentError(f"{filename or 'Upload'} could not be read as {mime_type}.") from e

    text = text.strip()
    if not text:
        raise EmptyDocumentError(f"{filename or 'Upload'} has no extractable text. OCR is not supported.")

    logger.info(f"Extracted {len(text)} characters from {filename or 'upload'} ({mime_type})")
    return ExtractedText(text=text, mime_type=mime_type, original_filename=filename)
