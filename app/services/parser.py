"""PDF intake: upload validation and plain-text extraction with **pdfplumber**.

Proposals and policies are read by the upstream OCR pipeline; locally we
only need the raw text of quote PDFs, which are digital (not scanned).
"""


import io
import logging

import pdfplumber
from pdfminer.pdfparser import PDFSyntaxError
from pdfplumber.utils.exceptions import MalformedPDFException, PdfminerException

from app.core.config import settings
from app.core.exceptions import InvalidUploadError, PDFExtractionError

logger = logging.getLogger(__name__)

__all__ = ["extract_raw_text", "validate_pdf_upload"]

PDF_CONTENT_TYPE = "application/pdf"
PDF_EXTENSION = ".pdf"


def validate_pdf_upload(
    filename: str | None,
    content_type: str | None,
    contents: bytes,
    max_bytes: int | None = None,
) -> None:
    """Reject anything that is not a non-empty PDF within the size limit.

    A PDF content type or a ``.pdf`` extension is enough; browsers are not
    consistent about either.
    """
    is_pdf = content_type == PDF_CONTENT_TYPE or (filename or "").lower().endswith(PDF_EXTENSION)
    if not is_pdf:
        raise InvalidUploadError(
            f"Unsupported file type '{content_type}'. Only PDF files are accepted.",
            status_code=415,
        )
    if len(contents) == 0:
        raise InvalidUploadError("Uploaded file is empty.", status_code=400)

    limit = max_bytes if max_bytes is not None else settings.max_upload_size_bytes
    if len(contents) > limit:
        raise InvalidUploadError(
            f"File size exceeds the {settings.max_upload_size_mb}MB limit.",
            status_code=413,
        )


def extract_raw_text(pdf_bytes: bytes) -> str:
    """Extract the text of every page, joined by newlines.

    Raises :class:`PDFExtractionError` when the file cannot be opened.
    """
    pdf_file = io.BytesIO(pdf_bytes)
    pages: list[str] = []
    try:
        with pdfplumber.open(pdf_file) as pdf:
            for page in pdf.pages:
                text = page.extract_text()
                if text:
                    pages.append(text)
    except (PDFSyntaxError, PdfminerException, MalformedPDFException) as exc:
        logger.warning("Unreadable PDF: %s", exc)
        raise PDFExtractionError("The file could not be read as a PDF.") from exc

    logger.info("Extracted text from %d page(s)", len(pages))
    return "\n".join(pages)
