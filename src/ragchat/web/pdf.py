"""PDF text extraction."""

import io

import pypdf

from ragchat.exceptions import IngestionError
from ragchat.utils.logging import get_logger

logger = get_logger(__name__)


def extract_text_from_pdf(data: bytes) -> str:
    """Extract plain text from PDF bytes, one block per page."""
    try:
        reader = pypdf.PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        logger.error(f"Error extracting text from PDF: {e}")
        raise IngestionError(
            "Failed to extract text from PDF. The file may be corrupted or password-protected."
        ) from e
    return "\n\n".join(pages).strip()
