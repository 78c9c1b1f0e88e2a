import io
import logging
import re
from typing import List

from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)


def clean_text(text: str) -> str:
    if not text:
        return ''
    text = re.sub(r' {2,}', ' ', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    return '\n'.join(line.strip() for line in text.split('\n')).strip()


def _reader(data: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(data))


def is_valid_pdf(data: bytes) -> tuple:
    """Return (ok, error, page_count)."""
    if not data or len(data) < 5:
        return False, 'File too small to be a valid PDF', None
    if not data[:5] == b'%PDF-':
        return False, 'Invalid PDF signature: file does not start with %PDF-', None
    try:
        count = len(_reader(data).pages)
    except (PdfReadError, ValueError, OSError) as e:
        return False, f'PDF validation failed: {e}', None
    if count < 1:
        return False, 'PDF has no pages', 0
    return True, None, count


def extract_pages(data: bytes) -> List[dict]:
    """Per-page text, 1-indexed; pages without a text layer come back empty."""
    reader = _reader(data)
    pages = []
    for i, page in enumerate(reader.pages, start=1):
        try:
            text = clean_text(page.extract_text() or '')
        except Exception as e:
            logger.warning("Page %s has no extractable text: %s", i, e)
            text = ''
        pages.append({'page_number': i, 'text': text, 'character_count': len(text)})
    logger.info("Extracted %s pages, %s characters", len(pages),
                sum(p['character_count'] for p in pages))
    return pages


def pdf_metadata(data: bytes) -> dict:
    meta = _reader(data).metadata
    if not meta:
        return {'title': None, 'author': None}
    return {'title': meta.title or None, 'author': meta.author or None}
