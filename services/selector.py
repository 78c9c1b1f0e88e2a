# services/selector.py
import logging
from typing import Optional

from errors import NoContent, RangeExceeded

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


def _legacy_slice(book, start: int, end: int) -> str:
    # Lossy: stranice se procenjuju kao jednaki delovi ukupnog teksta.
    text = book.content or ""
    per_page = -(-len(text) // max(1, book.total_pages))    # ceil
    return text[(start - 1) * per_page:end * per_page]


def select_text(book, page_range: Optional[dict] = None) -> str:
    """
    Text of `book` for the requested inclusive page range, or the whole book.

    `book` needs `pages` (objects with page_number/text), `total_pages` and the
    legacy `content` blob used when no per-page text was stored.
    Raises RangeExceeded or NoContent.
    """
    pages = list(book.pages or [])

    if page_range:
        start, end = int(page_range['start']), int(page_range['end'])
        if end > (book.total_pages or 0):
            raise RangeExceeded(f"Page range exceeds book's total pages ({book.total_pages})")
        if pages:
            picked = sorted((p for p in pages if start <= p.page_number <= end),
                            key=lambda p: p.page_number)
            text = PAGE_SEPARATOR.join(p.text or "" for p in picked)
        else:
            logger.info("Book %s has no per-page text, estimating pages %s-%s", book.id, start, end)
            text = _legacy_slice(book, start, end)
    elif pages:
        text = PAGE_SEPARATOR.join(p.text or "" for p in sorted(pages, key=lambda p: p.page_number))
    else:
        text = book.content or ""

    if not text.strip():
        raise NoContent("No text content available for quiz generation")
    return text
