# services/cache_key.py
from typing import Optional


def normalize_range(page_range: Optional[dict], total_pages: Optional[int] = None) -> tuple:
    """
    Effective (start, end) of a request.

    No range means the whole book, so it resolves to (1, total_pages). A
    whole-book request and a page-1 request never share a key.
    """
    if page_range:
        return int(page_range['start']), int(page_range['end'])
    return 1, max(1, int(total_pages or 1))


def derive_key(book_id, page_range: Optional[dict], number_of_questions: int,
               difficulty: str, total_pages: Optional[int] = None) -> str:
    start, end = normalize_range(page_range, total_pages)
    return f"{book_id}-{start}-{end}-{int(number_of_questions)}-{difficulty.lower()}"
