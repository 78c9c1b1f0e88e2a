# services/books.py
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from errors import InvalidRequest, NotFound, StoreUnavailable
from models import Book, BookPage

logger = logging.getLogger(__name__)


def parse_book_id(raw) -> int:
    try:
        book_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidRequest("Invalid book ID format")
    if book_id < 1:
        raise InvalidRequest("Invalid book ID format")
    return book_id


class BookRepository:
    """Read side used by quiz generation, plus the upload/list/delete plumbing."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_book(self, book_id: int) -> Book:
        try:
            with self.session_factory() as s:
                book = s.execute(
                    select(Book).options(selectinload(Book.pages)).where(Book.id == book_id)
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreUnavailable("Could not load book", details=str(e)) from e
        if book is None:
            raise NotFound("Book not found")
        return book

    def list_books(self, page: int = 1, limit: int = 20) -> dict:
        if page < 1:
            raise InvalidRequest("Page number must be greater than 0")
        if limit < 1 or limit > 100:
            raise InvalidRequest("Limit must be between 1 and 100")
        with self.session_factory() as s:
            total = s.execute(select(func.count(Book.id))).scalar_one()
            books = list(s.execute(
                select(Book).options(selectinload(Book.pages))
                .order_by(Book.created_at.desc(), Book.id.desc())
                .offset((page - 1) * limit).limit(limit)
            ).scalars())
        total_pages = -(-total // limit)
        return {
            'books': books,
            'pagination': {
                'currentPage': page,
                'totalPages': total_pages,
                'totalBooks': total,
                'booksPerPage': limit,
                'hasNextPage': page < total_pages,
                'hasPrevPage': page > 1,
            },
        }

    def create_book(self, title: str, filename: str, pages: List[dict], author: str = '',
                    size_kb: int = 0, content: Optional[str] = None,
                    total_pages: Optional[int] = None, stored_name: Optional[str] = None) -> Book:
        book = Book(title=title, author=author or '', filename=filename, stored_name=stored_name,
                    size_kb=size_kb, total_pages=total_pages or len(pages), content=content)
        book.pages = [BookPage(page_number=p['page_number'], text=p['text'],
                               character_count=p.get('character_count', len(p['text'])))
                      for p in pages]
        with self.session_factory() as s, s.begin():
            s.add(book)
        logger.info("Book saved: %s (%s)", book.title, book.id)
        return book

    def delete_book(self, book_id: int) -> Book:
        with self.session_factory() as s, s.begin():
            book = s.get(Book, book_id)
            if book is None:
                raise NotFound("Book not found")
            s.delete(book)
        logger.info("Deleted book: %s (%s)", book.title, book.id)
        return book
