# services/quiz_service.py
"""
Request flow: cache check -> select pages -> fit to budget -> generate -> persist.

A failing cache lookup is treated as a miss. A duplicate key on insert means a
concurrent request stored the same quiz first; its record is returned. A store
failure on insert still returns the generated quiz, flagged as not cached.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import config
from errors import DuplicateKey, StoreUnavailable
from models import Book, CachedQuiz
from services.books import BookRepository
from services.budget import truncate
from services.cache_key import derive_key
from services.quiz_cache import QuizCacheStore, tokens_saved_for
from services.quizzer import QuizGenerator
from services.selector import select_text

logger = logging.getLogger(__name__)


@dataclass
class QuizResult:
    quiz: CachedQuiz
    book: Book
    from_cache: bool
    cached: bool = True
    was_truncated: bool = False

    @property
    def usage_count(self) -> int:
        return self.quiz.usage_count

    def to_response(self) -> dict:
        quiz = self.quiz.to_dict()
        quiz['bookTitle'] = self.book.title
        if not self.from_cache:
            quiz['wasTruncated'] = self.was_truncated
        if self.from_cache:
            message = 'Quiz retrieved from cache'
        elif self.cached:
            message = 'Quiz generated successfully'
        else:
            message = 'Quiz generated but could not be saved'
        return {
            'success': True,
            'quizId': str(self.quiz.id) if self.quiz.id is not None else None,
            'fromCache': self.from_cache,
            'usageCount': self.usage_count,
            'cached': self.cached,
            'message': message,
            'quiz': quiz,
        }


def quiz_title(book: Book, page_range: Optional[dict]) -> str:
    if page_range:
        return f"{book.title} - Pages {page_range['start']}-{page_range['end']}"
    return f"{book.title} - Full Book Quiz"


class QuizService:
    def __init__(self, books: BookRepository, cache: QuizCacheStore, generator: QuizGenerator,
                 max_chars: int = config.MAX_CONTENT_CHARS):
        self.books = books
        self.cache = cache
        self.generator = generator
        self.max_chars = max_chars

    def _lookup(self, key: str) -> Optional[CachedQuiz]:
        try:
            return self.cache.find(key)
        except StoreUnavailable as e:
            logger.warning("Cache lookup failed for %s, generating instead: %s", key, e.details or e)
            return None

    def get_or_create(self, book_id: int, page_range: Optional[dict] = None,
                      number_of_questions: int = config.DEFAULT_QUESTIONS,
                      difficulty: str = config.DEFAULT_DIFFICULTY) -> QuizResult:
        book = self.books.get_book(book_id)
        key = derive_key(book.id, page_range, number_of_questions, difficulty,
                         total_pages=book.total_pages)

        hit = self._lookup(key)
        if hit is not None:
            if hit.usage_count > 1:
                logger.info("Cache saved ~%s tokens (quiz used %s times)",
                            tokens_saved_for(hit.usage_count, self.cache.tokens_per_quiz), hit.usage_count)
            return QuizResult(quiz=hit, book=book, from_cache=True)

        text = select_text(book, page_range)
        content, was_truncated = truncate(text, self.max_chars)
        if was_truncated:
            logger.warning("Text truncated from %s to %s characters", len(text), len(content))
        logger.info("Generating %s %s questions from %s characters (~%s tokens)",
                    number_of_questions, difficulty, len(content),
                    -(-len(content) // config.CHARS_PER_TOKEN))

        questions = self.generator.generate(content, number_of_questions, difficulty)

        quiz_data = {
            'book_id': book.id,
            'title': quiz_title(book, page_range),
            'page_range': page_range,
            'questions': questions,
            'difficulty': difficulty,
            'number_of_questions': len(questions),
        }
        try:
            quiz = self.cache.insert(quiz_data, cache_key=key, total_pages=book.total_pages)
        except DuplicateKey:
            logger.info("Quiz %s was stored by a concurrent request, reusing it", key)
            winner = self._lookup(key)
            if winner is None:
                raise
            return QuizResult(quiz=winner, book=book, from_cache=True)
        except StoreUnavailable as e:
            logger.error("Generated quiz %s could not be saved: %s", key, e.details or e)
            quiz = self.cache.build(quiz_data, cache_key=key, total_pages=book.total_pages)
            return QuizResult(quiz=quiz, book=book, from_cache=False, cached=False,
                              was_truncated=was_truncated)
        return QuizResult(quiz=quiz, book=book, from_cache=False, was_truncated=was_truncated)
