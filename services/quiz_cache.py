"""
Quiz cache: persisted quizzes keyed by their request identity.

Every successful `find` counts as a use: usage_count and last_used_at are
bumped in the same UPDATE statement that proves the row exists, so two
concurrent hits never lose an increment.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

import config
from errors import DuplicateKey, NotFound, StoreUnavailable
from models import CachedQuiz
from services.cache_key import derive_key, normalize_range

logger = logging.getLogger(__name__)


def tokens_saved_for(usage_count: int, tokens_per_quiz: int = config.TOKENS_PER_QUIZ) -> int:
    # prva upotreba je bila generacija
    return max(0, usage_count - 1) * tokens_per_quiz


class QuizCacheStore:
    def __init__(self, session_factory, tokens_per_quiz: int = config.TOKENS_PER_QUIZ):
        self.session_factory = session_factory
        self.tokens_per_quiz = tokens_per_quiz

    def find(self, key: str) -> Optional[CachedQuiz]:
        """Return the quiz stored under `key` after counting this use, or None."""
        try:
            with self.session_factory() as s, s.begin():
                res = s.execute(
                    update(CachedQuiz)
                    .where(CachedQuiz.cache_key == key)
                    .values(usage_count=CachedQuiz.usage_count + 1,
                            last_used_at=datetime.utcnow())
                    .execution_options(synchronize_session=False)
                )
                if not res.rowcount:
                    logger.info("Cache MISS: %s", key)
                    return None
                quiz = s.execute(select(CachedQuiz).where(CachedQuiz.cache_key == key)).scalar_one()
        except SQLAlchemyError as e:
            raise StoreUnavailable("Quiz cache lookup failed", details=str(e)) from e
        logger.info("Cache HIT: %s (used %s times)", key, quiz.usage_count)
        return quiz

    def build(self, quiz_data: dict, cache_key: Optional[str] = None,
              total_pages: Optional[int] = None) -> CachedQuiz:
        """Unsaved CachedQuiz for `quiz_data`, as `insert` would store it."""
        start, end = normalize_range(quiz_data.get('page_range'), total_pages)
        key = cache_key or derive_key(quiz_data['book_id'], quiz_data.get('page_range'),
                                      quiz_data['number_of_questions'], quiz_data['difficulty'],
                                      total_pages=total_pages)
        now = datetime.utcnow()
        return CachedQuiz(
            book_id=quiz_data['book_id'],
            title=quiz_data['title'],
            generated_date=quiz_data.get('generated_date') or now,
            page_start=start,
            page_end=end,
            questions=quiz_data['questions'],
            difficulty=quiz_data['difficulty'],
            number_of_questions=quiz_data['number_of_questions'],
            cache_key=key,
            usage_count=1,
            last_used_at=now,
            generated_by='model',
        )

    def insert(self, quiz_data: dict, cache_key: Optional[str] = None,
               total_pages: Optional[int] = None) -> CachedQuiz:
        """
        Persist a freshly generated quiz.

        quiz_data: book_id, title, page_range, questions, difficulty,
        number_of_questions. Raises DuplicateKey when the key is already
        taken, StoreUnavailable for any other store failure.
        """
        quiz = self.build(quiz_data, cache_key=cache_key, total_pages=total_pages)
        try:
            with self.session_factory() as s, s.begin():
                s.add(quiz)
        except IntegrityError as e:
            raise DuplicateKey(f"Quiz already cached under {quiz.cache_key}", details=str(e)) from e
        except SQLAlchemyError as e:
            raise StoreUnavailable("Could not save quiz", details=str(e)) from e
        logger.info("Quiz saved to cache with key: %s", quiz.cache_key)
        return quiz

    def get(self, quiz_id: int) -> CachedQuiz:
        """Plain read by id; not counted as a use."""
        try:
            with self.session_factory() as s:
                quiz = s.get(CachedQuiz, quiz_id)
        except SQLAlchemyError as e:
            raise StoreUnavailable("Could not load quiz", details=str(e)) from e
        if quiz is None:
            raise NotFound("Quiz not found")
        return quiz

    def stats(self, book_id: int) -> dict:
        try:
            with self.session_factory() as s:
                quizzes: List[CachedQuiz] = list(s.execute(
                    select(CachedQuiz).where(CachedQuiz.book_id == book_id)
                ).scalars())
                unique = s.execute(
                    select(func.count(func.distinct(CachedQuiz.cache_key)))
                    .where(CachedQuiz.book_id == book_id)
                ).scalar_one()
        except SQLAlchemyError as e:
            raise StoreUnavailable("Could not compute cache stats", details=str(e)) from e

        if not quizzes:
            return {
                'total_quizzes': 0,
                'unique_configurations': 0,
                'total_usage': 0,
                'cache_hits': 0,
                'hit_rate': 0.0,
                'tokens_saved': 0,
                'top_configurations': [],
            }

        total_usage = sum(q.usage_count or 0 for q in quizzes)
        hits = max(0, total_usage - unique)
        top = sorted(quizzes, key=lambda q: q.usage_count or 0, reverse=True)[:5]
        out = {
            'total_quizzes': len(quizzes),
            'unique_configurations': unique,
            'total_usage': total_usage,
            'cache_hits': hits,
            'hit_rate': round(hits / total_usage, 3) if total_usage else 0.0,
            'tokens_saved': hits * self.tokens_per_quiz,
            'top_configurations': [{
                'page_range': f"{q.page_start}-{q.page_end}",
                'difficulty': q.difficulty,
                'questions': q.number_of_questions,
                'usage_count': q.usage_count,
                'last_used': q.last_used_at.isoformat() if q.last_used_at else None,
            } for q in top],
        }
        logger.info("Cache stats for book %s: %s quizzes, hit rate %.1f%%, ~%s tokens saved",
                    book_id, out['total_quizzes'], out['hit_rate'] * 100, out['tokens_saved'])
        return out
