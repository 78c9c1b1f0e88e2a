from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey, JSON,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime

Base = declarative_base()

class Book(Base):
    __tablename__ = 'books'
    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), default='')
    filename = Column(String(255), nullable=False)
    stored_name = Column(String(64))     # jedinstveno ime fajla u UPLOAD_DIR
    size_kb = Column(Integer, default=0)
    total_pages = Column(Integer, default=0)
    content = Column(Text)            # legacy full-text blob, None kad postoje stranice
    created_at = Column(DateTime, default=datetime.utcnow)

    pages = relationship('BookPage', back_populates='book', cascade='all,delete-orphan',
                         order_by='BookPage.page_number')

    @property
    def total_characters(self) -> int:
        return sum(p.character_count or 0 for p in self.pages)

    def to_dict(self, include_pages: bool = False) -> dict:
        out = {
            'id': self.id,
            'title': self.title,
            'author': self.author,
            'filename': self.filename,
            'sizeKb': self.size_kb,
            'totalPages': self.total_pages,
            'totalCharacters': self.total_characters,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_pages:
            out['pages'] = [p.to_dict() for p in self.pages]
        return out

class BookPage(Base):
    __tablename__ = 'book_pages'
    __table_args__ = (UniqueConstraint('book_id', 'page_number', name='uq_book_page'),)
    id = Column(Integer, primary_key=True)
    book_id = Column(Integer, ForeignKey('books.id'), nullable=False)
    page_number = Column(Integer, nullable=False)   # 1..total_pages
    text = Column(Text, default='')
    character_count = Column(Integer, default=0)

    book = relationship('Book', back_populates='pages')

    def to_dict(self) -> dict:
        return {'pageNumber': self.page_number, 'text': self.text,
                'characterCount': self.character_count}

# ===== QUIZ CACHE =====

class CachedQuiz(Base):
    __tablename__ = 'cached_quizzes'
    __table_args__ = (
        UniqueConstraint('cache_key', name='uq_cached_quiz_key'),
        Index('ix_cached_quiz_book', 'book_id'),
    )
    id = Column(Integer, primary_key=True)
    # bez FK: brisanje knjige ne brise kvizove
    book_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    generated_date = Column(DateTime, default=datetime.utcnow)
    page_start = Column(Integer, nullable=False)
    page_end = Column(Integer, nullable=False)
    questions = Column(JSON, nullable=False)      # [{question, options[4], correctAnswer, explanation}]
    difficulty = Column(String(16), default='medium')
    number_of_questions = Column(Integer, nullable=False)
    cache_key = Column(String(255), nullable=False)
    usage_count = Column(Integer, default=1)
    last_used_at = Column(DateTime, default=datetime.utcnow)
    generated_by = Column(String(16), default='model')   # model|cache

    @property
    def page_range(self) -> dict:
        return {'start': self.page_start, 'end': self.page_end}

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'bookId': self.book_id,
            'title': self.title,
            'generatedDate': self.generated_date.isoformat() if self.generated_date else None,
            'pageRange': self.page_range,
            'difficulty': self.difficulty,
            'numberOfQuestions': self.number_of_questions,
            'questions': self.questions,
            'usageCount': self.usage_count,
            'lastUsedAt': self.last_used_at.isoformat() if self.last_used_at else None,
            'generatedBy': self.generated_by,
        }
