import json
import re

import pytest

from ai_providers.base import AIProvider
from db import init_db, make_engine, make_session_factory
from services.books import BookRepository
from services.quiz_cache import QuizCacheStore
from services.quiz_service import QuizService
from services.quizzer import QuizGenerator

_COUNT = re.compile(r'Generate exactly (\d+) questions')


def make_questions(n, prefix="Q"):
    return [{
        "question": f"{prefix}{i + 1}: what does page {i + 1} describe?",
        "options": ["A) One", "B) Two", "C) Three", "D) Four"],
        "correctAnswer": "ABCD"[i % 4],
        "explanation": f"Explained on page {i + 1}.",
    } for i in range(n)]


def quiz_json(n, fenced=False):
    body = json.dumps({"questions": make_questions(n)})
    return f"```json\n{body}\n```" if fenced else body


class FakeProvider(AIProvider):
    """Scripted provider. Each queued item is a string, an exception or a callable(prompt, model)."""
    default_models = ["fast-model", "big-model"]

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def generate(self, prompt, model, timeout=None):
        self.calls.append({"model": model, "prompt": prompt, "timeout": timeout})
        if not self.responses:
            m = _COUNT.search(prompt)
            return quiz_json(int(m.group(1)) if m else 5)
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        if callable(r):
            return r(prompt, model)
        return r


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def books(session_factory):
    return BookRepository(session_factory)


@pytest.fixture
def cache(session_factory):
    return QuizCacheStore(session_factory)


@pytest.fixture
def book(books):
    pages = []
    for i in range(1, 51):
        text = f"Page {i} explains photosynthesis stage number {i} in considerable detail."
        pages.append({"page_number": i, "text": text, "character_count": len(text)})
    return books.create_book(title="Plant Biology", author="A. Botanist",
                             filename="plants.pdf", pages=pages, size_kb=120)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def generator(provider, sleeps):
    return QuizGenerator(provider, attempts_per_model=3, backoff=1.0, timeout=30, sleep=sleeps.append)


@pytest.fixture
def service(books, cache, generator):
    return QuizService(books, cache, generator)


@pytest.fixture
def app(session_factory, provider, generator, tmp_path):
    from app import create_app
    flask_app = create_app(session_factory=session_factory, provider=provider,
                           generator=generator, upload_dir=str(tmp_path / "uploads"))
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
