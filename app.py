import os, atexit, logging, uuid

import config  # ucitava .env pre svega ostalog

from flask import Flask, request, jsonify, send_file
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from ai_providers.factory import get_provider, model_chain, ping
from db import make_engine, make_session_factory, init_db
from errors import QuizError, InvalidRequest, NotFound
from schemas import QuizRequestIn
from services import extract_text
from services.books import BookRepository, parse_book_id
from services.quiz_cache import QuizCacheStore
from services.quiz_service import QuizService
from services.quizzer import QuizGenerator

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
                    format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    where = ".".join(str(p) for p in err["loc"])
    return f"{where}: {err['msg']}" if where else err["msg"]


def create_app(session_factory=None, provider=None, generator=None,
               upload_dir: str = None, database_url: str = None) -> Flask:
    """
    Build the app with its collaborators. Anything not passed in is built from
    config; an engine created here is disposed at interpreter exit.
    """
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = config.MAX_UPLOAD_BYTES + 1024 * 1024

    if session_factory is None:
        os.makedirs(config.RUNTIME_DIR, exist_ok=True)
        engine = make_engine(database_url or config.DATABASE_URL)
        init_db(engine)
        session_factory = make_session_factory(engine)
        atexit.register(engine.dispose)

    upload_dir = upload_dir or config.UPLOAD_DIR
    os.makedirs(upload_dir, exist_ok=True)

    provider = provider or get_provider()
    generator = generator or QuizGenerator(provider, models=model_chain(provider))
    books = BookRepository(session_factory)
    cache = QuizCacheStore(session_factory)
    quizzes = QuizService(books, cache, generator)
    logger.info("Quiz provider: %s, models: %s", provider.name, ", ".join(generator.models))

    app.extensions['quizbook'] = {'books': books, 'cache': cache, 'quizzes': quizzes}

    # ============== ERRORS ==============

    @app.errorhandler(QuizError)
    def handle_quiz_error(e: QuizError):
        if e.status_code >= 500:
            logger.error("%s: %s (%s)", e.code, e.message, e.details)
        return jsonify(e.to_dict(include_details=config.is_development())), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({'success': False, 'error': e.name.lower().replace(' ', '_'),
                        'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error")
        body = {'success': False, 'error': 'internal_error', 'message': 'Failed to process request'}
        if config.is_development():
            body['details'] = str(e)
        return jsonify(body), 500

    # ============== BOOKS ==============

    @app.post('/api/books/upload')
    def upload_book():
        file = request.files.get('file')
        if not file or not file.filename:
            raise InvalidRequest('No file uploaded. Please upload a PDF file.')
        fname = secure_filename(file.filename)
        if not fname.lower().endswith('.pdf'):
            raise InvalidRequest('Invalid file type. Only PDF files are allowed.')

        data = file.read()
        if len(data) > config.MAX_UPLOAD_BYTES:
            raise InvalidRequest(
                f'File too large. Maximum size is {config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB.')

        ok, error, page_count = extract_text.is_valid_pdf(data)
        if not ok:
            raise InvalidRequest(f'Invalid PDF file: {error}')
        logger.info("Processing PDF %s (%s pages)", fname, page_count)

        pages = extract_text.extract_pages(data)
        if sum(p['character_count'] for p in pages) < config.MIN_EXTRACTED_CHARS:
            raise InvalidRequest('PDF appears to be scanned or has no extractable text. '
                                 'Please upload a PDF with text content.')

        meta = extract_text.pdf_metadata(data)
        title = (request.form.get('title') or meta['title'] or os.path.splitext(fname)[0]).strip()
        author = (request.form.get('author') or meta['author'] or '').strip()

        # isto ime fajla moze stici vise puta
        stored_name = f"{uuid.uuid4().hex}.pdf"
        with open(os.path.join(upload_dir, stored_name), 'wb') as f:
            f.write(data)

        book = books.create_book(title=title, author=author, filename=fname, pages=pages,
                                 size_kb=max(1, len(data) // 1024), stored_name=stored_name)
        return jsonify({'success': True, 'message': 'Book uploaded successfully',
                        'data': {'book': book.to_dict()}}), 201

    @app.get('/api/books')
    def list_books():
        try:
            page = int(request.args.get('page', 1))
            limit = int(request.args.get('limit', 20))
        except ValueError:
            raise InvalidRequest('page and limit must be integers')
        res = books.list_books(page=page, limit=limit)
        return jsonify({'success': True, 'data': {
            'books': [b.to_dict() for b in res['books']],
            'pagination': res['pagination'],
        }})

    @app.get('/api/books/<book_id>')
    def get_book(book_id):
        book = books.get_book(parse_book_id(book_id))
        include_pages = request.args.get('include_pages') in ('1', 'true')
        return jsonify({'success': True, 'data': {'book': book.to_dict(include_pages=include_pages)}})

    @app.delete('/api/books/<book_id>')
    def delete_book(book_id):
        book = books.delete_book(parse_book_id(book_id))
        return jsonify({'success': True, 'message': 'Book deleted successfully',
                        'data': {'deletedBook': {'id': book.id, 'title': book.title,
                                                 'author': book.author}}})

    @app.get('/api/books/<book_id>/pdf')
    def book_pdf(book_id):
        book = books.get_book(parse_book_id(book_id))
        path = os.path.join(upload_dir, book.stored_name) if book.stored_name else None
        if not path or not os.path.isfile(path):
            raise NotFound('PDF file not found')
        return send_file(path, mimetype='application/pdf', download_name=book.filename)

    @app.get('/api/books/<book_id>/cache-stats')
    def cache_stats(book_id):
        return jsonify({'success': True, 'data': cache.stats(parse_book_id(book_id))})

    # ============== QUIZ ==============

    @app.post('/api/quiz/generate')
    def quiz_generate():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise InvalidRequest('Request body must be a JSON object')
        if body.get('bookId') in (None, ''):
            raise InvalidRequest('bookId is required')
        try:
            req = QuizRequestIn.model_validate(body)
        except ValidationError as e:
            raise InvalidRequest(_first_error(e))

        result = quizzes.get_or_create(
            req.book_id,
            page_range=req.page_range.model_dump() if req.page_range else None,
            number_of_questions=req.number_of_questions,
            difficulty=req.difficulty,
        )
        return jsonify(result.to_response())

    @app.get('/api/quiz/<quiz_id>')
    def quiz_view(quiz_id):
        try:
            qid = int(quiz_id)
        except ValueError:
            raise InvalidRequest('Invalid quiz ID format')
        quiz = cache.get(qid)
        data = quiz.to_dict()
        try:
            book = books.get_book(quiz.book_id)
            data['book'] = book.to_dict()
        except NotFound:
            data['book'] = None
        return jsonify({'success': True, 'data': {'quiz': data}})

    @app.get('/api/health')
    def health():
        body = {'success': True, 'provider': provider.name, 'model': generator.models[0]}
        # ?check=1 sends a real prompt to the first model
        if request.args.get('check') in ('1', 'true'):
            body['connected'] = ping(provider, generator.models[0])
            if not body['connected']:
                body['success'] = False
                return jsonify(body), 503
        return jsonify(body)

    return app


if __name__ == '__main__':
    create_app().run(debug=config.is_development())
