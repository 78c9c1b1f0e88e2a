# config.py
import os
from dotenv import load_dotenv

# .env se ucitava jednom, pre citanja bilo kog podesavanja
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
load_dotenv(dotenv_path=os.path.join(BASE_DIR, '.env'))


def _int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


def _float(name: str, default: float) -> float:
    return float(os.getenv(name, default))


RUNTIME_DIR = os.getenv("RUNTIME_DIR", os.path.join(BASE_DIR, "runtime"))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(RUNTIME_DIR, "uploads"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(RUNTIME_DIR, 'quizbook.db')}")

SECRET_KEY = os.getenv("SECRET_KEY", "dev")
APP_ENV = os.getenv("APP_ENV", "production")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ===== AI providers =====
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://127.0.0.1:11434/api/chat")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL")
# prazan string => koristi lanac samog providera
QUIZ_MODELS = [m.strip() for m in os.getenv("QUIZ_MODELS", "").split(",") if m.strip()]

QUIZ_ATTEMPTS_PER_MODEL = _int("QUIZ_ATTEMPTS_PER_MODEL", 3)
QUIZ_BACKOFF_SECONDS = _float("QUIZ_BACKOFF_SECONDS", 1.0)
QUIZ_ATTEMPT_TIMEOUT = _float("QUIZ_ATTEMPT_TIMEOUT", 45.0)

# ~1 token = 4 karaktera
QUIZ_MAX_TOKENS = _int("QUIZ_MAX_TOKENS", 15000)
CHARS_PER_TOKEN = _int("CHARS_PER_TOKEN", 4)
MAX_CONTENT_CHARS = QUIZ_MAX_TOKENS * CHARS_PER_TOKEN
TOKENS_PER_QUIZ = _int("TOKENS_PER_QUIZ", 1500)

# ===== Upload / requests =====
MAX_UPLOAD_BYTES = _int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024)
MIN_EXTRACTED_CHARS = _int("MIN_EXTRACTED_CHARS", 50)
DEFAULT_QUESTIONS = 5
MAX_QUESTIONS = 20
DEFAULT_DIFFICULTY = "medium"
DIFFICULTIES = ("easy", "medium", "hard")


def is_development() -> bool:
    return APP_ENV.lower() in ("development", "dev")
