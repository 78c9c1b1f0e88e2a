"""Error taxonomy shared by the services and the HTTP layer.

Every error has a stable ``code`` (what clients switch on) and the HTTP status
the Flask handlers answer with.
"""


class QuizError(Exception):
    code = "quiz_error"
    status_code = 500

    def __init__(self, message: str = "", details: str = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details

    def to_dict(self, include_details: bool = False) -> dict:
        out = {"success": False, "error": self.code, "message": self.message}
        if include_details and self.details:
            out["details"] = self.details
        return out


class InvalidRequest(QuizError):
    code = "invalid_request"
    status_code = 400


class NotFound(QuizError):
    code = "not_found"
    status_code = 404


class RangeExceeded(InvalidRequest):
    code = "range_exceeded"


class NoContent(InvalidRequest):
    code = "no_content"


class ValidationFailed(QuizError):
    """Model answered, but not with a well-formed quiz."""
    code = "validation_failed"
    status_code = 502


class GenerationFailed(QuizError):
    code = "generation_failed"
    status_code = 502

    def __init__(self, message: str = "", last_error: Exception = None):
        super().__init__(message, details=str(last_error) if last_error else None)
        self.last_error = last_error


class DuplicateKey(QuizError):
    code = "duplicate_key"
    status_code = 409


class StoreUnavailable(QuizError):
    code = "store_unavailable"
    status_code = 503


# ===== provider errors =====

class ProviderError(QuizError):
    code = "provider_error"
    status_code = 502


class TransientProviderError(ProviderError):
    """Rate limit, timeout, dropped connection."""


class ProviderUnavailable(ProviderError):
    """Model missing, bad credentials, server-side failure."""
