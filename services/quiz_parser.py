# services/quiz_parser.py
import json
import re
from typing import List

from pydantic import ValidationError

from errors import ValidationFailed
from schemas import QuizPayload

_FENCE = re.compile(r'^```[a-zA-Z]*\s*|\s*```\s*$')


def strip_code_fence(txt: str) -> str:
    """Remove a surrounding ```json ... ``` block, if any."""
    t = (txt or "").strip()
    if t.startswith("```"):
        t = _FENCE.sub("", t).strip()
    return t


def parse_quiz_response(txt: str) -> List[dict]:
    """
    Turn raw model output into validated question dicts.

    Accepts {"questions": [...]} or a bare list. Any structural problem, in
    any question, raises ValidationFailed.
    """
    cleaned = strip_code_fence(txt)
    if not cleaned:
        raise ValidationFailed("Empty model response")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValidationFailed(f"Response is not valid JSON: {e.msg}", details=cleaned[:500]) from e

    if isinstance(data, list):
        data = {"questions": data}
    if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
        raise ValidationFailed("Invalid response structure: missing questions array",
                               details=cleaned[:500])
    try:
        payload = QuizPayload.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first["loc"])
        raise ValidationFailed(f"{where}: {first['msg']}", details=str(e)) from e
    return [q.to_dict() for q in payload.questions]
