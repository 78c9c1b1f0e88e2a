import re
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

import config

LABELS = "ABCD"
_LABELED = re.compile(r'^\s*([A-Da-d])\s*[\)\.:]\s*')
_ANSWER = re.compile(r'^\s*([A-Da-d])(?:\s*[\)\.:].*|\s*)$', re.DOTALL)


class PageRange(BaseModel):
    start: int = Field(ge=1)
    end: int = Field(ge=1)

    @model_validator(mode='after')
    def _ordered(self):
        if self.start > self.end:
            raise ValueError('start page must be less than or equal to end page')
        return self


class QuizRequestIn(BaseModel):
    """Body of POST /api/quiz/generate."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    book_id: int = Field(alias='bookId', ge=1)
    page_range: Optional[PageRange] = Field(default=None, alias='pageRange')
    number_of_questions: int = Field(default=config.DEFAULT_QUESTIONS, alias='numberOfQuestions',
                                     ge=1, le=config.MAX_QUESTIONS)
    difficulty: Literal['easy', 'medium', 'hard'] = config.DEFAULT_DIFFICULTY

    @field_validator('book_id', mode='before')
    @classmethod
    def _book_id(cls, v):
        # "12" je ok, "abc" / 1.5 / True nisu
        if isinstance(v, bool):
            raise ValueError('invalid bookId format')
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        if not isinstance(v, int):
            raise ValueError('invalid bookId format')
        return v

    @field_validator('difficulty', mode='before')
    @classmethod
    def _lower(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator('number_of_questions', 'difficulty', mode='before')
    @classmethod
    def _null_is_default(cls, v, info):
        if v is None:
            return config.DEFAULT_QUESTIONS if info.field_name == 'number_of_questions' else config.DEFAULT_DIFFICULTY
        return v


# ===== model output =====

class QuizQuestion(BaseModel):
    """One validated multiple-choice question, as stored and returned."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=4, max_length=4)
    correct_answer: Literal['A', 'B', 'C', 'D'] = Field(alias='correctAnswer')
    explanation: str = Field(min_length=1)

    @field_validator('options', mode='before')
    @classmethod
    def _label_options(cls, v):
        if not isinstance(v, list) or len(v) != len(LABELS):
            raise ValueError('must have exactly 4 options')
        out = []
        for label, opt in zip(LABELS, v):
            if not isinstance(opt, str) or not opt.strip():
                raise ValueError(f'option {label} must be a non-empty string')
            # "A) x", "a. x", "x" -> "A) x"
            out.append(f"{label}) {_LABELED.sub('', opt.strip(), count=1)}")
        return out

    @field_validator('correct_answer', mode='before')
    @classmethod
    def _answer_letter(cls, v):
        if not isinstance(v, str):
            raise ValueError('correctAnswer must be a string')
        m = _ANSWER.match(v)
        if not m:
            raise ValueError('correctAnswer must be one of A, B, C, D')
        return m.group(1).upper()

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class QuizPayload(BaseModel):
    questions: List[QuizQuestion] = Field(min_length=1)
