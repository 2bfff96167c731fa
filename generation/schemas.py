"""
Pydantic schemas for the paper generation gateway.

Wire format is camelCase (what the UI sends and what the backend model must
emit); Python attributes stay snake_case.

Layer 1:   PaperSubmission     → inbound JSON body (base64 file payloads)
Layer 2:   GenerationRequest   → decoded files + PaperConfig, one gateway call
Layer 3:   QuestionPaper       → validated backend output (the Schema Contract)
Layer 4:   GenerationOutcome   → GenerationSuccess | GenerationFailure
"""

from enum import Enum
from typing import List, Optional, Union, Literal

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, StrictInt, StrictStr,
    field_validator, model_validator,
)
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Enumerations ──────────────────────────────────────────────────────────────

class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class QuestionType(str, Enum):
    MCQ = "MCQ"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
    LONG_ANSWER = "LONG_ANSWER"


# ─── Paper configuration ───────────────────────────────────────────────────────

class QuestionCounts(_CamelModel):
    """How many questions of each type the paper should contain."""
    model_config = ConfigDict(frozen=True)

    mcq: int = Field(0, ge=0)
    true_false: int = Field(
        0, ge=0, validation_alias=AliasChoices("trueFalse", "tf", "true_false")
    )
    short: int = Field(0, ge=0)
    long: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.mcq + self.true_false + self.short + self.long

    def for_type(self, question_type: "QuestionType") -> int:
        return {
            QuestionType.MCQ: self.mcq,
            QuestionType.TRUE_FALSE: self.true_false,
            QuestionType.SHORT_ANSWER: self.short,
            QuestionType.LONG_ANSWER: self.long,
        }[question_type]


class PaperConfig(_CamelModel):
    """Exam configuration chosen by the examiner. Immutable for one generation."""
    model_config = ConfigDict(frozen=True)

    grade_level: str = Field(..., min_length=1, description="e.g. 'Grade 8'")
    subject: str = Field(..., min_length=1)
    difficulty: Difficulty
    target_language: str = Field(..., min_length=1)
    counts: QuestionCounts


# ─── Source files ──────────────────────────────────────────────────────────────

class SubmittedFile(_CamelModel):
    """One uploaded file as it arrives over the wire."""
    id: Optional[str] = None
    name: str
    mime_type: str = Field(..., min_length=1)
    base64_payload: str = Field(..., description="Raw base64 or a data: URI")


class SourceFile(_CamelModel):
    """Decoded source document. Owned by the caller, never modified."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    mime_type: str
    payload: bytes = Field(..., repr=False)


class PaperSubmission(_CamelModel):
    """Inbound body of POST /generate-paper."""
    files: List[SubmittedFile] = Field(default_factory=list)
    config: PaperConfig


class GenerationRequest(BaseModel):
    """Decoded request; lives only for the duration of one gateway call."""
    model_config = ConfigDict(frozen=True)

    files: List[SourceFile]
    config: PaperConfig


# ─── Generated paper (Schema Contract) ─────────────────────────────────────────
# Backend output is checked strictly: no coercion of "20" or true into an
# integer, no unknown keys, and optional fields are either present or absent.

class Question(_CamelModel):
    """One question in the generated paper."""
    model_config = ConfigDict(extra="forbid")

    id: StrictStr
    type: QuestionType
    prompt: StrictStr
    options: Optional[List[StrictStr]] = Field(
        None, description="Required only if type is MCQ (at least 2 entries)"
    )
    correct_answer: StrictStr
    explanation: Optional[StrictStr] = None
    marks: StrictInt = Field(..., ge=1)

    @field_validator("options", "explanation", mode="before")
    @classmethod
    def _omit_rather_than_null(cls, value):
        if value is None:
            raise ValueError("must be omitted rather than null")
        return value

    @model_validator(mode="after")
    def _options_match_type(self) -> "Question":
        if self.type == QuestionType.MCQ:
            if not self.options or len(self.options) < 2:
                raise ValueError("MCQ questions require at least 2 options")
        elif self.options:
            raise ValueError(f"{self.type.value} questions must not carry options")
        return self


class QuestionPaper(_CamelModel):
    """A professional academic question paper."""
    model_config = ConfigDict(extra="forbid")

    title: StrictStr
    grade_level: StrictStr
    subject: StrictStr
    target_language: StrictStr
    duration_minutes: StrictInt = Field(..., ge=1)
    total_marks: StrictInt = Field(..., ge=1)
    instructions: List[StrictStr]
    questions: List[Question]

    def to_wire(self) -> dict:
        """camelCase dict with exactly the fields the backend supplied."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


# ─── Outcome / error taxonomy ──────────────────────────────────────────────────

class ErrorKind(str, Enum):
    RATE_LIMITED = "RateLimited"
    INVALID_REQUEST = "InvalidRequest"
    BACKEND_ERROR = "BackendError"
    MALFORMED_RESPONSE = "MalformedResponse"
    SCHEMA_VIOLATION = "SchemaViolation"


class ErrorBody(BaseModel):
    kind: ErrorKind
    message: str


class GenerationSuccess(BaseModel):
    ok: Literal[True] = True
    paper: QuestionPaper


class GenerationFailure(BaseModel):
    ok: Literal[False] = False
    error: ErrorBody

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]
