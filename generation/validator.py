"""
Response Validator

Parses the raw backend text as a QuestionPaper:
  1. JSON decoding            → MalformedResponseError on failure
  2. Schema Contract check    → SchemaViolationError (first violation found)

Optional semantic pass (check_semantics) compares the paper with the
requested configuration. It is off unless SEMANTIC_VALIDATION is set.
"""

import json
import re
from collections import Counter

from pydantic import ValidationError

from generation import paper_contract
from generation.errors import MalformedResponseError, SchemaViolationError
from generation.schemas import PaperConfig, QuestionPaper, QuestionType


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    raw = re.sub(r"^```(?:json)?\s*", "", raw)
    raw = re.sub(r"\s*```$", "", raw)
    return raw


def _describe(error: dict) -> str:
    loc = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
    return f"{loc}: {error.get('msg', 'invalid value')}"


def parse_backend_response(raw: str) -> QuestionPaper:
    """
    Parse and validate raw backend output.

    Returns:
        The validated QuestionPaper (content unchanged)

    Raises:
        MalformedResponseError: text is empty or not JSON
        SchemaViolationError:   JSON does not satisfy the paper contract
    """
    text = _strip_fences(raw or "")
    if not text:
        raise MalformedResponseError("Backend returned an empty response")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Backend response is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})")

    try:
        return paper_contract.parse_paper(data)
    except ValidationError as e:
        errors = e.errors()
        first = _describe(errors[0]) if errors else str(e)
        more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
        raise SchemaViolationError(f"Backend response violates the paper schema: {first}{more}")


def check_semantics(paper: QuestionPaper, config: PaperConfig) -> None:
    """
    Cross-check the paper against the requested configuration.

    Raises:
        SchemaViolationError: totalMarks differs from the sum of question
            marks, or a question type count differs from the request
    """
    marks = sum(q.marks for q in paper.questions)
    if marks != paper.total_marks:
        raise SchemaViolationError(
            f"totalMarks is {paper.total_marks} but questions add up to {marks}"
        )

    found = Counter(q.type for q in paper.questions)
    for qtype in QuestionType:
        wanted = config.counts.for_type(qtype)
        if found.get(qtype, 0) != wanted:
            raise SchemaViolationError(
                f"Expected {wanted} {qtype.value} question(s), got {found.get(qtype, 0)}"
            )
