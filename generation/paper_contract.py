"""
Schema Contract for the generated question paper.

The pydantic QuestionPaper model is the one definition of the paper shape.
Both directions are derived from it here:
  - response_format() → structured-output constraint sent to the backend
  - parse_paper()     → validation of the object the backend sent back
"""

import copy
from typing import Any, Dict

from generation.schemas import QuestionPaper

SCHEMA_NAME = "question_paper"
SCHEMA_DESCRIPTION = "A professional academic question paper"

# JSON Schema keywords the structured-output endpoints do not need
_DROP_KEYS = ("title", "default")


def _resolve(node: Any, defs: Dict[str, Any]) -> Any:
    """Inline $ref pointers, collapse Optional[...] and close every object."""
    if isinstance(node, list):
        return [_resolve(item, defs) for item in node]
    if not isinstance(node, dict):
        return node

    if "$ref" in node:
        name = node["$ref"].rsplit("/", 1)[-1]
        merged = {**copy.deepcopy(defs[name]), **{k: v for k, v in node.items() if k != "$ref"}}
        return _resolve(merged, defs)

    # Optional[X] is emitted as anyOf [X, null]; omitted fields are how the
    # contract expresses "absent", so only X is advertised.
    if "anyOf" in node:
        branches = [b for b in node["anyOf"] if b.get("type") != "null"]
        if len(branches) == 1:
            rest = {k: v for k, v in node.items() if k != "anyOf"}
            return _resolve({**branches[0], **rest}, defs)

    out = {}
    for key, value in node.items():
        if key in _DROP_KEYS and not isinstance(value, dict):
            continue
        if key == "$defs":
            continue
        if key == "properties":
            out[key] = {name: _resolve(prop, defs) for name, prop in value.items()}
        else:
            out[key] = _resolve(value, defs)

    if out.get("type") == "object":
        out.setdefault("additionalProperties", False)
    return out


def response_schema() -> Dict[str, Any]:
    """JSON Schema of the paper, camelCase, self-contained (no $ref)."""
    raw = QuestionPaper.model_json_schema(by_alias=True)
    schema = _resolve(raw, raw.get("$defs", {}))
    schema["description"] = SCHEMA_DESCRIPTION
    return schema


def response_format() -> Dict[str, Any]:
    """Structured-output constraint for chat.completions (response_format=...)."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": SCHEMA_NAME,
            "description": SCHEMA_DESCRIPTION,
            # strict mode would force every optional field to be present
            "strict": False,
            "schema": response_schema(),
        },
    }


def parse_paper(data: Any) -> QuestionPaper:
    """
    Validate a decoded backend object against the contract.

    Raises:
        pydantic.ValidationError: on any missing field, wrong type, unknown
            question type, or MCQ options mismatch.
    """
    return QuestionPaper.model_validate(data)
