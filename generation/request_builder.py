"""
Request Builder

Turns a GenerationRequest (decoded files + PaperConfig) into one
chat.completions payload:
  - one content part per source file, tagged with its declared mime type
  - the examiner instruction embedding every PaperConfig field
  - the paper Schema Contract as a structured-output constraint

No file content is inspected here.
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List

from generation import paper_contract
from generation.schemas import GenerationRequest, PaperConfig, SourceFile


# ─── Prompt ────────────────────────────────────────────────────────────────────

SYSTEM_PROMPT = "You are an expert academic examiner. Output only the JSON object that is asked for."

PAPER_PROMPT = """As an expert academic examiner, create a professional question paper based ONLY on the provided source materials.

Target Grade: {grade_level}
Subject: {subject}
Difficulty: {difficulty}
Target Language: {target_language}

CRITICAL REQUIREMENT: The entire output (Title, Instructions, Questions, Options, Answers, and Explanations) MUST be written in {target_language}.

Structure the paper into distinct sections:
1. Section A: Multiple Choice Questions ({mcq})
2. Section B: True/False Questions ({true_false})
3. Section C: Short Answer Questions ({short})
4. Section D: Long Answer Questions ({long})

Guidelines:
- Question types: MCQ → "MCQ", True/False → "TRUE_FALSE", Short → "SHORT_ANSWER", Long → "LONG_ANSWER".
- Distribute marks logically: MCQ (1 mark), T/F (1 mark), Short (3-5 marks), Long (8-10 marks).
- totalMarks must equal the sum of the marks of all questions.
- MCQ questions carry an "options" list (4 options); other question types have no options.
- Ensure questions range from factual recall to critical thinking according to the "{difficulty}" difficulty.
- Include clear instructions, a realistic durationMinutes and a professional academic title.
- Echo gradeLevel, subject and targetLanguage exactly as given above.
- Ensure the output is strictly based on the provided source material.
"""


def _section_count(n: int) -> str:
    if n == 0:
        return "0 questions, omit this section"
    return f"{n} question" if n == 1 else f"{n} questions"


def build_instruction(config: PaperConfig) -> str:
    """Natural-language instruction for one paper configuration."""
    counts = config.counts
    return PAPER_PROMPT.format(
        grade_level=config.grade_level,
        subject=config.subject,
        difficulty=config.difficulty.value,
        target_language=config.target_language,
        mcq=_section_count(counts.mcq),
        true_false=_section_count(counts.true_false),
        short=_section_count(counts.short),
        long=_section_count(counts.long),
    )


# ─── Attachments ───────────────────────────────────────────────────────────────

def _data_uri(file: SourceFile) -> str:
    encoded = base64.b64encode(file.payload).decode("ascii")
    return f"data:{file.mime_type};base64,{encoded}"


def build_attachment(file: SourceFile) -> Dict[str, Any]:
    """Chat content part for one source file (images inline, others as files)."""
    if file.mime_type.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": _data_uri(file)}}
    return {
        "type": "file",
        "file": {"filename": file.name, "file_data": _data_uri(file)},
    }


# ─── Payload ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class BackendRequest:
    """Everything the Generation Client needs for exactly one backend call."""
    model: str
    messages: List[Dict[str, Any]]
    response_format: Dict[str, Any]
    temperature: float = 0.4
    max_tokens: int = 8192
    attachment_count: int = field(default=0, compare=False)

    def as_kwargs(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": self.messages,
            "response_format": self.response_format,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


def build_backend_request(
    request: GenerationRequest,
    model: str,
    temperature: float = 0.4,
    max_tokens: int = 8192,
) -> BackendRequest:
    """
    Compose the backend invocation for one generation request.

    Args:
        request:     Decoded files + paper configuration
        model:       Backend model name
        temperature: Sampling temperature
        max_tokens:  Max response tokens (a full paper is long)

    Returns:
        BackendRequest ready for GenerationClient.invoke()
    """
    parts = [build_attachment(f) for f in request.files]
    parts.append({"type": "text", "text": build_instruction(request.config)})

    return BackendRequest(
        model=model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": parts},
        ],
        response_format=paper_contract.response_format(),
        temperature=temperature,
        max_tokens=max_tokens,
        attachment_count=len(request.files),
    )
