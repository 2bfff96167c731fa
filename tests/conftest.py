import base64
import copy
import json

import pytest

from generation.gateway import PaperGateway
from generation.rate_limiter import AllowAllRateLimiter
from generation.schemas import PaperSubmission


PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\n%%EOF"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


FRENCH_PAPER = {
    "title": "Évaluation de Sciences : La photosynthèse",
    "gradeLevel": "Grade 6",
    "subject": "Science",
    "targetLanguage": "French",
    "durationMinutes": 20,
    "totalMarks": 3,
    "instructions": [
        "Répondez à toutes les questions.",
        "Chaque question vaut 1 point.",
    ],
    "questions": [
        {
            "id": "q1",
            "type": "MCQ",
            "prompt": "Quel gaz les plantes absorbent-elles pendant la photosynthèse ?",
            "options": ["L'oxygène", "Le dioxyde de carbone", "L'azote", "L'hélium"],
            "correctAnswer": "Le dioxyde de carbone",
            "explanation": "Les plantes utilisent le CO2 pour produire du glucose.",
            "marks": 1,
        },
        {
            "id": "q2",
            "type": "MCQ",
            "prompt": "Où se déroule la photosynthèse ?",
            "options": ["Dans les racines", "Dans les chloroplastes"],
            "correctAnswer": "Dans les chloroplastes",
            "explanation": "La chlorophylle se trouve dans les chloroplastes.",
            "marks": 1,
        },
        {
            "id": "q3",
            "type": "TRUE_FALSE",
            "prompt": "La photosynthèse produit de l'oxygène.",
            "correctAnswer": "Vrai",
            "explanation": "L'oxygène est libéré comme sous-produit.",
            "marks": 1,
        },
    ],
}

FRENCH_CONFIG = {
    "gradeLevel": "Grade 6",
    "subject": "Science",
    "difficulty": "EASY",
    "targetLanguage": "French",
    "counts": {"mcq": 2, "tf": 1, "short": 0, "long": 0},
}


# ─── Collaborator stubs ────────────────────────────────────────────────────────

class StubClient:
    """Generation Client stand-in: returns canned text or raises."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.calls = 0
        self.payloads = []

    async def invoke(self, payload):
        self.calls += 1
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        pass


class StubRateLimiter:
    name = "stub"

    def __init__(self, allowed=True, error=None):
        self.allowed = allowed
        self.error = error
        self.keys = []

    async def admit(self, key):
        self.keys.append(key)
        if self.error is not None:
            raise self.error
        return self.allowed


# ─── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def french_paper():
    return copy.deepcopy(FRENCH_PAPER)


@pytest.fixture
def french_config():
    return copy.deepcopy(FRENCH_CONFIG)


@pytest.fixture
def pdf_file_wire():
    return {
        "id": "f1",
        "name": "chapter-3.pdf",
        "mimeType": "application/pdf",
        "base64Payload": base64.b64encode(PDF_BYTES).decode("ascii"),
    }


@pytest.fixture
def make_submission(pdf_file_wire, french_config):
    def _make(files=None, config=None) -> PaperSubmission:
        return PaperSubmission.model_validate({
            "files": [pdf_file_wire] if files is None else files,
            "config": french_config if config is None else config,
        })
    return _make


@pytest.fixture
def make_gateway():
    def _make(response="", error=None, rate_limiter=None, semantic_validation=False):
        client = StubClient(response=response, error=error)
        gateway = PaperGateway(
            rate_limiter or AllowAllRateLimiter(),
            client,
            model="test-model",
            semantic_validation=semantic_validation,
        )
        return gateway, client
    return _make


@pytest.fixture
def french_response(french_paper):
    return json.dumps(french_paper, ensure_ascii=False)
