"""
Gateway Orchestrator

One request, one linear pass, no retries:

  Received → Admitted | Rejected(RateLimited)
           → Built → Invoked → Parsed | Failed(MalformedResponse | SchemaViolation)
           → Done(Success | Failure)

Every failure is converted to a GenerationFailure here; no exception leaves
generate() or submit(). The gateway keeps no state between calls; the only
shared state is whatever the injected RateLimiter holds.
"""

import base64
import binascii
import logging
import uuid
from typing import Callable, List

from generation.errors import BackendError, GatewayError, InvalidRequestError, RateLimitedError
from generation.gpt_client import GenerationClient
from generation.rate_limiter import RateLimiter, build_rate_limiter
from generation.request_builder import build_backend_request
from generation.schemas import (
    GenerationFailure,
    GenerationOutcome,
    GenerationRequest,
    GenerationSuccess,
    PaperSubmission,
    QuestionPaper,
    SourceFile,
    SubmittedFile,
)
from generation.validator import check_semantics, parse_backend_response

log = logging.getLogger("generation.gateway")

RATE_LIMITED_MESSAGE = "Too many requests. Please wait a minute before trying again."


# ─── Input decoding ────────────────────────────────────────────────────────────

def _strip_data_uri(payload: str) -> str:
    """'data:application/pdf;base64,AAAA' → 'AAAA' (plain base64 passes through)."""
    if payload.startswith("data:") and "," in payload:
        return payload.split(",", 1)[1]
    return payload


def decode_file(file: SubmittedFile) -> SourceFile:
    try:
        payload = base64.b64decode(_strip_data_uri(file.base64_payload.strip()), validate=True)
    except (binascii.Error, ValueError):
        raise InvalidRequestError(f"File '{file.name}' is not valid base64")
    if not payload:
        raise InvalidRequestError(f"File '{file.name}' is empty")
    return SourceFile(
        id=file.id or uuid.uuid4().hex,
        name=file.name,
        mime_type=file.mime_type,
        payload=payload,
    )


def decode_submission(submission: PaperSubmission) -> GenerationRequest:
    """Inbound wire body → GenerationRequest. Raises InvalidRequestError."""
    if not submission.files:
        raise InvalidRequestError("At least one source file is required")

    files: List[SourceFile] = [decode_file(f) for f in submission.files]
    ids = [f.id for f in files]
    if len(set(ids)) != len(ids):
        raise InvalidRequestError("File ids must be unique within a request")

    if submission.config.counts.total == 0:
        raise InvalidRequestError("Request at least one question")

    return GenerationRequest(files=files, config=submission.config)


def _require_files(request: GenerationRequest) -> GenerationRequest:
    if not request.files:
        raise InvalidRequestError("At least one source file is required")
    return request


# ─── Orchestrator ──────────────────────────────────────────────────────────────

class PaperGateway:

    def __init__(
        self,
        rate_limiter: RateLimiter,
        client: GenerationClient,
        *,
        model: str,
        temperature: float = 0.4,
        max_tokens: int = 8192,
        semantic_validation: bool = False,
    ):
        self.rate_limiter = rate_limiter
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.semantic_validation = semantic_validation

    async def submit(self, submission: PaperSubmission, client_key: str) -> GenerationOutcome:
        """Admit, decode the wire body, then run one generation cycle."""
        return await self._cycle(client_key, lambda: decode_submission(submission))

    async def generate(self, request: GenerationRequest, client_key: str) -> GenerationOutcome:
        """Run one generation cycle for an already-decoded request."""
        return await self._cycle(client_key, lambda: _require_files(request))

    async def _cycle(
        self,
        client_key: str,
        prepare: Callable[[], GenerationRequest],
    ) -> GenerationOutcome:
        try:
            await self._admit(client_key)
            request = prepare()
            return GenerationSuccess(paper=await self._run(request, client_key))
        except GatewayError as e:
            return self._failure(e, client_key)
        except Exception as e:
            log.exception(f"[FAILED] client={client_key} unexpected error")
            return self._failure(BackendError(f"Unexpected gateway error: {e}"), client_key)

    # ── stages ──

    async def _admit(self, client_key: str) -> None:
        try:
            allowed = await self.rate_limiter.admit(client_key)
        except Exception as e:
            log.error(f"[ADMIT] rate limiter unavailable: {e}")
            raise BackendError(f"Rate limiter unavailable: {e}")
        if not allowed:
            raise RateLimitedError(RATE_LIMITED_MESSAGE)
        log.info(f"[ADMIT] client={client_key}")

    async def _run(self, request: GenerationRequest, client_key: str) -> QuestionPaper:
        config = request.config
        payload = build_backend_request(
            request,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        size = sum(len(f.payload) for f in request.files)
        log.info(
            f"[BUILD] client={client_key} files={len(request.files)} bytes={size} "
            f"subject='{config.subject}' grade='{config.grade_level}' "
            f"difficulty={config.difficulty.value} language='{config.target_language}' "
            f"counts={config.counts.model_dump()}"
        )

        try:
            raw = await self.client.invoke(payload)
        except Exception as e:
            log.error(f"[INVOKE] backend call failed: {type(e).__name__}: {e}")
            raise BackendError(f"Generation backend failed: {e}")

        paper = parse_backend_response(raw)
        if self.semantic_validation:
            check_semantics(paper, config)

        log.info(
            f"[DONE] client={client_key} questions={len(paper.questions)} "
            f"total_marks={paper.total_marks}"
        )
        return paper

    @staticmethod
    def _failure(error: GatewayError, client_key: str) -> GenerationFailure:
        level = logging.INFO if isinstance(error, RateLimitedError) else logging.WARNING
        log.log(level, f"[FAILED] client={client_key} kind={error.kind.value}: {error.message}")
        return GenerationFailure(error=error.to_body())


def build_gateway() -> PaperGateway:
    """Gateway wired from environment configuration (see generation.config)."""
    from generation import config

    rate_limiter = build_rate_limiter(
        config.RATE_LIMIT_BACKEND,
        limit=config.RATE_LIMIT_REQUESTS,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
    )
    client = GenerationClient(
        api_key=config.OPENAI_API_KEY,
        base_url=config.LLM_BASE_URL,
        timeout=config.LLM_TIMEOUT_SECONDS,
    )
    log.info(
        f"[GATEWAY] model={config.GPT_MODEL} rate_limiter={rate_limiter.name} "
        f"semantic_validation={config.SEMANTIC_VALIDATION}"
    )
    return PaperGateway(
        rate_limiter,
        client,
        model=config.GPT_MODEL,
        temperature=config.LLM_TEMPERATURE,
        max_tokens=config.LLM_MAX_TOKENS,
        semantic_validation=config.SEMANTIC_VALIDATION,
    )
