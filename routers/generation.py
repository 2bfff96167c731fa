"""
Generation Router

Endpoints:
  POST /generate-paper          — source files + config → question paper
  GET  /generate-paper/health   — gateway configuration check (no backend call)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from generation import config
from generation.errors import status_for
from generation.gateway import PaperGateway
from generation.rate_limiter import client_key_from_headers
from generation.schemas import ErrorBody, GenerationFailure, PaperSubmission, QuestionPaper

router = APIRouter(prefix="/generate-paper", tags=["generation"])

log = logging.getLogger("generation.router")


def get_gateway(request: Request) -> PaperGateway:
    """Gateway built at startup (see main.lifespan)."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Generation gateway is not configured",
        )
    return gateway


@router.post(
    "",
    response_model=QuestionPaper,
    response_model_by_alias=True,
    responses={
        400: {"model": ErrorBody, "description": "InvalidRequest"},
        429: {"model": ErrorBody, "description": "RateLimited"},
        502: {"model": ErrorBody, "description": "BackendError | MalformedResponse | SchemaViolation"},
    },
)
async def generate_paper(
    submission: PaperSubmission,
    request: Request,
    gateway: PaperGateway = Depends(get_gateway),
):
    """
    **Generate a question paper from uploaded source documents.**

    Files are sent as base64 (a `data:` URI prefix is accepted). On success
    the body is the paper exactly as validated; on failure it is
    `{kind, message}` with a status matching the kind.
    """
    client_key = client_key_from_headers(request.headers, config.CLIENT_IP_HEADER)
    log.info(f"[GENERATE] client={client_key} files={len(submission.files)}")

    outcome = await gateway.submit(submission, client_key)

    if isinstance(outcome, GenerationFailure):
        return JSONResponse(
            status_code=status_for(outcome.kind),
            content=outcome.error.model_dump(mode="json"),
        )
    return JSONResponse(content=outcome.paper.to_wire())


@router.get("/health")
async def health_check(gateway: PaperGateway = Depends(get_gateway)):
    return {
        "status": "healthy",
        "model": gateway.model,
        "rate_limiter": gateway.rate_limiter.name,
        "semantic_validation": gateway.semantic_validation,
    }
