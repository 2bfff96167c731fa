"""
PaperAI Gateway — Main Application
FastAPI application that turns uploaded study material into a structured
question paper through an external generative model.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from database.redis_client import close_redis
from generation.errors import status_for
from generation.gateway import build_gateway
from generation.schemas import ErrorKind
from routers import generation

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")
log = logging.getLogger("paperai")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the gateway once. Shutdown: release clients."""
    if getattr(app.state, "gateway", None) is None:
        app.state.gateway = build_gateway()
    yield
    await app.state.gateway.client.close()
    await close_redis()


app = FastAPI(
    title="PaperAI Gateway",
    description="Structured question paper generation from source documents",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Length"],
    max_age=600,
)


# ─── Error handlers ────────────────────────────────────────────────────────────

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "body"
        message = f"{loc}: {first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request body"
    return JSONResponse(
        status_code=status_for(ErrorKind.INVALID_REQUEST),
        content={"kind": ErrorKind.INVALID_REQUEST.value, "message": message},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 429:
        kind = ErrorKind.RATE_LIMITED
    elif exc.status_code < 500:
        kind = ErrorKind.INVALID_REQUEST
    else:
        kind = ErrorKind.BACKEND_ERROR
    return JSONResponse(
        status_code=exc.status_code,
        content={"kind": kind.value, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"kind": ErrorKind.BACKEND_ERROR.value, "message": str(exc) or type(exc).__name__},
    )


# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(generation.router)


@app.get("/")
def root():
    return {
        "name": "PaperAI Gateway",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "generate_paper": "/generate-paper",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "paperai-gateway"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8787)
