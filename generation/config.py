"""
Runtime configuration for the paper generation gateway.

All values come from the environment (a local .env file is honoured).
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ── Model config ───────────────────────────────────────────────────────────────
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
# Point at any OpenAI-compatible endpoint, e.g. Gemini:
#   https://generativelanguage.googleapis.com/v1beta/openai/
LLM_BASE_URL = os.getenv("LLM_BASE_URL") or None
GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.4"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "8192"))
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))

# ── Rate limiting ──────────────────────────────────────────────────────────────
RATE_LIMIT_BACKEND = os.getenv("RATE_LIMIT_BACKEND", "memory").strip().lower()  # memory | redis | none
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "10"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
CLIENT_IP_HEADER = os.getenv("CLIENT_IP_HEADER", "cf-connecting-ip")

# ── Validation ─────────────────────────────────────────────────────────────────
# Off by default: the backend is trusted to honour counts and mark totals.
SEMANTIC_VALIDATION = _env_bool("SEMANTIC_VALIDATION", False)
