"""Chat endpoint: one user message in, one structured "intelligence" response out.

Stateless apart from the process-wide response cache owned by the
ChatOrchestrator on app.state. The client sends its own history with each
turn. Rate limit / overload never surfaces as an HTTP error: the orchestrator
answers with a degraded response instead. Missing GEMINI_API_KEY is a 500
configuration error; any other failure is a 500 with `fallback: true`.
"""

import logging
import traceback

from fastapi import APIRouter, Depends, HTTPException, Request

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamMalformedOutput
from app.schemas.intelligence import ChatRequest, IntelligenceData
from app.services.chat_orchestrator import ChatOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

UNAVAILABLE_MESSAGE = "Yelp AI API temporarily unavailable. Please try again in a moment."
CONFIGURATION_ERROR_MESSAGE = "Yelp AI API Key configuration error"


def get_chat_orchestrator(request: Request) -> ChatOrchestrator:
    """The process-wide orchestrator created at startup."""
    return request.app.state.chat_orchestrator


def _configuration_error() -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={"error": CONFIGURATION_ERROR_MESSAGE, "code": "configuration_error"},
    )


def _upstream_unavailable() -> HTTPException:
    return HTTPException(
        status_code=500,
        detail={"error": UNAVAILABLE_MESSAGE, "code": "upstream_unavailable", "fallback": True},
    )


@router.post("", response_model=IntelligenceData, response_model_exclude_none=True)
def chat(
    request: ChatRequest,
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
) -> IntelligenceData:
    """
    Resolve one chat turn.

    Returns the cached response when the same message (case/whitespace
    insensitive) was answered within the cache window; otherwise runs the
    direct / tool-calling pipeline.
    """
    message = request.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="message must be non-empty")

    if not settings.gemini_api_key:
        logger.error("Chat requested but GEMINI_API_KEY is not configured")
        raise _configuration_error()

    logger.info(
        "Chat turn: message_len=%d history_len=%d",
        len(message),
        len(request.history),
    )

    try:
        return orchestrator.respond(request.history, message)
    except ConfigurationError as e:
        logger.error("Chat Gemini config error: %s", e)
        raise _configuration_error()
    except UpstreamMalformedOutput as e:
        logger.error("Chat model returned unusable output: %s", e)
        raise _upstream_unavailable()
    except Exception as e:
        logger.error(
            "Chat Gemini API error: %s\nTraceback:\n%s",
            e,
            traceback.format_exc(),
        )
        raise _upstream_unavailable()
