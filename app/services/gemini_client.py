"""Gemini AI client service.

GEMINI_API_KEY is used only by the chat orchestrator (POST /api/chat).
YELP_AI_API_KEY backs the simulated Yelp AI business directory.

Rate-limit and overload failures are raised as UpstreamTransientError. A 429
RESOURCE_EXHAUSTED additionally starts a per-key cooldown during which calls
fail fast without reaching the API.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamTransientError

logger = logging.getLogger(__name__)

CHAT = "chat"
DIRECTORY = "directory"

# Cooldown after 429 RESOURCE_EXHAUSTED, per key, so the two keys do not block each other
_quota_cooldown_until: dict[str, Optional[datetime]] = {CHAT: None, DIRECTORY: None}

_TRANSIENT_CODES = (429, 503)
_TRANSIENT_STATUSES = ("RESOURCE_EXHAUSTED", "UNAVAILABLE")
_TRANSIENT_MESSAGE_MARKERS = ("overloaded", "quota")


def _is_quota_error(exc: BaseException) -> bool:
    """True if the exception is a 429 / RESOURCE_EXHAUSTED from the Gemini API."""
    if not isinstance(exc, genai_errors.ClientError):
        return False
    if getattr(exc, "code", None) == 429:
        return True
    status = getattr(exc, "status", None)
    if status and "RESOURCE_EXHAUSTED" in str(status).upper():
        return True
    return False


def _is_transient_error(exc: BaseException) -> bool:
    """True for rate-limit / overload errors (429, 503, or an overloaded/quota message)."""
    if not isinstance(exc, genai_errors.APIError):
        return False
    if getattr(exc, "code", None) in _TRANSIENT_CODES:
        return True
    status = str(getattr(exc, "status", None) or "").upper()
    if any(s in status for s in _TRANSIENT_STATUSES):
        return True
    message = f"{getattr(exc, 'message', None) or ''} {exc}".lower()
    return any(marker in message for marker in _TRANSIENT_MESSAGE_MARKERS)


def _extract_retry_delay_seconds(exc: BaseException) -> Optional[int]:
    """
    Parse RetryInfo from error details if present.
    Returns delay in seconds, or None if not found.
    """
    details = getattr(exc, "details", None)
    if not details or not isinstance(details, dict):
        return None
    # details might be the full error object with nested "error" or a "details" list
    err = details.get("error", details)
    if not isinstance(err, dict):
        return None
    raw_list = err.get("details") if isinstance(err.get("details"), list) else None
    if not raw_list:
        return None
    for item in raw_list:
        if not isinstance(item, dict):
            continue
        if item.get("@type") == "type.googleapis.com/google.rpc.RetryInfo":
            delay_str = item.get("retryDelay")
            if delay_str is None:
                continue
            # Format is often "34s" or "60.123s"
            match = re.match(r"^(\d+(?:\.\d+)?)\s*s", str(delay_str).strip())
            if match:
                return int(float(match.group(1)))
    return None


def _should_skip_due_to_quota(key_name: str) -> bool:
    """True if calls on this key are still in the quota cooldown window."""
    until = _quota_cooldown_until.get(key_name)
    if until is None:
        return False
    if datetime.now(timezone.utc) >= until:
        _quota_cooldown_until[key_name] = None
        return False
    return True


def _start_cooldown(key_name: str, exc: BaseException) -> None:
    retry_sec = _extract_retry_delay_seconds(exc)
    cooldown_sec = retry_sec if retry_sec is not None else settings.gemini_quota_cooldown_seconds
    _quota_cooldown_until[key_name] = datetime.now(timezone.utc) + timedelta(seconds=cooldown_sec)
    logger.warning(
        "Gemini %s quota exceeded (429 RESOURCE_EXHAUSTED); model=%s cooldown=%s s retryDelay=%s",
        key_name,
        settings.gemini_model,
        cooldown_sec,
        retry_sec,
    )


def reset_cooldowns() -> None:
    for key_name in _quota_cooldown_until:
        _quota_cooldown_until[key_name] = None


def _http_options() -> types.HttpOptions:
    # HttpOptions.timeout is in milliseconds
    return types.HttpOptions(timeout=settings.gemini_timeout_seconds * 1000)


def _get_client() -> genai.Client:
    """Get Gemini client for chat (GEMINI_API_KEY), raising error if API key not configured."""
    if not settings.gemini_api_key:
        raise ConfigurationError("GEMINI_API_KEY missing")
    return genai.Client(api_key=settings.gemini_api_key, http_options=_http_options())


def _get_client_directory() -> genai.Client:
    """Get Gemini client for the business directory (YELP_AI_API_KEY), raising error if not configured."""
    if not settings.yelp_ai_api_key:
        raise ConfigurationError("YELP_AI_API_KEY missing")
    return genai.Client(api_key=settings.yelp_ai_api_key, http_options=_http_options())


def _generate(key_name: str, client_factory, contents: Any, config: types.GenerateContentConfig):
    if _should_skip_due_to_quota(key_name):
        logger.debug("Skipping Gemini %s call due to recent quota exceeded; still in cooldown", key_name)
        raise UpstreamTransientError(f"Gemini {key_name} quota cooldown in effect")

    client = client_factory()
    try:
        return client.models.generate_content(
            model=settings.gemini_model,
            contents=contents,
            config=config,
        )
    except genai_errors.APIError as e:
        if _is_quota_error(e):
            _start_cooldown(key_name, e)
        if _is_transient_error(e):
            logger.warning("Gemini %s call rate limited or overloaded: code=%s status=%s", key_name, e.code, e.status)
            raise UpstreamTransientError(str(e)) from e
        raise


def generate_chat_content(
    contents: list[types.Content],
    *,
    system_instruction: Optional[str] = None,
    response_schema: Optional[dict] = None,
    tools: Optional[list[types.Tool]] = None,
) -> types.GenerateContentResponse:
    """
    One chat-model call (GEMINI_API_KEY).

    With response_schema the model is constrained to JSON of that shape; with
    tools it may answer with function calls instead of text.

    Raises:
        ConfigurationError: GEMINI_API_KEY is not set.
        UpstreamTransientError: rate limit, overload, or quota cooldown.
    """
    config_kwargs: dict[str, Any] = {
        "system_instruction": system_instruction,
        "tools": tools,
    }
    if response_schema is not None:
        config_kwargs["response_mime_type"] = "application/json"
        config_kwargs["response_schema"] = response_schema
    config = types.GenerateContentConfig(**config_kwargs)

    logger.info(
        "Calling Gemini chat model=%s, contents=%s, schema=%s, tools=%s",
        settings.gemini_model,
        len(contents),
        response_schema is not None,
        len(tools or []),
    )
    response = _generate(CHAT, _get_client, contents, config)
    logger.info(
        "Gemini chat response_length=%s function_calls=%s",
        len(response.text or "") if not response.function_calls else 0,
        len(response.function_calls or []),
    )
    return response


def generate_directory_json(prompt: str, temperature: float = 0.7) -> Optional[str]:
    """
    Generate JSON text for the Yelp AI business directory (YELP_AI_API_KEY).

    Raises:
        ConfigurationError: YELP_AI_API_KEY is not set.
        UpstreamTransientError: rate limit, overload, or quota cooldown.
    """
    config = types.GenerateContentConfig(
        response_mime_type="application/json",
        temperature=temperature,
    )
    logger.info("Calling Gemini directory model=%s, prompt_length=%s", settings.gemini_model, len(prompt))
    response = _generate(DIRECTORY, _get_client_directory, prompt, config)
    result = response.text
    logger.info("Gemini directory response_length=%s", len(result) if result else 0)
    return result
