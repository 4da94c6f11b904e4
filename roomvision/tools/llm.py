"""AI gateway client — vision analysis of environment photos."""

import logging

import openai
from openai import AsyncOpenAI

from ..config import Settings
from ..errors import EmptyResponse, QuotaExhausted, RateLimited, UpstreamFailure

logger = logging.getLogger(__name__)


def create_gateway_client(settings: Settings) -> AsyncOpenAI:
    """OpenAI-compatible client for the gateway. 429s are never retried here."""
    return AsyncOpenAI(
        base_url=settings.ai_gateway_url,
        api_key=settings.ai_gateway_api_key,
        timeout=settings.request_timeout_seconds,
        max_retries=0,
    )


def image_content_part(url: str) -> dict:
    return {"type": "image_url", "image_url": {"url": url}}


def _message_text(content) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "") for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    return ""


async def analyze_environment(
    client: AsyncOpenAI,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    image_url: str,
    reference_url: str | None = None,
    max_tokens: int = 4000,
) -> str:
    """Send the photo (and optional style reference) to the vision model.

    Returns the assistant message text.

    Raises:
        RateLimited: gateway answered 429.
        QuotaExhausted: gateway answered 402.
        UpstreamFailure: any other non-2xx, timeout or connection error.
        EmptyResponse: 2xx without message content.
    """
    content = [{"type": "text", "text": user_prompt}, image_content_part(image_url)]
    if reference_url:
        content.append(image_content_part(reference_url))

    try:
        resp = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            max_tokens=max_tokens,
        )
    except openai.RateLimitError as e:
        logger.warning("Analysis rate limited by gateway")
        raise RateLimited() from e
    except openai.APIStatusError as e:
        if e.status_code == 402:
            logger.warning("Analysis rejected: gateway credits exhausted")
            raise QuotaExhausted() from e
        logger.error("Analysis call failed: %s %s", e.status_code, e.response.text)
        raise UpstreamFailure(status_code=e.status_code) from e
    except openai.APITimeoutError as e:
        logger.error("Analysis call timed out")
        raise UpstreamFailure("Tempo limite excedido na análise") from e
    except openai.APIConnectionError as e:
        logger.error("Analysis call could not reach the gateway: %s", e)
        raise UpstreamFailure() from e

    choices = getattr(resp, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    text = _message_text(getattr(message, "content", None))
    if not text.strip():
        raise EmptyResponse()

    logger.info("Analysis returned %d chars from %s", len(text), model)
    return text
