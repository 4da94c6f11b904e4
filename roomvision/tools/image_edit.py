"""Furnished-room rendering — image-editing models via the AI gateway.

The photo is sent through an ordered chain of (model, encoding) strategies.
Remote URLs are tried first; gateways that cannot fetch the tenant's storage
get the same images inline as base64 data-URLs.
"""

import base64
import logging

import httpx
import openai
from openai import AsyncOpenAI
from pydantic import BaseModel

from ..config import SynthesisStrategy
from .image_response import extract_image_reference
from .llm import image_content_part

logger = logging.getLogger(__name__)


async def to_data_url(http: httpx.AsyncClient, image_url: str) -> str:
    """Download an image and re-encode it as a base64 data-URL."""
    if image_url.startswith("data:"):
        return image_url
    resp = await http.get(image_url)
    resp.raise_for_status()
    content_type = resp.headers.get("content-type", "image/png").split(";")[0].strip()
    b64 = base64.b64encode(resp.content).decode()
    return f"data:{content_type};base64,{b64}"


async def _call_image_model(
    client: AsyncOpenAI, model: str, instruction: str, images: list[str]
) -> str | None:
    """Send the instruction + images to an image model, return the generated image ref."""
    resp = await client.chat.completions.create(
        model=model,
        messages=[
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": instruction},
                    *(image_content_part(url) for url in images),
                ],
            }
        ],
        extra_body={"modalities": ["image", "text"]},
    )
    if not isinstance(resp, BaseModel):
        # Non-JSON 2xx bodies (e.g. an HTML error page) come back as plain text.
        logger.warning("Image model %s returned a non-JSON body", model)
        return None
    return extract_image_reference(resp.model_dump())


async def synthesize_furnished_image(
    client: AsyncOpenAI,
    http: httpx.AsyncClient,
    *,
    instruction: str,
    image_url: str,
    reference_url: str | None = None,
    chain: tuple[SynthesisStrategy, ...],
) -> str | None:
    """Render the furnished version of the photo.

    Args:
        instruction: Edit instruction (see `build_edit_instruction`).
        image_url: Public URL of the environment photo.
        reference_url: Optional style reference image.
        chain: Strategies tried in order until one yields an image.

    Returns:
        Data-URL or http(s) URL of the generated image, or None when every
        strategy failed.
    """
    sources = [image_url] + ([reference_url] if reference_url else [])
    encoded: dict[str, list[str]] = {"url": sources}

    for attempt, strategy in enumerate(chain, start=1):
        label = f"{strategy.model} ({strategy.encoding})"
        try:
            images = encoded.get(strategy.encoding)
            if images is None:
                images = [await to_data_url(http, url) for url in sources]
                encoded[strategy.encoding] = images

            result = await _call_image_model(client, strategy.model, instruction, images)
        except openai.APIError as e:
            logger.warning("Image attempt %d %s failed: %s", attempt, label, e)
            continue
        except httpx.HTTPError as e:
            logger.warning("Image attempt %d %s: could not encode inputs: %s", attempt, label, e)
            continue
        except Exception:
            logger.exception("Image attempt %d %s failed unexpectedly", attempt, label)
            continue

        if result:
            logger.info("Image attempt %d %s succeeded", attempt, label)
            return result
        logger.warning("Image attempt %d %s: no image in response", attempt, label)

    logger.warning("Image synthesis exhausted after %d attempts", len(chain))
    return None
