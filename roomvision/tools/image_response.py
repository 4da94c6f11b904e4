"""Locate the generated image in a multimodal chat-completion response.

Gateways return edited images in different places. Each extractor below
handles one shape; they run in order and the first hit wins. Structured
shapes come before pattern matching over text.
"""

import re
from collections.abc import Callable

DATA_URL_RE = re.compile(r"data:image/[A-Za-z0-9.+-]+;base64,[A-Za-z0-9+/]+=*")

_IMAGE_PART_TYPES = {"image_url", "image", "output_image"}


def _is_image_ref(value) -> bool:
    return isinstance(value, str) and (
        value.startswith("data:image") or value.startswith(("http://", "https://"))
    )


def _message(response: dict) -> dict:
    choices = response.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return {}
    return choices[0].get("message") or {}


def _url_of(entry) -> str | None:
    """URL from ``{"image_url": {"url": ...}}``, ``{"image_url": "..."}`` or ``{"url": ...}``."""
    if isinstance(entry, str):
        return entry if _is_image_ref(entry) else None
    if not isinstance(entry, dict):
        return None
    image_url = entry.get("image_url")
    if isinstance(image_url, dict):
        image_url = image_url.get("url")
    for candidate in (image_url, entry.get("url")):
        if _is_image_ref(candidate):
            return candidate
    return None


def _first_url(entries) -> str | None:
    if not isinstance(entries, list):
        return None
    for entry in entries:
        url = _url_of(entry)
        if url:
            return url
    return None


def from_message_images(response: dict) -> str | None:
    return _first_url(_message(response).get("images"))


def from_content_image_parts(response: dict) -> str | None:
    content = _message(response).get("content")
    if not isinstance(content, list):
        return None
    return _first_url(
        [p for p in content if isinstance(p, dict) and p.get("type") in _IMAGE_PART_TYPES]
    )


def from_top_level_images(response: dict) -> str | None:
    return _first_url(response.get("images"))


def from_content_text_parts(response: dict) -> str | None:
    content = _message(response).get("content")
    if not isinstance(content, list):
        return None
    for part in content:
        if isinstance(part, dict) and part.get("type") == "text":
            m = DATA_URL_RE.search(part.get("text") or "")
            if m:
                return m.group(0)
    return None


def from_content_string(response: dict) -> str | None:
    content = _message(response).get("content")
    if not isinstance(content, str):
        return None
    m = DATA_URL_RE.search(content)
    return m.group(0) if m else None


EXTRACTORS: tuple[Callable[[dict], str | None], ...] = (
    from_message_images,
    from_content_image_parts,
    from_top_level_images,
    from_content_text_parts,
    from_content_string,
)


def extract_image_reference(response: dict) -> str | None:
    """Return a data-URL or http(s) URL of the generated image, or None."""
    if not isinstance(response, dict):
        return None
    for extractor in EXTRACTORS:
        ref = extractor(response)
        if ref:
            return ref
    return None
