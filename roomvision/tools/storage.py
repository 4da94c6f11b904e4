"""Persist generated images to Supabase storage."""

import base64
import binascii
import logging
import re
import time

import httpx
from supabase import Client

from .. import db
from ..errors import PersistenceFailure

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:image/(?P<subtype>[A-Za-z0-9.+-]+);base64,(?P<payload>.+)$", re.S)

_EXTENSIONS = {
    "png": "png",
    "webp": "webp",
    "jpeg": "jpg",
    "jpg": "jpg",
}


def image_format(content_type: str | None) -> tuple[str, str]:
    """Map an image MIME type to (extension, content type). Unknown types become PNG."""
    subtype = (content_type or "").split(";")[0].strip().lower().removeprefix("image/")
    ext = _EXTENSIONS.get(subtype)
    if ext is None:
        return "png", "image/png"
    return ext, f"image/{subtype}"


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """Decode ``data:image/<subtype>;base64,<payload>`` into (bytes, content type)."""
    m = _DATA_URL_RE.match(data_url)
    if not m:
        raise ValueError("Not a base64 image data-URL")
    data = base64.b64decode(m.group("payload"), validate=False)
    return data, f"image/{m.group('subtype')}"


async def _download(http: httpx.AsyncClient, url: str) -> tuple[bytes, str]:
    resp = await http.get(url)
    resp.raise_for_status()
    return resp.content, resp.headers.get("content-type", "image/png")


def storage_path(user_id: str, ext: str) -> str:
    return f"{user_id}/simulacao_{int(time.time() * 1000)}.{ext}"


async def persist_image(
    db_client: Client,
    http: httpx.AsyncClient,
    *,
    bucket: str,
    image_ref: str,
    user_id: str,
) -> str:
    """Store a generated image under the tenant's folder and return its public URL.

    Raises:
        PersistenceFailure: the image could not be decoded, downloaded or uploaded.
    """
    try:
        if image_ref.startswith("data:"):
            data, content_type = decode_data_url(image_ref)
        else:
            data, content_type = await _download(http, image_ref)
    except (ValueError, binascii.Error, httpx.HTTPError) as e:
        raise PersistenceFailure(f"Falha ao obter a imagem simulada: {e}") from e

    ext, content_type = image_format(content_type)
    path = storage_path(user_id, ext)

    try:
        public_url = db.upload_to_storage(db_client, bucket, path, data, content_type)
    except Exception as e:
        raise PersistenceFailure(f"Falha ao salvar a imagem simulada: {e}") from e

    logger.info("Stored simulated image %s (%d bytes, %s)", path, len(data), content_type)
    return public_url
