import base64

import httpx
import pytest

from roomvision.config import IMAGE_MODEL_FAST, IMAGE_MODEL_PRO, default_synthesis_chain
from roomvision.tools.image_edit import synthesize_furnished_image, to_data_url

from .fakes import PNG_DATA_URL, chat_completion, make_gateway, make_http, request_image_urls, request_json

PHOTO = "https://storage.test/fotos-ambientes/u1/ambiente.jpg"
REFERENCE = "https://storage.test/fotos-ambientes/u1/referencia.png"
CHAIN = default_synthesis_chain(IMAGE_MODEL_FAST, IMAGE_MODEL_PRO)

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


def _downloads(request):
    if request.url.path.endswith(".png"):
        return httpx.Response(200, content=b"png-bytes", headers={"content-type": "image/png"})
    return httpx.Response(200, content=JPEG_BYTES, headers={"content-type": "image/jpeg"})


class FakeImageGateway:
    """Answers with an image only for the (model, encoding) pairs in ``succeed_on``."""

    def __init__(self, succeed_on=()):
        self.succeed_on = set(succeed_on)
        self.attempts = []

    def __call__(self, request):
        body = request_json(request)
        urls = request_image_urls(request)
        encoding = "base64" if urls[0].startswith("data:") else "url"
        self.attempts.append((body["model"], encoding, urls))
        assert body["modalities"] == ["image", "text"]
        if (body["model"], encoding) in self.succeed_on:
            return httpx.Response(
                200,
                json=chat_completion("", images=[{"type": "image_url", "image_url": {"url": PNG_DATA_URL}}]),
            )
        return httpx.Response(500, json={"error": {"message": "model overloaded"}})


async def _synthesize(fake, reference_url=None, chain=CHAIN):
    return await synthesize_furnished_image(
        make_gateway(fake),
        make_http(_downloads),
        instruction="Adicione móveis",
        image_url=PHOTO,
        reference_url=reference_url,
        chain=chain,
    )


@pytest.mark.asyncio
async def test_fast_model_url_pass_succeeds_first():
    fake = FakeImageGateway(succeed_on={(IMAGE_MODEL_FAST, "url")})
    assert await _synthesize(fake) == PNG_DATA_URL
    assert [(m, e) for m, e, _ in fake.attempts] == [(IMAGE_MODEL_FAST, "url")]


@pytest.mark.asyncio
async def test_pro_model_url_pass_skips_base64_round():
    fake = FakeImageGateway(succeed_on={(IMAGE_MODEL_PRO, "url")})
    assert await _synthesize(fake) == PNG_DATA_URL
    assert [(m, e) for m, e, _ in fake.attempts] == [
        (IMAGE_MODEL_FAST, "url"),
        (IMAGE_MODEL_PRO, "url"),
    ]


@pytest.mark.asyncio
async def test_base64_round_after_url_pass_fails():
    fake = FakeImageGateway(succeed_on={(IMAGE_MODEL_PRO, "base64")})
    assert await _synthesize(fake) == PNG_DATA_URL
    assert [(m, e) for m, e, _ in fake.attempts] == [
        (IMAGE_MODEL_FAST, "url"),
        (IMAGE_MODEL_PRO, "url"),
        (IMAGE_MODEL_FAST, "base64"),
        (IMAGE_MODEL_PRO, "base64"),
    ]
    expected = "data:image/jpeg;base64," + base64.b64encode(JPEG_BYTES).decode()
    assert fake.attempts[2][2] == [expected]


@pytest.mark.asyncio
async def test_chain_exhausted_returns_none():
    fake = FakeImageGateway()
    assert await _synthesize(fake) is None
    assert len(fake.attempts) == 4


@pytest.mark.asyncio
async def test_response_without_image_advances():
    attempts = []

    def handler(request):
        attempts.append(request_json(request)["model"])
        if len(attempts) == 1:
            return httpx.Response(200, json=chat_completion("Desculpe, não posso editar imagens."))
        return httpx.Response(200, json=chat_completion(f"Aqui está: {PNG_DATA_URL}"))

    result = await synthesize_furnished_image(
        make_gateway(handler),
        make_http(_downloads),
        instruction="Adicione móveis",
        image_url=PHOTO,
        chain=CHAIN,
    )
    assert result == PNG_DATA_URL
    assert attempts == [IMAGE_MODEL_FAST, IMAGE_MODEL_PRO]


@pytest.mark.asyncio
async def test_reference_image_is_sent_in_both_encodings():
    fake = FakeImageGateway()
    await _synthesize(fake, reference_url=REFERENCE)
    assert fake.attempts[0][2] == [PHOTO, REFERENCE]
    base64_urls = fake.attempts[2][2]
    assert base64_urls[0].startswith("data:image/jpeg;base64,")
    assert base64_urls[1].startswith("data:image/png;base64,")


@pytest.mark.asyncio
async def test_download_failure_skips_base64_attempts():
    fake = FakeImageGateway(succeed_on={(IMAGE_MODEL_FAST, "base64")})

    def broken_downloads(request):
        return httpx.Response(404)

    result = await synthesize_furnished_image(
        make_gateway(fake),
        make_http(broken_downloads),
        instruction="Adicione móveis",
        image_url=PHOTO,
        chain=CHAIN,
    )
    assert result is None
    assert [e for _, e, _ in fake.attempts] == ["url", "url"]


@pytest.mark.asyncio
async def test_capped_chain():
    fake = FakeImageGateway()
    await _synthesize(fake, chain=CHAIN[:2])
    assert len(fake.attempts) == 2


@pytest.mark.asyncio
async def test_to_data_url_passes_data_urls_through():
    http = make_http(_downloads)
    assert await to_data_url(http, PNG_DATA_URL) == PNG_DATA_URL


def _image_after_first(first_response):
    """Handler whose first image call is answered by ``first_response``, the rest with an image."""
    models = []

    def handler(request):
        models.append(request_json(request)["model"])
        if len(models) == 1:
            return first_response(request)
        return httpx.Response(200, json=chat_completion("", images=[{"image_url": {"url": PNG_DATA_URL}}]))

    return handler, models


@pytest.mark.asyncio
async def test_html_body_advances_to_next_model():
    handler, models = _image_after_first(
        lambda request: httpx.Response(
            200, text="<html><body>Bad gateway</body></html>", headers={"content-type": "text/html"}
        )
    )
    result = await synthesize_furnished_image(
        make_gateway(handler),
        make_http(_downloads),
        instruction="Adicione móveis",
        image_url=PHOTO,
        chain=CHAIN,
    )
    assert result == PNG_DATA_URL
    assert models == [IMAGE_MODEL_FAST, IMAGE_MODEL_PRO]


@pytest.mark.asyncio
async def test_timeout_advances_to_next_model():
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    handler, models = _image_after_first(timeout)
    result = await synthesize_furnished_image(
        make_gateway(handler),
        make_http(_downloads),
        instruction="Adicione móveis",
        image_url=PHOTO,
        chain=CHAIN,
    )
    assert result == PNG_DATA_URL
    assert models == [IMAGE_MODEL_FAST, IMAGE_MODEL_PRO]
