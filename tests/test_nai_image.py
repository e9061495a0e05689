"""Tests for the NovelAI image client."""

import io
import json
import zipfile

import httpx
import pytest

from studio.services.nai_image import NovelAIImageService
from studio.workers.base import GenerationError

PROMPTS = {
    "general_prompt": "1girl, forest",
    "negative_prompt": "lowres",
    "character_prompts": [{"prompt": "alice", "negative": "bad hands"}],
}


def make_zip(entries) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def service_with(handler) -> NovelAIImageService:
    return NovelAIImageService(
        api_url="https://image.example/ai/generate-image",
        model="nai-diffusion-4-full",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


async def test_generate_posts_body_and_returns_image():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=make_zip({"image_0.png": b"png-bytes"}))

    result = await service_with(handler).generate("secret", PROMPTS, {"seed": 42, "width": 1024})

    assert result.image_data == b"png-bytes"
    assert result.seed == 42
    assert seen["auth"] == "Bearer secret"
    params = seen["body"]["parameters"]
    assert seen["body"]["model"] == "nai-diffusion-4-full"
    assert params["seed"] == 42
    assert params["width"] == 1024
    assert params["height"] == 1216
    assert params["negative_prompt"] == "lowres"
    assert params["v4_prompt"]["caption"]["char_captions"][0]["char_caption"] == "alice"
    assert params["characterPrompts"][0]["negative"] == "bad hands"


async def test_random_seed_when_not_fixed():
    def handler(request):
        return httpx.Response(200, content=make_zip({"out.png": b"x"}))

    result = await service_with(handler).generate("k", PROMPTS, {})

    assert 0 <= result.seed < 2 ** 32


async def test_error_status_raises_generation_error():
    def handler(request):
        return httpx.Response(401, text="Unauthorized")

    with pytest.raises(GenerationError) as exc:
        await service_with(handler).generate("bad", PROMPTS, {"seed": 1})

    assert str(exc.value).startswith("NAI API error 401")
    assert exc.value.details["status_code"] == 401


async def test_transport_failure_raises_generation_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(GenerationError):
        await service_with(handler).generate("k", PROMPTS, {"seed": 1})


def test_archive_without_image_is_rejected():
    with pytest.raises(GenerationError, match="No image found"):
        NovelAIImageService.extract_image(make_zip({"readme.txt": b"hi"}))


def test_non_zip_answer_is_rejected():
    with pytest.raises(GenerationError, match="not a zip"):
        NovelAIImageService.extract_image(b"definitely not a zip")


def test_build_request_defaults():
    body = NovelAIImageService(model="m").build_request({"general_prompt": "sky"}, {}, seed=7)

    params = body["parameters"]
    assert body["input"] == "sky"
    assert params["steps"] == 28
    assert params["sampler"] == "k_euler_ancestral"
    assert params["characterPrompts"] == []
    assert params["characterPositionEnabled"] is False


def test_build_request_accepts_camel_case_parameters():
    params = {
        "qualityToggle": False,
        "ucPreset": 0,
        "imageFormat": "webp",
        "characterPositionEnabled": True,
    }

    body = NovelAIImageService(model="m").build_request({"general_prompt": "sky"}, params, seed=7)

    built = body["parameters"]
    assert built["qualityToggle"] is False
    assert built["ucPreset"] == 0
    assert built["image_format"] == "webp"
    assert built["characterPositionEnabled"] is True
    assert built["v4_prompt"]["use_coords"] is True


def test_snake_case_parameter_wins_over_camel_case():
    params = {"uc_preset": 1, "ucPreset": 2}

    body = NovelAIImageService(model="m").build_request({}, params, seed=7)

    assert body["parameters"]["ucPreset"] == 1
