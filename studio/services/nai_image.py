"""
NovelAI Image Generation Service
Calls the NovelAI image API (nai-diffusion-4) for one image per request.
The API answers with a zip archive holding the generated image.
"""

import io
import logging
import random
import re
import zipfile
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from studio.core.config import settings
from studio.workers.base import GenerationError

logger = logging.getLogger(__name__)

IMAGE_ENTRY = re.compile(r"\.(png|webp|jpe?g)$", re.IGNORECASE)


def _param(params: Dict[str, Any], key: str, default: Any) -> Any:
    """Read a parameter by its snake_case key, falling back to the camelCase spelling."""
    if params.get(key) is not None:
        return params[key]
    head, *rest = key.split("_")
    value = params.get(head + "".join(part.title() for part in rest))
    return default if value is None else value


@dataclass
class GeneratedImageData:
    """Raw bytes of one generated image and the seed that produced it."""
    image_data: bytes
    seed: int


class NovelAIImageService:
    """Service for image generation using the NovelAI API."""

    def __init__(
        self,
        api_url: str = settings.NAI_API_URL,
        model: str = settings.NAI_MODEL,
        timeout: float = settings.JOB_TIMEOUT_GENERATION,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self._transport = transport

    def build_request(
        self,
        prompts: Dict[str, Any],
        params: Dict[str, Any],
        seed: int,
    ) -> Dict[str, Any]:
        """
        Build the NovelAI v4 request body.

        Args:
            prompts: {"general_prompt", "negative_prompt", "character_prompts": [{"prompt", "negative"}]}
            params: Generation parameters; missing keys use NovelAI defaults.
                Multi-word keys are read in snake_case (`quality_toggle`) or
                camelCase (`qualityToggle`); snake_case wins when both are set.
            seed: Seed for this image
        """
        general = prompts.get("general_prompt", "")
        negative = prompts.get("negative_prompt", "")
        characters = prompts.get("character_prompts") or []
        use_coords = bool(_param(params, "character_position_enabled", False))
        schedule = params.get("scheduler", "native")

        char_captions = [
            {"char_caption": c.get("prompt", ""), "centers": [{"x": 0, "y": 0}]}
            for c in characters
        ]
        neg_char_captions = [
            {"char_caption": c.get("negative", ""), "centers": [{"x": 0, "y": 0}]}
            for c in characters
        ]

        return {
            "input": general,
            "model": self.model,
            "action": "generate",
            "parameters": {
                "prompt": general,
                "negative_prompt": negative,
                "width": params.get("width", 832),
                "height": params.get("height", 1216),
                "n_samples": 1,
                "steps": params.get("steps", 28),
                "cfg_scale": params.get("cfg_scale", 5),
                "cfg_rescale": _param(params, "cfg_rescale", 0),
                "sampler": params.get("sampler", "k_euler_ancestral"),
                "scheduler": schedule,
                "noise_schedule": schedule,
                "seed": seed,
                "smea": params.get("smea", False),
                "smea_dyn": _param(params, "smea_dyn", False),
                "variety": params.get("variety", False),
                "qualityToggle": _param(params, "quality_toggle", True),
                "ucPreset": _param(params, "uc_preset", 3),
                "params_version": 3,
                "legacy_v3_extend": False,
                "image_format": _param(params, "image_format", "png"),
                "v4_prompt": {
                    "caption": {"base_caption": general, "char_captions": char_captions},
                    "use_coords": use_coords,
                    "use_order": True,
                },
                "v4_negative_prompt": {
                    "caption": {"base_caption": negative, "char_captions": neg_char_captions},
                },
                "characterPrompts": [
                    {
                        "prompt": c.get("prompt", ""),
                        "negative": c.get("negative", ""),
                        "enabled": True,
                        "position": {"x": 0, "y": 0},
                    }
                    for c in characters
                ],
                "characterPositionEnabled": use_coords,
            },
        }

    async def generate(
        self,
        api_key: str,
        prompts: Dict[str, Any],
        parameters: Dict[str, Any],
    ) -> GeneratedImageData:
        """
        Generate one image.

        A fixed `seed` in parameters is reused; otherwise a random 32-bit seed
        is drawn per call.

        Raises:
            GenerationError: on transport errors, non-2xx answers, or archives
                without an image
        """
        seed = parameters.get("seed")
        if seed is None:
            seed = random.randrange(2 ** 32)

        body = self.build_request(prompts, parameters, seed)
        logger.debug(f"[NAI] Generating with model {self.model}, seed {seed}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    json=body,
                    headers={"Authorization": f"Bearer {api_key}"},
                )
        except httpx.HTTPError as e:
            raise GenerationError(f"NAI API request failed: {e}") from e

        if not response.is_success:
            raise GenerationError(
                f"NAI API error {response.status_code}: {response.text[:500]}",
                details={"status_code": response.status_code},
            )

        return GeneratedImageData(image_data=self.extract_image(response.content), seed=seed)

    @staticmethod
    def extract_image(archive: bytes) -> bytes:
        """Return the first image file inside the zip answer."""
        try:
            with zipfile.ZipFile(io.BytesIO(archive)) as zf:
                for name in zf.namelist():
                    if IMAGE_ENTRY.search(name):
                        return zf.read(name)
        except zipfile.BadZipFile as e:
            raise GenerationError("NAI API response is not a zip archive") from e
        raise GenerationError("No image found in NAI API response")
