"""Image generation providers: Runware, Midjourney and OpenAI.

Each vendor is one ImageProvider subclass implementing `_request()`. The
base class owns the shared behavior: dimension resolution, event emission,
logging, error classification and retry.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..constants import DEFAULT_IMAGE_COST_USD
from ..errors import (
    ProviderConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    UnknownProviderError,
)
from .base import AIEventCallback, AIMetadata, GeneratedImage, ImageGenerationOptions
from .config import ImageProviderConfig, ProviderSettings
from .errors import call_with_retry, classify_provider_error

_logger = logging.getLogger("ai_calls")

STYLE_ENHANCEMENTS: dict[str, str] = {
    "realistic": "photorealistic, high quality, detailed, professional lighting",
    "artistic": "artistic, creative, vibrant colors, expressive, digital art",
    "minimalist": "minimalist, clean, simple, modern, elegant design",
    "cinematic": "cinematic lighting, dramatic, movie scene, professional photography",
    "abstract": "abstract art, geometric, modern, creative composition",
    "vintage": "vintage style, retro, nostalgic, aged, classic aesthetic",
}


def enhance_prompt_for_style(prompt: str, style: str | None) -> str:
    """Append the style's keyword set, if the style is known."""
    enhancement = STYLE_ENHANCEMENTS.get(style or "")
    return f"{prompt}, {enhancement}" if enhancement else prompt


def aspect_ratio(width: int, height: int) -> str:
    """Reduced "w:h" ratio string (1080x1920 -> "9:16")."""
    divisor = math.gcd(width, height) or 1
    return f"{width // divisor}:{height // divisor}"


@dataclass
class _VendorResult:
    """What a vendor call returns before it is wrapped into GeneratedImage."""

    url: str
    image_id: str
    cost: float
    seed: int | None = None
    model: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)


class ImageProvider(ABC):
    """Base class for one configured image vendor.

    Usage:
        provider = RunwareImageProvider("runware", config.image_providers["runware"])
        image = await provider.generate_image(prompt, ImageGenerationOptions())
    """

    def __init__(
        self,
        name: str,
        config: ImageProviderConfig,
        settings: ProviderSettings | None = None,
        event_callback: AIEventCallback = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize image provider.

        Args:
            name: Provider name from the configuration.
            config: Vendor configuration.
            settings: Retry settings. Defaults to ProviderSettings().
            event_callback: Optional callback for AI events (for progress tracking).
            http_client: Optional shared HTTP client (tests inject a mock transport).
        """
        self.name = name
        self.config = config
        self.settings = settings or ProviderSettings()
        self._event_callback = event_callback
        self._http_client = http_client
        self._owns_client = http_client is None
        self._total_calls = 0
        self._total_cost = 0.0

    async def _emit_event(self, event: dict[str, Any]) -> None:
        """Emit an AI event if callback is set."""
        if self._event_callback:
            await self._event_callback(event)

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client if this provider created it."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def _require_api_key(self) -> str:
        api_key = self.config.get_api_key()
        if not api_key:
            raise ProviderConfigurationError(
                self.name, f"{self.config.api_key_env or 'API key'} not set"
            )
        return api_key

    @abstractmethod
    async def _request(
        self, prompt: str, options: ImageGenerationOptions, size: tuple[int, int],
    ) -> _VendorResult:
        """Perform one vendor call. May raise raw vendor exceptions."""
        pass

    async def _attempt(
        self, prompt: str, options: ImageGenerationOptions, size: tuple[int, int],
    ) -> _VendorResult:
        try:
            return await self._request(prompt, options, size)
        except Exception as e:
            error = classify_provider_error(self.name, e)
            if error is e:
                raise
            raise error from e

    async def generate_image(
        self,
        prompt: str,
        options: ImageGenerationOptions,
    ) -> GeneratedImage:
        """Generate one image.

        Args:
            prompt: Image description.
            options: Dimensions, style, model, seed and sampler settings.

        Returns:
            GeneratedImage referencing the vendor-hosted image.

        Raises:
            ProviderError: After retries for retryable failures, immediately
                for terminal ones.
        """
        size = options.dimensions
        model = options.model or self.config.model

        await self._emit_event({
            "type": "image_call",
            "provider": self.name,
            "model": model,
            "prompt_preview": prompt[:200],
            "size": size,
        })
        _logger.info(
            f"IMAGE_REQUEST | provider:{self.name} | model:{model} | "
            f"size:{size[0]}x{size[1]} | prompt:{prompt[:200]}"
        )

        start_time = time.time()
        try:
            result = await call_with_retry(
                lambda: self._attempt(prompt, options, size),
                max_attempts=self.settings.max_retries,
                delay_seconds=self.settings.retry_delay_seconds,
            )
        except Exception as e:
            error = classify_provider_error(self.name, e)
            _logger.warning(
                f"IMAGE_ERROR | provider:{self.name} | type:{error.error_type} | error:{error.message}"
            )
            await self._emit_event({
                "type": "image_error",
                "provider": self.name,
                "error": str(error)[:100],
            })
            if error is e:
                raise
            raise error from e

        duration = time.time() - start_time
        self._total_calls += 1
        self._total_cost += result.cost

        _logger.info(
            f"IMAGE_RESPONSE | provider:{self.name} | model:{result.model or model} | "
            f"duration:{duration:.2f}s | cost:${result.cost:.4f} | url:{result.url}"
        )
        await self._emit_event({
            "type": "image_response",
            "provider": self.name,
            "model": result.model or model,
            "prompt_preview": prompt[:200],
            "duration_seconds": duration,
            "cost_usd": result.cost,
            "total_calls": self._total_calls,
            "total_cost": self._total_cost,
        })

        return GeneratedImage(
            id=result.image_id,
            url=result.url,
            width=size[0],
            height=size[1],
            seed=result.seed,
            ai_metadata=AIMetadata(
                provider=self.name,
                model=result.model or model,
                cost=result.cost,
                generation_time=duration,
                prompt=prompt,
                parameters=result.parameters,
            ),
        )

    async def _enhance(self, prompt: str) -> str | None:
        """Vendor prompt rewrite. None means the vendor has no enhancer."""
        return None

    async def enhance_prompt(self, prompt: str) -> str:
        """Rewrite a prompt with the vendor's enhancer, if it has one.

        Failures (after retries) and empty replies return the prompt unchanged.
        """

        async def _attempt() -> str | None:
            try:
                return await self._enhance(prompt)
            except Exception as e:
                error = classify_provider_error(self.name, e)
                if error is e:
                    raise
                raise error from e

        try:
            enhanced = await call_with_retry(
                _attempt,
                max_attempts=self.settings.max_retries,
                delay_seconds=self.settings.retry_delay_seconds,
            )
        except ProviderError as e:
            _logger.warning(
                f"IMAGE_ENHANCE_FAILED | provider:{self.name} | type:{e.error_type} | "
                f"error:{e.message} | using original prompt"
            )
            return prompt

        if not enhanced or not enhanced.strip():
            return prompt
        enhanced = enhanced.strip()
        _logger.info(f"IMAGE_ENHANCE | provider:{self.name} | prompt:{prompt[:200]} | enhanced:{enhanced[:200]}")
        return enhanced


class RunwareImageProvider(ImageProvider):
    """Runware image inference over the REST task API."""

    DEFAULT_BASE_URL = "https://api.runware.ai/v1"
    ENHANCED_PROMPT_MAX_LENGTH = 300

    async def _send_task(self, task: dict[str, Any], api_key: str) -> dict[str, Any]:
        """POST one task and return its result item."""
        client = await self._get_http_client()
        response = await client.post(
            self.config.get_base_url() or self.DEFAULT_BASE_URL,
            json=[task],
            headers={"Authorization": f"Bearer {api_key}"},
        )
        response.raise_for_status()
        payload = response.json()

        if payload.get("errors"):
            message = payload["errors"][0].get("message", f"{task['taskType']} failed")
            raise UnknownProviderError(self.name, message)

        results = [item for item in payload.get("data", []) if item.get("taskUUID") == task["taskUUID"]]
        if not results:
            raise UnknownProviderError(self.name, f"no {task['taskType']} result in response")
        return results[0]

    async def _enhance(self, prompt: str) -> str | None:
        item = await self._send_task(
            {
                "taskType": "promptEnhancer",
                "taskUUID": str(uuid.uuid4()),
                "prompt": prompt,
                "promptMaxLength": self.ENHANCED_PROMPT_MAX_LENGTH,
                "promptVersions": 1,
            },
            self._require_api_key(),
        )
        return item.get("text")

    async def _request(
        self, prompt: str, options: ImageGenerationOptions, size: tuple[int, int],
    ) -> _VendorResult:
        api_key = self._require_api_key()
        model = options.model or self.config.model
        enhanced_prompt = enhance_prompt_for_style(prompt, options.style)
        task_uuid = str(uuid.uuid4())

        task: dict[str, Any] = {
            "taskType": "imageInference",
            "taskUUID": task_uuid,
            "positivePrompt": enhanced_prompt,
            "width": size[0],
            "height": size[1],
            "model": model,
            "steps": options.steps or self.config.settings.get("steps", 25),
            "CFGScale": options.guidance_scale or self.config.settings.get("guidance_scale", 7.0),
            "numberResults": 1,
            "includeCost": True,
        }
        if options.seed is not None:
            task["seed"] = options.seed

        item = await self._send_task(task, api_key)
        if not item.get("imageURL"):
            raise UnknownProviderError(self.name, "no image URL in response")

        return _VendorResult(
            url=item["imageURL"],
            image_id=item.get("imageUUID") or task_uuid,
            cost=float(item.get("cost") or self.config.cost_per_image or DEFAULT_IMAGE_COST_USD),
            seed=item.get("seed", options.seed),
            model=model,
            parameters={
                "steps": task["steps"],
                "guidance_scale": task["CFGScale"],
                "style": options.style,
                "enhanced_prompt": enhanced_prompt,
            },
        )


class MidjourneyImageProvider(ImageProvider):
    """Midjourney-compatible imagine + status polling API."""

    DEFAULT_BASE_URL = "https://api.midjourney.com/v1"
    QUALITY_COSTS = {"standard": 0.02, "high": 0.04}
    ENHANCE_SUFFIX = "highly detailed, professional photography, cinematic lighting, 8k resolution, masterpiece"

    async def _enhance(self, prompt: str) -> str | None:
        # No enhancer endpoint, append quality keywords
        return f"{prompt}, {self.ENHANCE_SUFFIX}"

    async def _poll(self, client: httpx.AsyncClient, base_url: str, task_id: str, api_key: str) -> dict[str, Any]:
        interval = float(self.config.settings.get("poll_interval_seconds", 5))
        max_attempts = int(self.config.settings.get("max_poll_attempts", 60))

        for _ in range(max_attempts):
            response = await client.get(
                f"{base_url}/status/{task_id}",
                headers={"Authorization": f"Bearer {api_key}"},
            )
            response.raise_for_status()
            result = response.json()

            status = result.get("status")
            if status == "completed":
                return result
            if status == "failed":
                raise UnknownProviderError(self.name, result.get("error") or "generation failed")

            _logger.debug(f"MIDJOURNEY_POLL | task:{task_id} | progress:{result.get('progress', 0)}%")
            await asyncio.sleep(interval)

        raise ProviderTimeoutError(self.name, f"exceeded {max_attempts} polling attempts")

    async def _request(
        self, prompt: str, options: ImageGenerationOptions, size: tuple[int, int],
    ) -> _VendorResult:
        api_key = self._require_api_key()
        base_url = (self.config.get_base_url() or self.DEFAULT_BASE_URL).rstrip("/")
        quality = options.quality or self.config.settings.get("quality", "high")

        request_payload = {
            "prompt": f"{prompt} --style {options.style}" if options.style else prompt,
            "aspect_ratio": aspect_ratio(*size),
            "model": options.model or self.config.model,
            "quality": quality,
            "stylize": round(options.guidance_scale * 20) if options.guidance_scale else 100,
            "chaos": 0,
            "seed": options.seed,
        }

        client = await self._get_http_client()
        response = await client.post(
            f"{base_url}/imagine",
            json=request_payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )
        response.raise_for_status()
        task_id = response.json()["id"]

        result = await self._poll(client, base_url, task_id, api_key)
        if not result.get("image_url"):
            raise UnknownProviderError(self.name, "no image URL in response")

        metadata = result.get("metadata") or {}
        final_quality = metadata.get("quality", quality)
        return _VendorResult(
            url=result["image_url"],
            image_id=task_id,
            cost=self.QUALITY_COSTS.get(final_quality, self.QUALITY_COSTS["high"]),
            seed=options.seed,
            model=metadata.get("model", request_payload["model"]),
            parameters={
                "aspect_ratio": request_payload["aspect_ratio"],
                "stylize": metadata.get("stylize", request_payload["stylize"]),
                "chaos": metadata.get("chaos", 0),
                "quality": final_quality,
            },
        )


class OpenAIImageProvider(ImageProvider):
    """OpenAI images API (DALL-E)."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._openai_client: Any = None

    def _get_openai_client(self) -> Any:
        """Get or create the SDK client, reused across calls."""
        if self._openai_client is None:
            from openai import AsyncOpenAI

            self._openai_client = AsyncOpenAI(
                api_key=self._require_api_key(), timeout=self.config.timeout
            )
        return self._openai_client

    async def close(self) -> None:
        """Close the SDK client and any HTTP client this provider created."""
        await super().close()
        if self._openai_client is not None:
            await self._openai_client.close()
            self._openai_client = None

    async def _request(
        self, prompt: str, options: ImageGenerationOptions, size: tuple[int, int],
    ) -> _VendorResult:
        client = self._get_openai_client()

        # DALL-E 3 only supports specific sizes
        width, height = size
        if height > width:
            dalle_size = "1024x1792"
        elif width > height:
            dalle_size = "1792x1024"
        else:
            dalle_size = "1024x1024"

        quality = options.quality or self.config.settings.get("quality", "standard")
        response = await client.images.generate(
            model=options.model or self.config.model,
            prompt=enhance_prompt_for_style(prompt, options.style),
            size=dalle_size,
            quality=quality,
            response_format="url",
            n=1,
        )

        return _VendorResult(
            url=response.data[0].url,
            image_id=str(uuid.uuid4()),
            cost=self.config.cost_per_image or DEFAULT_IMAGE_COST_USD,
            model=options.model or self.config.model,
            parameters={"size": dalle_size, "quality": quality},
        )


IMAGE_PROVIDER_TYPES: dict[str, type[ImageProvider]] = {
    "runware": RunwareImageProvider,
    "midjourney": MidjourneyImageProvider,
    "openai": OpenAIImageProvider,
}
