"""Text generation provider using Agno framework.

One TextProvider instance wraps one configured vendor. Agno gives a
unified model interface, so the only vendor-specific code is the model
factory below.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Callable

from ..constants import PLATFORM_HASHTAG_LIMITS
from ..content.prompts import (
    PROMPT_ENHANCER_SYSTEM,
    PROMPT_ENHANCER_TEMPERATURE,
    build_enhance_request,
    build_system_prompt,
    clean_enhanced_prompt,
    enhance_prompt_with_context,
    temperature_for_style,
)
from ..errors import ProviderError
from .base import AIEventCallback, AIMetadata, GeneratedText, TextGenerationOptions
from .config import ProviderSettings, TextProviderConfig
from .errors import call_with_retry, classify_provider_error

_logger = logging.getLogger("ai_calls")

_HASHTAG_PATTERN = re.compile(r"#\w+")


def _lmstudio_model(model_id: str, api_key: str | None, base_url: str | None, temperature: float) -> Any:
    from agno.models.lmstudio import LMStudio

    return LMStudio(
        id=model_id,
        base_url=base_url or "http://localhost:1234/v1",
        temperature=temperature,
    )


def _ollama_model(model_id: str, api_key: str | None, base_url: str | None, temperature: float) -> Any:
    from agno.models.ollama import Ollama

    return Ollama(
        id=model_id,
        host=base_url or "http://localhost:11434",
        options={"temperature": temperature},
    )


def _openai_model(model_id: str, api_key: str | None, base_url: str | None, temperature: float) -> Any:
    from agno.models.openai import OpenAIChat

    return OpenAIChat(id=model_id, api_key=api_key, temperature=temperature)


def _anthropic_model(model_id: str, api_key: str | None, base_url: str | None, temperature: float) -> Any:
    from agno.models.anthropic import Claude

    return Claude(id=model_id, api_key=api_key, temperature=temperature)


def _gemini_model(model_id: str, api_key: str | None, base_url: str | None, temperature: float) -> Any:
    from agno.models.google import Gemini

    return Gemini(id=model_id, api_key=api_key, temperature=temperature)


def _groq_model(model_id: str, api_key: str | None, base_url: str | None, temperature: float) -> Any:
    from agno.models.groq import Groq

    return Groq(id=model_id, api_key=api_key, temperature=temperature)


def _openai_like_model(model_id: str, api_key: str | None, base_url: str | None, temperature: float) -> Any:
    from agno.models.openai.like import OpenAILike

    return OpenAILike(id=model_id, api_key=api_key, base_url=base_url, temperature=temperature)


# Vendor name -> Agno model factory. Unknown vendors are treated as
# OpenAI-compatible endpoints.
_MODEL_FACTORIES: dict[str, Callable[[str, str | None, str | None, float], Any]] = {
    "lmstudio": _lmstudio_model,
    "ollama": _ollama_model,
    "openai": _openai_model,
    "anthropic": _anthropic_model,
    "gemini": _gemini_model,
    "groq": _groq_model,
}

# USD per 1K tokens, used to estimate cost from character counts
_COST_PER_1K_TOKENS: dict[str, float] = {
    "openai": 0.0006,
    "anthropic": 0.004,
    "groq": 0.0001,
    "gemini": 0.0001,
    "lmstudio": 0.0,
    "ollama": 0.0,
}


def _create_agno_model(provider_name: str, provider_config: TextProviderConfig, temperature: float) -> Any:
    """Create an Agno model instance for the given provider."""
    factory = _MODEL_FACTORIES.get(provider_name, _openai_like_model)
    return factory(
        provider_config.model_id,
        provider_config.get_api_key(),
        provider_config.get_base_url(),
        temperature,
    )


def parse_hashtags(text: str, max_hashtags: int) -> list[str]:
    """Unique hashtags in order of appearance, capped at max_hashtags."""
    seen: list[str] = []
    for tag in _HASHTAG_PATTERN.findall(text):
        if tag not in seen:
            seen.append(tag)
    return seen[:max_hashtags]


class TextProvider:
    """Agno-backed text generator for one configured vendor.

    Usage:
        provider = TextProvider("openai", config.text_providers["openai"])
        result = await provider.generate_text(prompt, TextGenerationOptions())
    """

    def __init__(
        self,
        name: str,
        config: TextProviderConfig,
        settings: ProviderSettings | None = None,
        event_callback: AIEventCallback = None,
    ):
        """Initialize the text provider.

        Args:
            name: Vendor name (selects the Agno model class).
            config: Vendor configuration.
            settings: Retry settings. Defaults to ProviderSettings().
            event_callback: Optional callback for AI events (for progress tracking).
        """
        self.name = name
        self.config = config
        self.settings = settings or ProviderSettings()
        self._event_callback = event_callback
        self._total_calls = 0
        self._total_cost = 0.0

    async def _emit_event(self, event: dict[str, Any]) -> None:
        """Emit an AI event if callback is set."""
        if self._event_callback:
            await self._event_callback(event)

    def _estimate_cost(self, total_chars: int) -> float:
        """Estimate cost based on provider and character count."""
        tokens = total_chars / 4
        return (tokens / 1000) * _COST_PER_1K_TOKENS.get(self.name, 0.001)

    async def _run_agent(self, prompt: str, system: str, temperature: float) -> str:
        from agno.agent import Agent

        model = _create_agno_model(self.name, self.config, temperature)
        agent = Agent(model=model, instructions=system, markdown=False)
        try:
            response = await asyncio.wait_for(agent.arun(prompt), timeout=self.config.timeout)
        except Exception as e:
            raise classify_provider_error(self.name, e) from e

        result = response.content or ""
        # Reasoning models can leave content empty
        if not result and getattr(response, "reasoning_content", None):
            result = response.reasoning_content
        return str(result)

    async def generate_text(
        self,
        prompt: str,
        options: TextGenerationOptions,
        system: str | None = None,
    ) -> GeneratedText:
        """Generate text for a prompt.

        Args:
            prompt: The user prompt.
            options: Platform, tone, length and variation options.
            system: System prompt. Built from the options when omitted.

        Returns:
            GeneratedText with the first variation as content.

        Raises:
            ProviderError: After retries for retryable failures, immediately
                for terminal ones.
        """
        system = system or build_system_prompt(options)
        full_prompt = enhance_prompt_with_context(prompt, options)
        temperature = (
            options.temperature
            if options.temperature is not None
            else temperature_for_style(options.style)
        )
        model_id = self.config.model_id

        await self._emit_event({
            "type": "text_call",
            "provider": self.name,
            "model": model_id,
            "prompt_preview": full_prompt[:200],
        })
        _logger.info(
            f"AI_REQUEST | provider:{self.name} | model:{model_id} | "
            f"temperature:{temperature} | variations:{options.variations}\n"
            f"--- SYSTEM ---\n{system}\n"
            f"--- PROMPT ---\n{full_prompt}\n"
            f"--- END REQUEST ---"
        )

        start_time = time.time()

        async def _attempt() -> list[str]:
            return list(await asyncio.gather(*(
                self._run_agent(full_prompt, system, temperature)
                for _ in range(options.variations)
            )))

        try:
            variations = await call_with_retry(
                _attempt,
                max_attempts=self.settings.max_retries,
                delay_seconds=self.settings.retry_delay_seconds,
            )
        except Exception as e:
            error = classify_provider_error(self.name, e)
            _logger.warning(
                f"AI_ERROR | provider:{self.name} | type:{error.error_type} | error:{error.message}"
            )
            await self._emit_event({
                "type": "text_error",
                "provider": self.name,
                "error": str(error)[:100],
            })
            if error is e:
                raise
            raise error from e

        duration = time.time() - start_time
        content = variations[0]
        cost = self._estimate_cost(len(full_prompt) + sum(len(v) for v in variations))
        self._total_calls += 1
        self._total_cost += cost

        _logger.info(
            f"AI_RESPONSE | provider:{self.name} | model:{model_id} | "
            f"duration:{duration:.2f}s | cost:${cost:.4f}\n"
            f"--- RESPONSE ---\n{content}\n"
            f"--- END RESPONSE ---"
        )
        await self._emit_event({
            "type": "text_response",
            "provider": self.name,
            "model": model_id,
            "response_preview": content[:200],
            "duration_seconds": duration,
            "cost_usd": cost,
            "total_calls": self._total_calls,
            "total_cost": self._total_cost,
        })

        hashtags: list[str] = []
        if options.include_hashtags:
            hashtags = parse_hashtags(content, PLATFORM_HASHTAG_LIMITS[options.platform])

        return GeneratedText(
            content=content,
            suggestions=variations,
            hashtags=hashtags,
            ai_metadata=AIMetadata(
                provider=self.name,
                model=model_id,
                cost=cost,
                generation_time=duration,
                prompt=full_prompt,
                parameters={
                    "platform": options.platform.value,
                    "style": options.style,
                    "tone": getattr(options.tone, "value", options.tone),
                    "max_length": options.max_length,
                    "include_hashtags": options.include_hashtags,
                    "include_emojis": options.include_emojis,
                    "variations": options.variations,
                    "temperature": temperature,
                },
            ),
        )

    async def enhance_prompt(self, prompt: str) -> str:
        """Rewrite a prompt to be more specific for content generation.

        Enhancement is best-effort: any provider failure (after retries)
        returns the prompt unchanged.
        """
        request = build_enhance_request(prompt)
        try:
            content = await call_with_retry(
                lambda: self._run_agent(request, PROMPT_ENHANCER_SYSTEM, PROMPT_ENHANCER_TEMPERATURE),
                max_attempts=self.settings.max_retries,
                delay_seconds=self.settings.retry_delay_seconds,
            )
        except ProviderError as e:
            _logger.warning(
                f"AI_ENHANCE_FAILED | provider:{self.name} | type:{e.error_type} | "
                f"error:{e.message} | using original prompt"
            )
            return prompt

        enhanced = clean_enhanced_prompt(content, prompt)
        _logger.info(
            f"AI_ENHANCE | provider:{self.name} | model:{self.config.model_id}\n"
            f"--- PROMPT ---\n{prompt}\n"
            f"--- ENHANCED ---\n{enhanced}\n"
            f"--- END ENHANCE ---"
        )
        return enhanced
