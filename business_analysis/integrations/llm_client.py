"""Async LLM client: OpenAI first, Google Gemini as fallback.

Used by the review sentiment analyzer and the business intelligence
inferrer.  Responses are cached in memory and both providers are throttled
with :class:`~business_analysis.utils.rate_limiter.RateLimiter`.
"""

import asyncio
import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

import google.generativeai as genai
import openai

from business_analysis.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a local business marketing analyst."
JSON_SYSTEM_PROMPT = "You are a helpful assistant. Respond ONLY with valid JSON."


@dataclass
class UsageStats:
    """Token usage and estimated spend for the process lifetime."""

    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_requests: int = 0
    total_cost_usd: float = 0.0

    def add_usage(self, input_tokens: int, output_tokens: int,
                  cost_per_1k_input: float = 0.00015,
                  cost_per_1k_output: float = 0.0006) -> float:
        cost = (input_tokens / 1000) * cost_per_1k_input + \
               (output_tokens / 1000) * cost_per_1k_output
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_requests += 1
        self.total_cost_usd += cost
        return cost


class ResponseCache:
    """In-memory TTL cache keyed on model, prompt and call options."""

    def __init__(self, max_size: int = 1000, ttl_hours: int = 24):
        self._cache: dict[str, tuple[float, str]] = {}
        self._max_size = max_size
        self._ttl_seconds = ttl_hours * 3600

    @staticmethod
    def _make_key(prompt: str, model: str, **kwargs) -> str:
        raw = f"{model}:{prompt}:{json.dumps(kwargs, sort_keys=True)}"
        return hashlib.sha256(raw.encode()).hexdigest()

    def get(self, prompt: str, model: str, **kwargs) -> Optional[str]:
        key = self._make_key(prompt, model, **kwargs)
        entry = self._cache.get(key)
        if entry is None:
            return None
        ts, value = entry
        if time.time() - ts >= self._ttl_seconds:
            del self._cache[key]
            return None
        return value

    def set(self, prompt: str, model: str, value: str, **kwargs) -> None:
        if len(self._cache) >= self._max_size:
            oldest_key = min(self._cache, key=lambda k: self._cache[k][0])
            del self._cache[oldest_key]
        self._cache[self._make_key(prompt, model, **kwargs)] = (time.time(), value)

    def __len__(self) -> int:
        return len(self._cache)


class LLMClient:
    """Unified async LLM client with OpenAI primary and Gemini fallback.

    Usage::

        client = LLMClient()
        text = await client.generate_text("Summarize these reviews ...")
        data = await client.generate_json("Return the sentiment as JSON")
    """

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        openai_model: str = "gpt-4o-mini",
        gemini_model: str = "gemini-2.0-flash",
        max_tokens: int = 2048,
        temperature: float = 0.3,
        timeout: int = 60,
        openai_rpm: int = 60,
        gemini_rpm: int = 15,
        cache_enabled: bool = True,
        cache_ttl_hours: int = 24,
    ):
        self._openai_key = openai_api_key or os.getenv("OPENAI_API_KEY", "")
        self._gemini_key = gemini_api_key or os.getenv("GEMINI_API_KEY", "")

        self._openai_model = openai_model
        self._gemini_model = gemini_model
        self._max_tokens = max_tokens
        self._temperature = temperature

        self._openai_client: Optional[openai.AsyncOpenAI] = None
        if self._openai_key:
            self._openai_client = openai.AsyncOpenAI(
                api_key=self._openai_key, timeout=timeout
            )
        if self._gemini_key:
            genai.configure(api_key=self._gemini_key)

        self._openai_limiter = RateLimiter(openai_rpm, 60.0, name="openai")
        self._gemini_limiter = RateLimiter(gemini_rpm, 60.0, name="gemini")

        self._cache_enabled = cache_enabled
        self._cache = ResponseCache(ttl_hours=cache_ttl_hours)
        self.usage = UsageStats()

    @property
    def is_configured(self) -> bool:
        """True when at least one provider has an API key."""
        return bool(self._openai_client or self._gemini_key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        use_cache: bool = True,
    ) -> str:
        """Generate text, falling back to Gemini when OpenAI fails.

        Raises:
            RuntimeError: If no provider is configured.
        """
        max_tokens = max_tokens or self._max_tokens
        temperature = temperature if temperature is not None else self._temperature
        caching = use_cache and self._cache_enabled

        if caching:
            cached = self._cache.get(prompt, self._openai_model,
                                     system=system_prompt, temp=temperature)
            if cached is not None:
                logger.debug("Cache hit for prompt (len=%d)", len(prompt))
                return cached

        if self._openai_client:
            try:
                result = await self._call_openai(prompt, system_prompt, max_tokens, temperature)
                if caching:
                    self._cache.set(prompt, self._openai_model, result,
                                    system=system_prompt, temp=temperature)
                return result
            except openai.OpenAIError as exc:
                logger.warning("OpenAI call failed: %s; falling back to Gemini", exc)

        if self._gemini_key:
            try:
                result = await self._call_gemini(prompt, system_prompt, max_tokens, temperature)
            except Exception as exc:
                logger.error("Gemini call also failed: %s", exc)
                raise
            if caching:
                self._cache.set(prompt, self._openai_model, result,
                                system=system_prompt, temp=temperature)
            return result

        raise RuntimeError("No LLM provider configured. Set OPENAI_API_KEY or GEMINI_API_KEY.")

    async def generate_json(
        self,
        prompt: str,
        system_prompt: str = JSON_SYSTEM_PROMPT,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Any:
        """Generate a response and parse it as JSON.

        Raises:
            ValueError: If the model output is not valid JSON.
        """
        raw = await self.generate_text(
            prompt=prompt,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature if temperature is not None else 0.3,
        )
        cleaned = strip_code_fences(raw)
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse JSON from LLM response: %s", exc)
            logger.debug("Raw response: %s", raw[:500])
            raise ValueError(f"LLM returned invalid JSON: {exc}") from exc

    def get_usage_summary(self) -> dict[str, Any]:
        return {
            "total_requests": self.usage.total_requests,
            "total_input_tokens": self.usage.total_input_tokens,
            "total_output_tokens": self.usage.total_output_tokens,
            "total_cost_usd": round(self.usage.total_cost_usd, 6),
            "cached_responses": len(self._cache),
        }

    # ------------------------------------------------------------------
    # Providers
    # ------------------------------------------------------------------

    async def _call_openai(self, prompt: str, system_prompt: str,
                           max_tokens: int, temperature: float) -> str:
        await self._openai_limiter.acquire()
        response = await self._openai_client.chat.completions.create(
            model=self._openai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        text = response.choices[0].message.content or ""
        usage = response.usage
        if usage:
            cost = self.usage.add_usage(usage.prompt_tokens, usage.completion_tokens)
            logger.info(
                "OpenAI call: %d in / %d out tokens, $%.6f",
                usage.prompt_tokens, usage.completion_tokens, cost,
            )
        return text.strip()

    async def _call_gemini(self, prompt: str, system_prompt: str,
                           max_tokens: int, temperature: float) -> str:
        await self._gemini_limiter.acquire()
        model = genai.GenerativeModel(
            model_name=self._gemini_model,
            system_instruction=system_prompt,
            generation_config=genai.types.GenerationConfig(
                max_output_tokens=max_tokens,
                temperature=temperature,
            ),
        )
        # The Gemini SDK call is synchronous.
        response = await asyncio.to_thread(model.generate_content, prompt)
        text = response.text or ""
        logger.info("Gemini call completed (len=%d)", len(text))
        return text.strip()


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence from model output.

    Examples:
        >>> strip_code_fences('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
    """
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned
