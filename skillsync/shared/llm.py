"""
LLM client abstraction supporting Gemini, OpenAI and Anthropic.
The model is treated as an opaque text-completion oracle.
"""

from typing import Optional, Dict, Any
from enum import Enum

import httpx
from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

from skillsync.shared.config import settings
from skillsync.shared.exceptions import OracleError


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMError(OracleError):
    """Base error for LLM operations."""
    pass


class LLMClient:
    """Unified LLM client supporting multiple providers."""

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.provider = provider or settings.llm.provider
        self.model = model or settings.llm.default_model
        self.temperature = temperature if temperature is not None else settings.llm.temperature
        self.max_tokens = max_tokens or settings.llm.max_tokens

        if self.provider == LLMProvider.GEMINI:
            self.api_key = api_key or settings.llm.gemini_api_key
            if not self.api_key:
                raise LLMError("GEMINI_API_KEY is not configured")
            self.base_url = settings.llm.gemini_base_url.rstrip("/")
            self.client = http_client or httpx.AsyncClient(timeout=settings.llm.timeout_seconds)
        elif self.provider == LLMProvider.OPENAI:
            self.api_key = api_key or settings.llm.openai_api_key
            if not self.api_key:
                raise LLMError("OpenAI API key not configured")
            self.client = AsyncOpenAI(api_key=self.api_key)
        elif self.provider == LLMProvider.ANTHROPIC:
            self.api_key = api_key or settings.llm.anthropic_api_key
            if not self.api_key:
                raise LLMError("Anthropic API key not configured")
            self.client = AsyncAnthropic(api_key=self.api_key)
        else:
            raise LLMError(f"Unsupported provider: {self.provider}")

    async def get_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Get text completion from the oracle.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            model: Override default model
            temperature: Override default temperature
            max_tokens: Override default max_tokens

        Returns:
            Completion text
        """
        model = model or self.model
        temperature = temperature if temperature is not None else self.temperature
        max_tokens = max_tokens or self.max_tokens

        try:
            if self.provider == LLMProvider.GEMINI:
                return await self._gemini_completion(prompt, system_prompt, model, temperature, max_tokens)
            elif self.provider == LLMProvider.OPENAI:
                return await self._openai_completion(prompt, system_prompt, model, temperature, max_tokens)
            return await self._anthropic_completion(prompt, system_prompt, model, temperature, max_tokens)
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"LLM completion failed: {str(e)}") from e

    async def _gemini_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Gemini (Generative Language API) completion over REST."""
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        if system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        response = await self.client.post(
            f"{self.base_url}/{model}:generateContent",
            params={"key": self.api_key},
            json=payload,
        )
        response.raise_for_status()

        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Unexpected Gemini response: {response.text[:200]}") from e

    async def _openai_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """OpenAI-specific completion."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""

    async def _anthropic_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Anthropic-specific completion."""
        completion_kwargs: Dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            completion_kwargs["system"] = system_prompt

        response = await self.client.messages.create(**completion_kwargs)
        return response.content[0].text

    async def aclose(self) -> None:
        """Release the underlying HTTP client."""
        if self.provider == LLMProvider.GEMINI:
            await self.client.aclose()
        else:
            await self.client.close()
