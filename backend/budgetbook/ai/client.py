"""
Thin async wrapper around litellm for the text-completion service.

Provider credentials are passed per call rather than through litellm globals.
"""

import json
import logging
from typing import Any, Dict, Optional

import litellm

from budgetbook.config import settings

logger = logging.getLogger(__name__)

litellm.drop_params = True


class AIClient:
    """Completion client for the configured provider and model."""

    def __init__(self):
        self.provider = settings.ai_provider
        self.model = self._get_model_string()

    def _get_model_string(self) -> str:
        model = settings.ai_model

        if self.provider == "openrouter":
            if not model.startswith("openrouter/"):
                return f"openrouter/{model}"
            return model
        elif self.provider == "ollama":
            if not model.startswith("ollama/"):
                return f"ollama/{model}"
            return model
        else:
            return model

    def _provider_kwargs(self) -> Dict[str, Any]:
        if self.provider == "openrouter":
            return {
                "api_key": settings.openrouter_api_key,
                "api_base": "https://openrouter.ai/api/v1",
            }
        elif self.provider == "ollama":
            return {"api_base": settings.ai_base_url or "http://localhost:11434"}
        elif self.provider == "anthropic":
            return {"api_key": settings.anthropic_api_key}
        elif self.provider == "openai":
            return {"api_key": settings.openai_api_key}
        return {}

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        json_mode: bool = False
    ) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt}
        ]

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": settings.ai_timeout_seconds,
            **self._provider_kwargs(),
        }

        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            logger.error("Completion via %s failed: %s", self.model, e)
            raise
        return response.choices[0].message.content or ""

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 1000
    ) -> Dict[str, Any]:
        response = await self.complete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True
        )

        cleaned = response.strip()
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:]
        if cleaned.startswith("```"):
            cleaned = cleaned[3:]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]

        return json.loads(cleaned.strip())


_ai_client: Optional[AIClient] = None

def get_ai_client() -> AIClient:
    global _ai_client
    if _ai_client is None:
        _ai_client = AIClient()
    return _ai_client
