from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError
from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider
from pydantic_ai.settings import ModelSettings

from app.config import Settings, get_settings
from app.constants.routing_prompt import RoutingPrompt
from app.exceptions import RoutingError
from app.infra.logging_config import get_logger
from app.schemas.routing import RoutingDecision

logger = get_logger("llm")

ROUTING_TEMPERATURE = 0.3
ROUTING_MAX_TOKENS = 200

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass
class LLMReply:
    text: str
    tokens_used: int
    model_name: str


def parse_routing_response(text: str) -> RoutingDecision:
    """Parse the model's JSON answer; markdown code fences are tolerated."""
    cleaned = _CODE_FENCE.sub("", (text or "").strip()).strip()
    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise RoutingError(f"Failed to parse AI routing response: {e}") from e
    if not isinstance(data, dict):
        raise RoutingError("AI routing response is not a JSON object")
    try:
        return RoutingDecision.model_validate(data)
    except ValidationError as e:
        raise RoutingError(f"Invalid AI routing response: {e}") from e


class RoutingLLM:
    """Single-shot completion used by the routing analyzer."""

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model: Optional[Model] = None,
    ) -> None:
        if model is None:
            provider = LiteLLMProvider(api_key=api_key, api_base=api_base)
            model = OpenAIChatModel(model_name, provider=provider)
        logger.info(f"Initializing routing LLM with model {model_name}")
        self._model_name = model_name
        self._agent = Agent(model, system_prompt=RoutingPrompt.SYSTEM)

    async def complete(self, prompt: str) -> LLMReply:
        try:
            result = await self._agent.run(
                prompt,
                model_settings=ModelSettings(
                    temperature=ROUTING_TEMPERATURE,
                    max_tokens=ROUTING_MAX_TOKENS,
                ),
            )
        except Exception as e:
            logger.exception("Routing LLM call failed")
            raise RoutingError(f"AI routing request failed: {e}") from e
        # `usage` is a method on older pydantic-ai releases and a property on newer ones
        usage = result.usage() if callable(result.usage) else result.usage
        return LLMReply(
            text=str(result.output),
            tokens_used=usage.total_tokens or 0,
            model_name=self._model_name,
        )


def build_routing_llm_from_env(settings: Optional[Settings] = None) -> RoutingLLM:
    settings = settings or get_settings()
    logger.info(
        "Routing LLM config: model=%s, api_key=%s, api_base=%s",
        settings.llm_model,
        "set" if settings.litellm_api_key else "not set",
        settings.litellm_api_base or "(default)",
    )
    if not settings.litellm_api_key:
        logger.warning(
            "LITELLM_API_KEY is not set; set it to a valid OpenAI or LiteLLM API key to avoid 401 errors."
        )
    return RoutingLLM(
        model_name=settings.llm_model,
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
    )
