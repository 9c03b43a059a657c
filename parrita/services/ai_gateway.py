import logging
from functools import lru_cache
from typing import Dict, List

from openai import AsyncOpenAI, APIStatusError, OpenAIError

from parrita.config import AI_GATEWAY_API_KEY, AI_GATEWAY_URL, AI_MODEL
from parrita.services.errors import ServiceError


logger = logging.getLogger(__name__)

UPSTREAM_ERRORS = {
    429: "Trop de requêtes, réessayez dans un instant.",
    402: "Service temporairement indisponible.",
}


class AIGateway:
    """Streaming chat completions against an OpenAI-compatible gateway."""

    def __init__(self, api_key: str, base_url: str = AI_GATEWAY_URL, model: str = AI_MODEL):
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model

    async def open_stream(self, messages: List[Dict[str, str]]):

        logger.info("AI request | model=%s messages=%s", self.model, len(messages))

        try:
            return await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                stream=True,
            )

        except APIStatusError as e:
            logger.error("AI gateway error | status=%s detail=%s", e.status_code, e.message)

            if e.status_code in UPSTREAM_ERRORS:
                raise ServiceError(e.status_code, UPSTREAM_ERRORS[e.status_code]) from e

            raise ServiceError(500, "AI gateway error") from e

        except OpenAIError as e:
            logger.error("AI gateway unreachable: %s", e)
            raise ServiceError(500, "AI gateway error") from e


@lru_cache
def _default_gateway() -> AIGateway:
    return AIGateway(api_key=AI_GATEWAY_API_KEY)


def get_gateway() -> AIGateway:

    if not AI_GATEWAY_API_KEY:
        logger.error("AI_GATEWAY_API_KEY missing")
        raise ServiceError(500, "AI gateway not configured")

    return _default_gateway()
