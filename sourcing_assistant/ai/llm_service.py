"""LLM service for the analysis and image-scoring calls."""

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional

import openai
import redis.asyncio as redis
from openai import AsyncOpenAI

from sourcing_assistant.ai.prompts import (
    IMAGE_QUALITY_PROMPT,
    IMAGE_QUALITY_SYSTEM_PROMPT,
    AnalysisRequest,
    analysis_system_prompt,
)
from sourcing_assistant.config import settings
from sourcing_assistant.errors import NetworkError
from sourcing_assistant.ingest.models import EncodedImage

logger = logging.getLogger(__name__)


def _image_part(image: EncodedImage) -> Dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": image.data_uri}}


class LLMService:
    """
    Service for vision LLM interactions with OpenAI.

    Features:
    - Proposal analysis over one or more product images
    - Per-image quality scoring with JSON output
    - Optional Redis cache for analysis responses
    - No automatic retries; the SDK timeout is the only timeout
    """

    def __init__(self):
        self._client: Optional[AsyncOpenAI] = None
        self._redis: Optional[redis.Redis] = None
        self._call_count: int = 0

    async def _get_client(self) -> AsyncOpenAI:
        """Get or create OpenAI client."""
        if self._client is None:
            if not settings.openai_api_key:
                raise NetworkError("OpenAI API key not configured")
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def _get_redis(self) -> Optional[redis.Redis]:
        """Get or create Redis connection for caching."""
        if not settings.llm_cache_enabled:
            return None

        if self._redis is None:
            try:
                self._redis = await redis.from_url(
                    settings.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
            except Exception as e:
                logger.warning(f"Failed to connect to Redis for LLM cache: {e}")
                return None
        return self._redis

    def _get_cache_key(self, request: AnalysisRequest, model: str) -> str:
        """Generate cache key for an analysis request."""
        digest = hashlib.sha256()
        digest.update(model.encode("utf-8"))
        digest.update(request.to_prompt().encode("utf-8"))
        for image in request.images:
            digest.update(image.mime_type.encode("utf-8"))
            digest.update(image.base64_payload.encode("ascii"))
        return f"analysis_cache:{digest.hexdigest()}"

    async def _cache_get(self, key: str) -> Optional[str]:
        redis_client = await self._get_redis()
        if not redis_client:
            return None
        try:
            return await redis_client.get(key)
        except Exception as e:
            logger.warning(f"LLM cache read failed: {e}")
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        redis_client = await self._get_redis()
        if not redis_client:
            return
        try:
            await redis_client.setex(key, settings.llm_cache_ttl_seconds, value)
        except Exception as e:
            logger.warning(f"LLM cache write failed: {e}")

    async def _complete(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        json_output: bool = False,
    ) -> str:
        client = await self._get_client()

        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": settings.llm_temperature,
            "max_tokens": settings.llm_max_tokens,
        }
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            logger.error(f"LLM API call failed: {e}")
            raise NetworkError(f"LLM API call failed: {e}") from e

        self._call_count += 1
        result = response.choices[0].message.content
        return result or ""

    async def analyze_product(
        self,
        request: AnalysisRequest,
        model: Optional[str] = None,
        use_cache: bool = True,
    ) -> str:
        """
        Request a sourcing proposal for the given images and details.

        Args:
            request: Images (primary first), user details and hints
            model: Model name (defaults to settings.llm_model)
            use_cache: Whether to use the response cache

        Returns:
            Raw response text; expected to contain one JSON object

        Raises:
            NetworkError: If the service cannot be reached
        """
        model = model or settings.llm_model

        cache_key = self._get_cache_key(request, model)
        if use_cache:
            cached = await self._cache_get(cache_key)
            if cached:
                logger.debug("Analysis cache hit")
                return cached

        messages = [
            {"role": "system", "content": analysis_system_prompt()},
            {
                "role": "user",
                "content": [
                    *(_image_part(image) for image in request.images),
                    {"type": "text", "text": request.to_prompt()},
                ],
            },
        ]

        result = await self._complete(messages, model)

        if use_cache and result:
            await self._cache_set(cache_key, result)
        return result

    async def score_image(
        self,
        image: EncodedImage,
        model: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Ask for a quality score of one product image.

        Returns:
            Decoded JSON with qualityScore, qualityRating and feedback

        Raises:
            NetworkError: If the service cannot be reached
            ValueError: If the response is not a JSON object
        """
        messages = [
            {"role": "system", "content": IMAGE_QUALITY_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [_image_part(image), {"type": "text", "text": IMAGE_QUALITY_PROMPT}],
            },
        ]

        response_text = await self._complete(
            messages, model or settings.image_quality_model, json_output=True
        )

        try:
            parsed = json.loads(response_text.strip())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON response from image scorer: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError("Image scorer response is not a JSON object")
        return parsed

    def get_stats(self) -> Dict[str, Any]:
        """Get LLM service statistics."""
        return {
            "call_count": self._call_count,
            "cache_enabled": settings.llm_cache_enabled,
        }

    async def close(self):
        """Close connections."""
        if self._redis:
            await self._redis.close()
            self._redis = None
        if self._client:
            await self._client.close()
            self._client = None


# Global LLM service instance
llm_service = LLMService()
