"""Google Gemini provider (REST ``generateContent``)."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any, Optional

import httpx

from ..contracts import Part, ServiceResponse
from .base import BaseProvider, ProviderResult

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiProvider(BaseProvider):
    name = "gemini"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    async def generate_content(
        self,
        parts: Sequence[Part],
        *,
        model: str = "",
        response_modalities: Optional[list[str]] = None,
        response_mime_type: Optional[str] = None,
        response_schema: Optional[dict[str, Any]] = None,
        timeout_seconds: float = 60.0,
    ) -> ProviderResult:
        model = model or "gemini-2.5-flash-image"

        generation_config: dict[str, Any] = {}
        if response_modalities:
            generation_config["responseModalities"] = response_modalities
        if response_mime_type:
            generation_config["responseMimeType"] = response_mime_type
        if response_schema:
            generation_config["responseSchema"] = response_schema

        payload: dict[str, Any] = {"contents": [{"parts": [p.to_wire() for p in parts]}]}
        if generation_config:
            payload["generationConfig"] = generation_config

        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=self._transport) as client:
            resp = await client.post(
                f"{self._base_url}/models/{model}:generateContent",
                headers={
                    "x-goog-api-key": self._api_key,
                    "content-type": "application/json",
                },
                json=payload,
            )
            resp.raise_for_status()
            data = resp.json()

        elapsed = (time.monotonic() - t0) * 1000
        logger.debug("Gemini %s answered in %.1f ms", model, elapsed)

        return ProviderResult(
            response=ServiceResponse.model_validate(data),
            model=model,
            provider=self.name,
            latency_ms=round(elapsed, 2),
        )
