"""Mock provider - deterministic responses for tests and fallback.

Image requests get the first input image echoed back; JSON requests get a
single fixed detection.
"""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from typing import Any, Optional

from ..contracts import Part, ServiceResponse
from .base import BaseProvider, ProviderResult

MOCK_DETECTIONS = [{"label": "mock object", "box": {"x1": 0, "y1": 0, "x2": 1, "y2": 1}}]


class MockProvider(BaseProvider):
    name = "mock"

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
        t0 = time.monotonic()

        if response_mime_type == "application/json":
            payload: dict[str, Any] = {
                "candidates": [
                    {
                        "content": {"role": "model", "parts": [{"text": json.dumps(MOCK_DETECTIONS)}]},
                        "finishReason": "STOP",
                    }
                ]
            }
        else:
            image = next((p for p in parts if p.inline_data is not None), None)
            reply = [image.to_wire()] if image is not None else [{"text": "No input image to echo."}]
            payload = {"candidates": [{"content": {"role": "model", "parts": reply}, "finishReason": "STOP"}]}

        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            response=ServiceResponse.model_validate(payload),
            model=model or "mock-v1",
            provider=self.name,
            latency_ms=round(elapsed, 2),
        )
