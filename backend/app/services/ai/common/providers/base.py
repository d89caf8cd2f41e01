"""Abstract base for all image-generation providers."""

from __future__ import annotations

import abc
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from ..contracts import Part, ServiceResponse


@dataclass(frozen=True)
class ProviderResult:
    """Immutable result returned by every provider."""

    response: ServiceResponse
    model: str
    provider: str
    latency_ms: float = 0.0


class BaseProvider(abc.ABC):
    """Contract that every provider must implement."""

    name: str = "base"

    @abc.abstractmethod
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
        """Send *parts* (images + instruction) and return a ``ProviderResult``."""
