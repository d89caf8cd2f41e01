"""Provider factory - returns the right provider instance or falls back to mock."""

from __future__ import annotations

import logging

from app.core.config import get_settings

from .base import BaseProvider, ProviderResult
from .mock import MockProvider

logger = logging.getLogger(__name__)

__all__ = ["get_provider", "BaseProvider", "ProviderResult", "MockProvider"]


def get_provider(provider_name: str) -> BaseProvider:
    """Return a provider instance for *provider_name*.

    If the requested provider is not in the allowlist, has no API key,
    or is unknown, we fall back to ``MockProvider`` with a warning.
    """
    settings = get_settings()
    name = provider_name.lower().strip()

    if name not in settings.ai_allowed_providers:
        logger.warning("Provider %r not in allowlist – falling back to mock", name)
        return MockProvider()

    if name == "mock":
        return MockProvider()

    if name == "gemini":
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY not set – falling back to mock")
            return MockProvider()
        from .gemini import GeminiProvider

        return GeminiProvider(api_key=settings.gemini_api_key, base_url=settings.gemini_base_url)

    logger.warning("Unknown provider %r – falling back to mock", name)
    return MockProvider()
