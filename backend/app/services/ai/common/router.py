"""AI Router - resolves provider + model with override > ENV > mock-fallback chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.config import get_settings

from .providers import BaseProvider, get_provider

logger = logging.getLogger(__name__)

SCOPES = ("image", "detection")


@dataclass(frozen=True)
class ResolvedConfig:
    """Final resolved provider + model after the override chain."""

    provider: BaseProvider
    model: str
    timeout_seconds: float


def resolve(
    scope: str,
    *,
    override_provider: str | None = None,
    override_model: str | None = None,
) -> ResolvedConfig:
    """Resolve provider + model for *scope* (``"image"`` or ``"detection"``).

    Resolution chain (first non-empty wins):
      1. ``override_provider`` / ``override_model`` (request param,
         only when ``enable_ai_overrides=True``).
      2. ENV scope-specific: ``AI_IMAGE_PROVIDER`` / ``AI_DETECTION_MODEL`` etc.
      3. Fallback: ``"mock"`` with empty model.

    A model outside the provider's allowlist is replaced by the first
    allowed model.
    """
    if scope not in SCOPES:
        raise ValueError(f"Unknown AI scope {scope!r}; valid: {SCOPES}")

    settings = get_settings()

    # --- 1. Determine provider name ---
    provider_name = ""

    if settings.enable_ai_overrides and override_provider:
        provider_name = override_provider.lower().strip()

    if not provider_name:
        provider_name = (
            settings.ai_image_provider if scope == "image" else settings.ai_detection_provider
        ).lower().strip()

    if not provider_name:
        provider_name = "mock"

    # --- 2. Determine model ---
    model = ""

    if settings.enable_ai_overrides and override_model:
        model = override_model.strip()

    if not model and provider_name != "mock":
        model = settings.ai_image_model if scope == "image" else settings.ai_detection_model

    # --- 3. Validate model against allowlist ---
    allowed_models = settings.ai_allowed_models.get(provider_name, [])
    if allowed_models and model and model not in allowed_models:
        logger.warning(
            "Model %r not in allowlist for %r, using first allowed: %r",
            model,
            provider_name,
            allowed_models[0],
        )
        model = allowed_models[0]

    if allowed_models and not model:
        model = allowed_models[0]

    # --- 4. Scope-specific timeout ---
    timeout = settings.ai_timeout_seconds
    if scope == "detection":
        timeout = settings.ai_detection_timeout_seconds

    return ResolvedConfig(
        provider=get_provider(provider_name),
        model=model,
        timeout_seconds=timeout,
    )
