"""Photo-edit operations: one generation call each, interpreted and audited.

Every image operation differs only in the prompt and the input images; the
shared path is ``_run_image_operation``. No operation retries; a classified
failure (``AIResponseError``) is audited and re-raised for the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.core.image_processing import ImagePayload

from ..common import router as ai_router
from ..common.audit import log_ai_run
from ..common.contracts import Part
from ..common.errors import AIResponseError
from ..common.interpreter import interpret, parse_detection_response
from ..common.providers.base import ProviderResult
from . import prompts
from .contracts import (
    DETECTION_RESPONSE_SCHEMA,
    RESOLUTION_CONFIG,
    DetectedObject,
    Hotspot,
    Resolution,
)
from .presets import get_background_preset, get_style_preset

logger = logging.getLogger(__name__)

IMAGE_MODALITIES = ["IMAGE"]


@dataclass(frozen=True)
class RunOptions:
    """Per-request knobs: provider overrides and caller info for the audit row."""

    override_provider: Optional[str] = None
    override_model: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class PhotoEditResult:
    """Result of an image-producing operation."""

    image_data_url: str
    context: str
    provider_result: ProviderResult


@dataclass
class DetectionResult:
    objects: list[DetectedObject]
    provider_result: ProviderResult


def _audit(
    db: Optional[Session],
    options: RunOptions,
    *,
    scope: str,
    context: str,
    provider_result: ProviderResult,
    prompt: str,
    outcome: str = "OK",
    parsed_output: Optional[dict] = None,
) -> None:
    if db is None:
        return
    log_ai_run(
        db,
        scope=scope,
        context=context,
        provider_result=provider_result,
        prompt_text=prompt,
        outcome=outcome,
        parsed_output=parsed_output,
        ip_address=options.ip_address,
        user_agent=options.user_agent,
    )


async def _run_image_operation(
    images: Sequence[ImagePayload],
    prompt: str,
    context: str,
    db: Optional[Session],
    options: Optional[RunOptions],
) -> PhotoEditResult:
    options = options or RunOptions()
    config = ai_router.resolve(
        "image",
        override_provider=options.override_provider,
        override_model=options.override_model,
    )

    parts = [image.to_part() for image in images]
    parts.append(Part.from_text(prompt))

    logger.info("Sending %d image(s) and %s prompt to %s", len(images), context, config.provider.name)
    result = await config.provider.generate_content(
        parts,
        model=config.model,
        response_modalities=IMAGE_MODALITIES,
        timeout_seconds=config.timeout_seconds,
    )
    logger.info("Received response from %s for %s in %.1f ms", result.provider, context, result.latency_ms)

    try:
        data_url = interpret(result.response, context)
    except AIResponseError as exc:
        _audit(db, options, scope="image", context=context, provider_result=result, prompt=prompt, outcome=exc.kind)
        raise

    mime_type = data_url[len("data:") : data_url.index(";")]
    _audit(
        db,
        options,
        scope="image",
        context=context,
        provider_result=result,
        prompt=prompt,
        parsed_output={"mime_type": mime_type},
    )
    return PhotoEditResult(image_data_url=data_url, context=context, provider_result=result)


async def generate_edited_image(
    image: ImagePayload,
    user_prompt: str,
    hotspot: Hotspot,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    """Localized edit around *hotspot*."""
    logger.info("Starting generative edit at: (%d, %d)", hotspot.x, hotspot.y)
    return await _run_image_operation([image], prompts.edit_prompt(user_prompt, hotspot), "edit", db, options)


async def edit_detected_object(
    image: ImagePayload,
    detected: DetectedObject,
    user_prompt: str,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    """Localized edit targeting a detected object; the hotspot is its box centre."""
    hotspot = detected.box.center
    prompt = prompts.object_edit_prompt(user_prompt, detected.label, hotspot)
    return await _run_image_operation([image], prompt, "edit", db, options)


async def generate_filtered_image(
    image: ImagePayload,
    filter_request: str,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    logger.info("Starting filter generation: %s", filter_request)
    return await _run_image_operation([image], prompts.filter_prompt(filter_request), "filter", db, options)


async def apply_style_preset(
    image: ImagePayload,
    style_name: str,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    """Filter with a catalogue style. Raises ``KeyError`` for an unknown name."""
    preset = get_style_preset(style_name)
    return await generate_filtered_image(image, preset.prompt, db, options)


async def generate_adjusted_image(
    image: ImagePayload,
    adjustment_request: str,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    logger.info("Starting global adjustment generation: %s", adjustment_request)
    return await _run_image_operation(
        [image], prompts.adjustment_prompt(adjustment_request), "adjustment", db, options
    )


async def composite_with_background(
    foreground: ImagePayload,
    background: ImagePayload,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    """Place the foreground's main subject onto *background*."""
    logger.info("Starting background composition...")
    return await _run_image_operation([foreground, background], prompts.COMPOSITE_PROMPT, "composition", db, options)


async def generate_background(
    image: ImagePayload,
    description: Optional[str] = None,
    preset_name: Optional[str] = None,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    """Replace the background with a generated one (preset wins over *description*)."""
    if preset_name:
        description = get_background_preset(preset_name).prompt
    if not description or not description.strip():
        raise ValueError("A background description or preset is required")
    return await _run_image_operation(
        [image], prompts.background_prompt(description.strip()), "background", db, options
    )


async def upscale_image(
    image: ImagePayload,
    resolution: Resolution,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> PhotoEditResult:
    spec = RESOLUTION_CONFIG[resolution]
    logger.info("Starting upscale to %s (%dpx)...", resolution.value, spec.pixels)
    return await _run_image_operation(
        [image], prompts.upscale_prompt(spec), f"upscale to {resolution.value}", db, options
    )


async def detect_objects(
    image: ImagePayload,
    db: Optional[Session] = None,
    options: Optional[RunOptions] = None,
) -> DetectionResult:
    """Ask the model for labelled bounding boxes. An empty answer is ``[]``."""
    options = options or RunOptions()
    config = ai_router.resolve(
        "detection",
        override_provider=options.override_provider,
        override_model=options.override_model,
    )

    logger.info("Starting object detection with %s...", config.provider.name)
    result = await config.provider.generate_content(
        [image.to_part(), Part.from_text(prompts.DETECTION_PROMPT)],
        model=config.model,
        response_mime_type="application/json",
        response_schema=DETECTION_RESPONSE_SCHEMA,
        timeout_seconds=config.timeout_seconds,
    )

    context = "object detection"
    try:
        objects = parse_detection_response(result.response)
    except AIResponseError as exc:
        _audit(
            db,
            options,
            scope="detection",
            context=context,
            provider_result=result,
            prompt=prompts.DETECTION_PROMPT,
            outcome=exc.kind,
        )
        raise

    _audit(
        db,
        options,
        scope="detection",
        context=context,
        provider_result=result,
        prompt=prompts.DETECTION_PROMPT,
        parsed_output={"count": len(objects), "labels": [o.label for o in objects]},
    )
    return DetectionResult(objects=objects, provider_result=result)
