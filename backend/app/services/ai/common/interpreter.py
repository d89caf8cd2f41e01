"""Turns raw generation-service responses into a data URL or a typed failure.

Every AI-backed image operation funnels its response through ``interpret``;
object detection goes through ``parse_detection_response``. Both are pure
functions of their inputs apart from diagnostic logging.

Classification order (first match wins):
  1. prompt blocked          -> ``RequestBlockedError``
  2. inline image in parts   -> data URL
  3. finish reason != STOP   -> ``AbnormalFinishError``
  4. non-blank text          -> ``NoImageReturnedError`` quoting the text
  5. nothing usable          -> ``NoImageReturnedError`` with guidance
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from ..photo_edit.contracts import DetectedObject
from .contracts import STOP_FINISH_REASON, ServiceResponse
from .errors import (
    AbnormalFinishError,
    MalformedDetectionPayloadError,
    NoImageReturnedError,
    RequestBlockedError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Blocked:
    reason: str
    message: Optional[str] = None


@dataclass(frozen=True)
class ImageFound:
    mime_type: str
    data: str

    @property
    def data_url(self) -> str:
        return to_data_url(self.mime_type, self.data)


@dataclass(frozen=True)
class AbnormalStop:
    finish_reason: str


@dataclass(frozen=True)
class TextOnly:
    text: str


@dataclass(frozen=True)
class Empty:
    pass


Outcome = Union[Blocked, ImageFound, AbnormalStop, TextOnly, Empty]


def to_data_url(mime_type: str, data: str) -> str:
    return f"data:{mime_type};base64,{data}"


def _coerce(response: ServiceResponse | dict[str, Any]) -> ServiceResponse:
    if isinstance(response, ServiceResponse):
        return response
    return ServiceResponse.model_validate(response)


def _blocked(response: ServiceResponse) -> Optional[Blocked]:
    feedback = response.prompt_feedback
    if feedback is not None and feedback.block_reason:
        return Blocked(reason=feedback.block_reason, message=feedback.block_reason_message)
    return None


def classify(response: ServiceResponse | dict[str, Any]) -> Outcome:
    """Classify *response* without raising; see module docstring for the order."""
    response = _coerce(response)

    blocked = _blocked(response)
    if blocked is not None:
        return blocked

    for part in response.first_candidate_parts:
        if part.inline_data is not None and part.inline_data.data:
            return ImageFound(mime_type=part.inline_data.mime_type, data=part.inline_data.data)

    candidate = response.first_candidate
    finish_reason = candidate.finish_reason if candidate is not None else None
    if finish_reason and finish_reason != STOP_FINISH_REASON:
        return AbnormalStop(finish_reason=finish_reason)

    text = (response.response_text or "").strip()
    if text:
        return TextOnly(text=text)
    return Empty()


def interpret(response: ServiceResponse | dict[str, Any], context: str) -> str:
    """Return the image as a data URL or raise an ``AIResponseError`` subclass.

    *context* (e.g. ``"edit"``, ``"upscale to 4K"``) only shapes the messages.
    """
    outcome = classify(response)

    match outcome:
        case Blocked(reason=reason, message=message):
            error = RequestBlockedError(reason, message)
            logger.error("%s (context=%s)", error.message, context)
            raise error
        case ImageFound(mime_type=mime_type):
            logger.info("Received image data (%s) for %s", mime_type, context)
            return outcome.data_url
        case AbnormalStop(finish_reason=finish_reason):
            error = AbnormalFinishError(context, finish_reason)
            logger.error(error.message)
            raise error
        case TextOnly(text=text):
            logger.error("Model response did not contain an image part for %s; text=%r", context, text)
            raise NoImageReturnedError(context, text)
        case _:
            logger.error("Model response did not contain an image part for %s", context)
            raise NoImageReturnedError(context)


def parse_detection_response(response: ServiceResponse | dict[str, Any]) -> list[DetectedObject]:
    """Parse the detection JSON array. Empty text means nothing was found.

    Every element must validate as ``DetectedObject``; one bad element rejects
    the whole payload rather than being dropped.
    """
    response = _coerce(response)

    blocked = _blocked(response)
    if blocked is not None:
        error = RequestBlockedError(blocked.reason, blocked.message)
        logger.error("%s (context=object detection)", error.message)
        raise error

    raw_text = response.response_text or ""
    json_text = raw_text.strip()
    if not json_text:
        logger.warning("Object detection returned empty text response.")
        return []

    try:
        parsed = json.loads(json_text)
    except ValueError as exc:
        logger.error("Failed to parse JSON response for object detection: %s; raw=%r", exc, raw_text)
        raise MalformedDetectionPayloadError(raw_text) from exc

    if not isinstance(parsed, list):
        logger.error("Object detection JSON is not an array: %r", raw_text)
        raise MalformedDetectionPayloadError(raw_text)

    try:
        objects = [DetectedObject.model_validate(item) for item in parsed]
    except ValidationError as exc:
        logger.error("Object detection element failed validation: %s", exc)
        raise MalformedDetectionPayloadError(raw_text) from exc

    logger.info("Object detection found %d objects", len(objects))
    return objects
