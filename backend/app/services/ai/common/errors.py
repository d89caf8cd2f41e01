"""Failure taxonomy for AI-backed image operations.

None of these are retried internally; the caller surfaces ``message`` and lets
the user try again with a different instruction.
"""

from __future__ import annotations

from typing import Optional


class AIResponseError(Exception):
    """Base class: the service answered, but not with something usable."""

    kind: str = "AIResponseError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RequestBlockedError(AIResponseError):
    kind = "RequestBlocked"

    def __init__(self, block_reason: str, block_reason_message: Optional[str] = None) -> None:
        self.block_reason = block_reason
        self.block_reason_message = block_reason_message
        super().__init__(f"Request was blocked. Reason: {block_reason}. {block_reason_message or ''}")


class AbnormalFinishError(AIResponseError):
    kind = "AbnormalFinish"

    def __init__(self, context: str, finish_reason: str) -> None:
        self.context = context
        self.finish_reason = finish_reason
        super().__init__(
            f"Image generation for {context} stopped unexpectedly. "
            f"Reason: {finish_reason}. This often relates to safety settings."
        )


NO_IMAGE_GUIDANCE = (
    "This can happen due to safety filters or if the request is too complex. "
    "Please try rephrasing your prompt to be more direct."
)


class NoImageReturnedError(AIResponseError):
    kind = "NoImageReturned"

    def __init__(self, context: str, text: Optional[str] = None) -> None:
        self.context = context
        self.text = text
        detail = f'The model responded with text: "{text}"' if text else NO_IMAGE_GUIDANCE
        super().__init__(f"The AI model did not return an image for the {context}. {detail}")


class MalformedDetectionPayloadError(AIResponseError):
    kind = "MalformedDetectionPayload"

    def __init__(self, raw_text: Optional[str] = None) -> None:
        self.raw_text = raw_text
        super().__init__("The AI model returned an invalid format for object detection. Please try again.")


class ImagePayloadError(ValueError):
    """An uploaded file or data URL could not be turned into an inline image part."""
