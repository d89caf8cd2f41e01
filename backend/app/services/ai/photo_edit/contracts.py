"""Photo-edit scope contracts - detection results, hotspots, upscale targets."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Hotspot(BaseModel):
    """Pixel coordinate marking the focus point of a localized edit."""

    model_config = ConfigDict(frozen=True)

    x: int = Field(ge=0)
    y: int = Field(ge=0)


class BoundingBox(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def center(self) -> Hotspot:
        return Hotspot(
            x=max(0, round((self.x1 + self.x2) / 2)),
            y=max(0, round((self.y1 + self.y2) / 2)),
        )


class DetectedObject(BaseModel):
    """One object found by the detection call."""

    model_config = ConfigDict(frozen=True)

    label: str
    box: BoundingBox

    @field_validator("label")
    @classmethod
    def label_not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "Detected object label must not be empty"
            raise ValueError(msg)
        return v


class Resolution(str, enum.Enum):
    HD = "HD"
    FHD = "FHD"
    UHD_4K = "4K"
    UHD_8K = "8K"


@dataclass(frozen=True)
class ResolutionSpec:
    name: str
    pixels: int


RESOLUTION_CONFIG: dict[Resolution, ResolutionSpec] = {
    Resolution.HD: ResolutionSpec("HD resolution (1280 x 720 pixels)", 1280),
    Resolution.FHD: ResolutionSpec("Full HD resolution (1920 x 1080 pixels)", 1920),
    Resolution.UHD_4K: ResolutionSpec("4K UHD resolution (3840 x 2160 pixels)", 3840),
    Resolution.UHD_8K: ResolutionSpec("8K UHD resolution (7680 x 4320 pixels)", 7680),
}

# JSON schema sent with the detection request so the model answers with a bare array.
DETECTION_RESPONSE_SCHEMA: dict = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "label": {
                "type": "STRING",
                "description": 'A short, descriptive label for the detected object (e.g., "cat", "red car", "tree").',
            },
            "box": {
                "type": "OBJECT",
                "properties": {
                    "x1": {"type": "NUMBER", "description": "The x-coordinate of the top-left corner of the bounding box."},
                    "y1": {"type": "NUMBER", "description": "The y-coordinate of the top-left corner of the bounding box."},
                    "x2": {"type": "NUMBER", "description": "The x-coordinate of the bottom-right corner of the bounding box."},
                    "y2": {"type": "NUMBER", "description": "The y-coordinate of the bottom-right corner of the bounding box."},
                },
                "required": ["x1", "y1", "x2", "y2"],
            },
        },
        "required": ["label", "box"],
    },
}
