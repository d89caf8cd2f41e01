"""Photo-edit endpoints - each one wraps a single AI call.

Classified model failures surface as 422 ``{"error": kind, "detail": message}``
via the exception handlers in ``app.main``.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Optional, TypeVar

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.dependencies import get_optional_db
from app.core.image_processing import ImagePayload, encode_image
from app.services.ai.photo_edit import service
from app.services.ai.photo_edit.contracts import (
    RESOLUTION_CONFIG,
    BoundingBox,
    DetectedObject,
    Hotspot,
    Resolution,
)
from app.services.ai.photo_edit.presets import (
    BACKGROUND_PRESETS,
    STYLE_PRESETS,
    get_background_preset,
    get_style_preset,
)
from app.utils.rate_limit import get_client_ip, get_user_agent

router = APIRouter()

T = TypeVar("T")


class PresetResponse(BaseModel):
    name: str
    prompt: str


class ResolutionResponse(BaseModel):
    key: str
    name: str
    pixels: int


class ImageResultResponse(BaseModel):
    image: str
    context: str
    provider: str
    model: str
    latency_ms: float


class DetectResponse(BaseModel):
    objects: list[DetectedObject]
    provider: str
    model: str
    latency_ms: float


# --- helpers ---


async def _read_image(upload: UploadFile) -> ImagePayload:
    limit = get_settings().ai_max_upload_bytes
    if upload.size is not None and upload.size > limit:
        raise HTTPException(413, f"Image exceeds {limit} bytes")
    # Never buffer more than one byte past the limit.
    content = await upload.read(limit + 1)
    if len(content) > limit:
        raise HTTPException(413, f"Image exceeds {limit} bytes")
    return encode_image(content, filename=upload.filename, content_type=upload.content_type)


def _options(
    request: Request,
    override_provider: Optional[str],
    override_model: Optional[str],
) -> service.RunOptions:
    return service.RunOptions(
        override_provider=override_provider,
        override_model=override_model,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
    )


async def _committing(db: Optional[Session], call: Awaitable[T]) -> T:
    """Await *call*; commit the audit rows it added whether it succeeded or not."""
    try:
        return await call
    finally:
        if db is not None:
            db.commit()


def _image_response(result: service.PhotoEditResult) -> ImageResultResponse:
    return ImageResultResponse(
        image=result.image_data_url,
        context=result.context,
        provider=result.provider_result.provider,
        model=result.provider_result.model,
        latency_ms=result.provider_result.latency_ms,
    )


# --- catalogue ---


@router.get("/presets/styles", response_model=list[PresetResponse])
def list_style_presets():
    return [PresetResponse(**p.to_dict()) for p in STYLE_PRESETS]


@router.get("/presets/backgrounds", response_model=list[PresetResponse])
def list_background_presets():
    return [PresetResponse(**p.to_dict()) for p in BACKGROUND_PRESETS]


@router.get("/resolutions", response_model=list[ResolutionResponse])
def list_resolutions():
    return [
        ResolutionResponse(key=res.value, name=spec.name, pixels=spec.pixels)
        for res, spec in RESOLUTION_CONFIG.items()
    ]


# --- image operations ---


@router.post("/images/edit", response_model=ImageResultResponse, summary="Localized edit at a hotspot")
async def edit_image_endpoint(
    request: Request,
    image: UploadFile = File(...),
    prompt: str = Form(..., min_length=1, max_length=2000),
    x: int = Form(..., ge=0),
    y: int = Form(..., ge=0),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.generate_edited_image(
            payload,
            prompt,
            Hotspot(x=x, y=y),
            db,
            _options(request, override_provider, override_model),
        ),
    )
    return _image_response(result)


@router.post("/images/filter", response_model=ImageResultResponse, summary="Apply a stylistic filter")
async def filter_image_endpoint(
    request: Request,
    image: UploadFile = File(...),
    prompt: str = Form(..., min_length=1, max_length=2000),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.generate_filtered_image(payload, prompt, db, _options(request, override_provider, override_model)),
    )
    return _image_response(result)


@router.post("/images/adjust", response_model=ImageResultResponse, summary="Global photo adjustment")
async def adjust_image_endpoint(
    request: Request,
    image: UploadFile = File(...),
    prompt: str = Form(..., min_length=1, max_length=2000),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.generate_adjusted_image(payload, prompt, db, _options(request, override_provider, override_model)),
    )
    return _image_response(result)


@router.post("/images/style", response_model=ImageResultResponse, summary="Apply a catalogue style preset")
async def style_image_endpoint(
    request: Request,
    image: UploadFile = File(...),
    style: str = Form(..., min_length=1),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    try:
        get_style_preset(style)
    except KeyError as exc:
        raise HTTPException(404, exc.args[0]) from exc
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.apply_style_preset(payload, style, db, _options(request, override_provider, override_model)),
    )
    return _image_response(result)


@router.post("/images/composite", response_model=ImageResultResponse, summary="Composite subject onto a new background")
async def composite_image_endpoint(
    request: Request,
    foreground: UploadFile = File(...),
    background: UploadFile = File(...),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    fg = await _read_image(foreground)
    bg = await _read_image(background)
    result = await _committing(
        db,
        service.composite_with_background(fg, bg, db, _options(request, override_provider, override_model)),
    )
    return _image_response(result)


@router.post("/images/background", response_model=ImageResultResponse, summary="Generate a new background")
async def background_image_endpoint(
    request: Request,
    image: UploadFile = File(...),
    prompt: Optional[str] = Form(None, max_length=2000),
    preset: Optional[str] = Form(None),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    if not preset and not (prompt and prompt.strip()):
        raise HTTPException(400, "Provide a background prompt or preset")
    if preset:
        try:
            get_background_preset(preset)
        except KeyError as exc:
            raise HTTPException(404, exc.args[0]) from exc
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.generate_background(
            payload,
            description=prompt,
            preset_name=preset,
            db=db,
            options=_options(request, override_provider, override_model),
        ),
    )
    return _image_response(result)


@router.post("/images/detect", response_model=DetectResponse, summary="Detect objects with bounding boxes")
async def detect_objects_endpoint(
    request: Request,
    image: UploadFile = File(...),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.detect_objects(payload, db, _options(request, override_provider, override_model)),
    )
    return DetectResponse(
        objects=result.objects,
        provider=result.provider_result.provider,
        model=result.provider_result.model,
        latency_ms=result.provider_result.latency_ms,
    )


@router.post("/images/objects/edit", response_model=ImageResultResponse, summary="Edit a detected object")
async def edit_object_endpoint(
    request: Request,
    image: UploadFile = File(...),
    label: str = Form(..., min_length=1),
    x1: float = Form(...),
    y1: float = Form(...),
    x2: float = Form(...),
    y2: float = Form(...),
    prompt: str = Form(..., min_length=1, max_length=2000),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    try:
        detected = DetectedObject(label=label, box=BoundingBox(x1=x1, y1=y1, x2=x2, y2=y2))
    except ValidationError as exc:
        raise HTTPException(422, "Invalid detected object") from exc
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.edit_detected_object(
            payload, detected, prompt, db, _options(request, override_provider, override_model)
        ),
    )
    return _image_response(result)


@router.post("/images/upscale", response_model=ImageResultResponse, summary="Upscale to a target resolution")
async def upscale_image_endpoint(
    request: Request,
    image: UploadFile = File(...),
    resolution: Resolution = Form(...),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Optional[Session] = Depends(get_optional_db),
):
    payload = await _read_image(image)
    result = await _committing(
        db,
        service.upscale_image(payload, resolution, db, _options(request, override_provider, override_model)),
    )
    return _image_response(result)
