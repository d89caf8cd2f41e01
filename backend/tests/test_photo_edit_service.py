"""Tests for the photo-edit service operations with a scripted provider."""

import asyncio
import os
import unittest
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.image_processing import ImagePayload
from app.models.audit import AuditLog, Base
from app.services.ai.common.contracts import ServiceResponse
from app.services.ai.common.errors import (
    AbnormalFinishError,
    MalformedDetectionPayloadError,
    RequestBlockedError,
)
from app.services.ai.common.providers.base import BaseProvider, ProviderResult
from app.services.ai.common.router import ResolvedConfig
from app.services.ai.photo_edit import service
from app.services.ai.photo_edit.contracts import BoundingBox, DetectedObject, Hotspot, Resolution

IMAGE = ImagePayload(mime_type="image/png", data="UE5H", width=10, height=10)
OTHER = ImagePayload(mime_type="image/jpeg", data="SlBH", width=10, height=10)

IMAGE_OK = {
    "candidates": [
        {"content": {"parts": [{"inlineData": {"mimeType": "image/png", "data": "T1VU"}}]}, "finishReason": "STOP"}
    ]
}


class ScriptedProvider(BaseProvider):
    """Returns a fixed payload and records every call."""

    name = "scripted"

    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    async def generate_content(self, parts, **kwargs):
        self.calls.append({"parts": list(parts), **kwargs})
        return ProviderResult(
            response=ServiceResponse.model_validate(self.payload),
            model=kwargs.get("model") or "scripted-v1",
            provider=self.name,
            latency_ms=1.5,
        )


class _ServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def tearDown(self):
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _with_provider(self, payload):
        provider = ScriptedProvider(payload)
        config = ResolvedConfig(provider=provider, model="scripted-image", timeout_seconds=5.0)
        patcher = patch("app.services.ai.common.router.resolve", return_value=config)
        self.resolve = patcher.start()
        self.addCleanup(patcher.stop)
        return provider

    def _prompt(self, provider, call=0):
        return provider.calls[call]["parts"][-1].text


class ImageOperationTests(_ServiceTestCase):
    def test_edit_sends_image_then_prompt(self):
        provider = self._with_provider(IMAGE_OK)
        result = asyncio.run(service.generate_edited_image(IMAGE, "remove the lamp", Hotspot(x=12, y=34)))

        self.assertEqual(result.image_data_url, "data:image/png;base64,T1VU")
        self.assertEqual(result.context, "edit")
        self.resolve.assert_called_once_with("image", override_provider=None, override_model=None)

        call = provider.calls[0]
        self.assertEqual(call["response_modalities"], ["IMAGE"])
        self.assertEqual(call["model"], "scripted-image")
        self.assertEqual(call["parts"][0].inline_data.data, "UE5H")
        prompt = self._prompt(provider)
        self.assertIn('User Request: "remove the lamp"', prompt)
        self.assertIn("(x: 12, y: 34)", prompt)

    def test_filter_and_adjust_prompts(self):
        provider = self._with_provider(IMAGE_OK)
        asyncio.run(service.generate_filtered_image(IMAGE, "sepia"))
        asyncio.run(service.generate_adjusted_image(IMAGE, "brighter"))
        self.assertIn('Filter Request: "sepia"', self._prompt(provider, 0))
        self.assertIn('User Request: "brighter"', self._prompt(provider, 1))
        self.assertIn("global adjustment", self._prompt(provider, 1))

    def test_style_preset_uses_catalogue_prompt(self):
        provider = self._with_provider(IMAGE_OK)
        result = asyncio.run(service.apply_style_preset(IMAGE, "neon noir"))
        self.assertEqual(result.context, "filter")
        self.assertIn("neon noir style", self._prompt(provider))

    def test_unknown_style_preset(self):
        self._with_provider(IMAGE_OK)
        with self.assertRaises(KeyError):
            asyncio.run(service.apply_style_preset(IMAGE, "Watercolor"))

    def test_composite_sends_both_images_in_order(self):
        provider = self._with_provider(IMAGE_OK)
        result = asyncio.run(service.composite_with_background(IMAGE, OTHER))
        parts = provider.calls[0]["parts"]
        self.assertEqual([p.inline_data.mime_type for p in parts[:2]], ["image/png", "image/jpeg"])
        self.assertEqual(result.context, "composition")

    def test_background_preset_and_description(self):
        provider = self._with_provider(IMAGE_OK)
        asyncio.run(service.generate_background(IMAGE, preset_name="Galaxy"))
        asyncio.run(service.generate_background(IMAGE, description="  a misty harbour  "))
        self.assertIn("deep space black to cosmic purple", self._prompt(provider, 0))
        self.assertIn('"a misty harbour"', self._prompt(provider, 1))

    def test_background_requires_description(self):
        self._with_provider(IMAGE_OK)
        with self.assertRaises(ValueError):
            asyncio.run(service.generate_background(IMAGE, description="   "))

    def test_object_edit_targets_box_centre(self):
        provider = self._with_provider(IMAGE_OK)
        detected = DetectedObject(label="red car", box=BoundingBox(x1=10, y1=20, x2=30, y2=60))
        asyncio.run(service.edit_detected_object(IMAGE, detected, "make it blue"))
        prompt = self._prompt(provider)
        self.assertIn("(x: 20, y: 40)", prompt)
        self.assertIn("For the red car: make it blue", prompt)

    def test_upscale_context_and_pixels(self):
        provider = self._with_provider({"candidates": [{"finishReason": "SAFETY"}]})
        with self.assertRaises(AbnormalFinishError) as ctx:
            asyncio.run(service.upscale_image(IMAGE, Resolution.UHD_4K))
        self.assertIn("upscale to 4K", ctx.exception.message)
        self.assertIn("exactly 3840 pixels", self._prompt(provider))

    def test_overrides_are_forwarded(self):
        self._with_provider(IMAGE_OK)
        options = service.RunOptions(override_provider="mock", override_model="m")
        asyncio.run(service.generate_filtered_image(IMAGE, "x", options=options))
        self.resolve.assert_called_once_with("image", override_provider="mock", override_model="m")


class AuditTrailTests(_ServiceTestCase):
    def test_success_writes_audit_row(self):
        self._with_provider(IMAGE_OK)
        db = self.SessionLocal()
        try:
            options = service.RunOptions(ip_address="10.0.0.7", user_agent="pytest")
            asyncio.run(service.generate_filtered_image(IMAGE, "sepia", db, options))
            db.commit()

            logs = db.query(AuditLog).all()
            self.assertEqual(len(logs), 1)
            log = logs[0]
            self.assertEqual(log.action, "AI_IMAGE_GENERATED")
            self.assertEqual(log.outcome, "OK")
            self.assertEqual(log.context, "filter")
            self.assertEqual(log.provider, "scripted")
            self.assertEqual(log.ip_address, "10.0.0.7")
            self.assertEqual(log.new_value, {"mime_type": "image/png"})
            self.assertIn("prompt_hash", log.audit_meta)
            self.assertNotIn("prompt_raw", log.audit_meta)
            self.assertEqual(set(log.audit_meta), {"prompt_hash", "response_hash"})
        finally:
            db.close()

    @patch.dict(os.environ, {"AI_DEBUG_STORE_RAW": "true"}, clear=False)
    def test_debug_store_raw_keeps_prompt_and_response(self):
        self._with_provider(IMAGE_OK)
        db = self.SessionLocal()
        try:
            asyncio.run(service.generate_filtered_image(IMAGE, "sepia", db))
            db.commit()

            meta = db.query(AuditLog).one().audit_meta
            self.assertEqual(set(meta), {"prompt_hash", "response_hash", "prompt_raw", "response_raw"})
            self.assertIn('Filter Request: "sepia"', meta["prompt_raw"])
            self.assertIn('"finishReason":"STOP"', meta["response_raw"])
        finally:
            db.close()

    def test_failure_is_audited_then_raised(self):
        self._with_provider({"promptFeedback": {"blockReason": "SAFETY"}})
        db = self.SessionLocal()
        try:
            with self.assertRaises(RequestBlockedError):
                asyncio.run(service.generate_edited_image(IMAGE, "x", Hotspot(x=0, y=0), db))
            db.commit()
            log = db.query(AuditLog).one()
            self.assertEqual(log.outcome, "RequestBlocked")
            self.assertIsNone(log.new_value)
        finally:
            db.close()


class DetectionTests(_ServiceTestCase):
    def test_detect_objects(self):
        payload = {
            "candidates": [
                {
                    "content": {
                        "parts": [
                            {"text": '[{"label":"cat","box":{"x1":0,"y1":0,"x2":10,"y2":10}},'
                             '{"label":"sofa","box":{"x1":5,"y1":5,"x2":50,"y2":40}}]'}
                        ]
                    },
                    "finishReason": "STOP",
                }
            ]
        }
        provider = self._with_provider(payload)
        db = self.SessionLocal()
        try:
            result = asyncio.run(service.detect_objects(IMAGE, db))
            db.commit()

            self.assertEqual([o.label for o in result.objects], ["cat", "sofa"])
            self.resolve.assert_called_once_with("detection", override_provider=None, override_model=None)
            call = provider.calls[0]
            self.assertEqual(call["response_mime_type"], "application/json")
            self.assertEqual(call["response_schema"]["type"], "ARRAY")

            log = db.query(AuditLog).one()
            self.assertEqual(log.action, "AI_OBJECTS_DETECTED")
            self.assertEqual(log.new_value, {"count": 2, "labels": ["cat", "sofa"]})
        finally:
            db.close()

    def test_detect_empty_text_is_empty_list(self):
        self._with_provider({"candidates": [{"content": {"parts": [{"text": " "}]}, "finishReason": "STOP"}]})
        result = asyncio.run(service.detect_objects(IMAGE))
        self.assertEqual(result.objects, [])

    def test_detect_malformed(self):
        self._with_provider({"text": "cat at the left"})
        with self.assertRaises(MalformedDetectionPayloadError):
            asyncio.run(service.detect_objects(IMAGE))
