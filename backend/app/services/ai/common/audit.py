"""AI audit - one ``audit_logs`` row per AI run, success or classified failure."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.audit import AuditLog

from .providers.base import ProviderResult

logger = logging.getLogger(__name__)

# Scope-dependent audit actions. Falls back to "AI_RUN" for unknown scopes.
SCOPE_ACTIONS: dict[str, str] = {
    "image": "AI_IMAGE_GENERATED",
    "detection": "AI_OBJECTS_DETECTED",
}

OUTCOME_OK = "OK"


def log_ai_run(
    db: Session,
    *,
    scope: str,
    context: str,
    provider_result: ProviderResult,
    prompt_text: str,
    outcome: str = OUTCOME_OK,
    parsed_output: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Add an audit row to *db* (the caller commits).

    * ``outcome`` - ``"OK"`` or the failure kind (e.g. ``"RequestBlocked"``).
    * Prompt and response are hashed; raw copies are only stored when
      ``AI_DEBUG_STORE_RAW=true``.
    """
    settings = get_settings()

    response_json = provider_result.response.model_dump_json(by_alias=True, exclude_none=True)

    metadata: dict[str, Any] = {
        "prompt_hash": hashlib.sha256(prompt_text.encode()).hexdigest(),
        "response_hash": hashlib.sha256(response_json.encode()).hexdigest(),
    }

    if settings.ai_debug_store_raw:
        metadata["prompt_raw"] = prompt_text
        metadata["response_raw"] = response_json

    log = AuditLog(
        action=SCOPE_ACTIONS.get(scope, "AI_RUN"),
        scope=scope,
        context=context,
        outcome=outcome,
        provider=provider_result.provider,
        model=provider_result.model,
        latency_ms=provider_result.latency_ms,
        ip_address=ip_address,
        user_agent=user_agent,
        new_value=parsed_output,
        audit_meta=metadata,
    )
    db.add(log)
    logger.debug("Audit %s outcome=%s context=%s", log.action, outcome, context)
    return log
