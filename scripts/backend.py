"""Deliver normalized prompt records to the backend ingestion endpoint."""

import logging
from datetime import datetime, timezone

import requests

from scripts.config import Settings
from scripts.errors import BackendRejectedError, TransportError
from scripts.normalize import PromptRecord

logger = logging.getLogger(__name__)


def build_published_record(record: PromptRecord, created_at: datetime) -> dict:
    return {
        "title": record.title,
        "description": record.description,
        "tags": list(record.tags),
        "prompt": record.prompt,
        "useCases": list(record.use_cases),
        "example": record.example,
        "createdAt": created_at.isoformat(),
    }


def publish_record(
    settings: Settings,
    record: PromptRecord,
    *,
    now: datetime | None = None,
    session=None,
):
    """POST ``record`` with a creation timestamp. Only HTTP 200 counts as saved."""
    created_at = now or datetime.now(timezone.utc)
    payload = build_published_record(record, created_at)
    http = session or requests

    try:
        resp = http.post(
            settings.backend_api_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=settings.request_timeout,
        )
    except requests.RequestException as exc:
        raise TransportError(f"could not reach backend: {exc}") from exc

    if resp.status_code != 200:
        raise BackendRejectedError(resp.status_code, resp.text or "")

    logger.debug("Backend accepted %r (HTTP %s)", record.title, resp.status_code)
    return resp
