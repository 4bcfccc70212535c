"""Health-device integrations (WHOOP, Oura, Apple Health).

There is no live device sync. Linking only records that a service is
connected; the credential itself is never persisted, a masked marker is
stored in its place.
"""

from __future__ import annotations

import logging
from datetime import datetime

from src.core.errors import InvalidInput
from src.data.models import IntegrationLink

logger = logging.getLogger(__name__)

MASKED = "***masked***"

SUPPORTED_SERVICES: dict[str, str] = {
    "whoop": "WHOOP",
    "oura": "Oura Ring",
    "apple_health": "Apple Health",
}


def normalize_service(service: str) -> str:
    key = str(service).strip().lower().replace(" ", "_").replace("-", "_")
    if key not in SUPPORTED_SERVICES:
        supported = ", ".join(sorted(SUPPORTED_SERVICES))
        raise InvalidInput(f"Unsupported integration {service!r}. Use: {supported}")
    return key


def link_device(service: str, credentials: str, now: datetime) -> tuple[str, IntegrationLink]:
    """Validate a connect request and build the link record to store.

    Returns (normalized service key, link).
    """
    key = normalize_service(service)
    if not str(credentials or "").strip():
        raise InvalidInput(f"Credentials for {SUPPORTED_SERVICES[key]} must not be empty")

    link = IntegrationLink(
        enabled=True,
        credentials=MASKED,
        synced_at=now.isoformat(timespec="seconds"),
    )
    logger.info("Health integration linked: %s", key)
    return key, link


def display_name(service_key: str) -> str:
    return SUPPORTED_SERVICES.get(service_key, service_key)
