"""Tests for src.integrations.health_devices."""

from datetime import datetime

import pytest

from src.core.errors import InvalidInput
from src.integrations.health_devices import MASKED, display_name, link_device, normalize_service


class TestNormalizeService:
    @pytest.mark.parametrize("raw, key", [
        ("whoop", "whoop"), ("OURA", "oura"), ("Apple Health", "apple_health"),
        ("apple-health", "apple_health"),
    ])
    def test_known(self, raw, key):
        assert normalize_service(raw) == key

    def test_unknown(self):
        with pytest.raises(InvalidInput, match="Unsupported integration"):
            normalize_service("garmin")


class TestLinkDevice:
    def test_masks_and_timestamps(self):
        key, link = link_device("whoop", "tok", datetime(2026, 3, 10, 8, 0))
        assert key == "whoop"
        assert link.credentials == MASKED
        assert link.enabled is True
        assert link.synced_at == "2026-03-10T08:00:00"

    def test_empty_credentials(self):
        with pytest.raises(InvalidInput):
            link_device("whoop", "  ", datetime(2026, 3, 10))

    def test_display_name(self):
        assert display_name("apple_health") == "Apple Health"
