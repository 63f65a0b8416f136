"""Tests for credential redaction in structured logs."""

from __future__ import annotations

from agent_autopilot.logging_config import mask_secret, redact_secrets


class TestRedactSecrets:
    def test_masks_credential_fields(self) -> None:
        event = redact_secrets(
            None,
            "info",
            {"event": "squadron.loaded", "backend_api_key": "sk-live-abcdef", "agent": "AP-Backend"},
        )

        assert event["backend_api_key"] == "****cdef"
        assert event["agent"] == "AP-Backend"

    def test_leaves_addresses_and_empty_values(self) -> None:
        event = redact_secrets(
            None,
            "info",
            {"event": "treasury.balance", "token_address": "0xtoken", "agent_key": ""},
        )

        assert event["token_address"] == "0xtoken"
        assert event["agent_key"] == ""

    def test_short_values_fully_masked(self) -> None:
        assert mask_secret("abc") == "****"
