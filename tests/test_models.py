"""Tests for data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dynago.models import ProviderKind, RecordType, RecordUpdate


class TestProviderKind:
    """Tests for ProviderKind enum."""

    def test_provider_values(self):
        assert ProviderKind.CLOUDFLARE == "cloudflare"
        assert ProviderKind.ROUTE53 == "route53"

    def test_provider_from_string(self):
        assert ProviderKind("cloudflare") == ProviderKind.CLOUDFLARE
        assert ProviderKind("route53") == ProviderKind.ROUTE53

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="digitalocean"):
            ProviderKind("digitalocean")


class TestRecordType:
    """Tests for RecordType enum."""

    def test_record_type_values(self):
        assert RecordType.A == "A"
        assert RecordType.AAAA == "AAAA"


class TestRecordUpdate:
    """Tests for RecordUpdate model."""

    def test_minimal_update(self):
        update = RecordUpdate(
            provider="cloudflare",
            record_name="home.example.com",
            record_type=RecordType.A,
            value="1.2.3.4",
        )
        assert update.record_id is None
        assert update.change_id is None

    def test_record_type_from_string(self):
        update = RecordUpdate(
            provider="route53",
            record_name="home.example.com",
            record_type="AAAA",
            value="2001:db8::1",
            change_id="/change/C123",
        )
        assert update.record_type is RecordType.AAAA
        assert update.change_id == "/change/C123"

    def test_invalid_record_type(self):
        with pytest.raises(ValidationError):
            RecordUpdate(
                provider="route53",
                record_name="home.example.com",
                record_type="CNAME",
                value="example.net",
            )
