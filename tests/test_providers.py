"""Tests for provider base class and registry."""

from __future__ import annotations

import pytest

from dynago.config import Config, ConfigValidationError
from dynago.models import ProviderKind, RecordType, RecordUpdate
from dynago.providers.base import (
    BaseDNSProvider,
    DNSProviderRegistry,
    NoProvidersEnabledError,
    ProviderConfig,
    ProviderError,
    build_providers,
)
from dynago.providers.cloudflare import CloudFlareProvider
from dynago.providers.route53 import Route53Provider

CLOUDFLARE_SETTINGS = {
    "enabled": True,
    "api_token": "cf-token",
    "zone_id": "zone-1",
    "record_name": "home.example.com",
    "record_type": "A",
    "proxied": True,
}

ROUTE53_SETTINGS = {
    "enabled": True,
    "access_key_id": "AKIA",
    "secret_access_key": "secret",
    "hosted_zone_id": "Z123",
    "record_name": "home.example.com",
    "record_type": "AAAA",
    "region": "us-east-1",
}


class StaticProvider(BaseDNSProvider):
    """Provider stub for registry tests."""

    kind = ProviderKind.CLOUDFLARE
    config_model = ProviderConfig

    async def get_record_ip(self):
        return "1.2.3.4"

    async def update_record_ip(self, ip):
        return RecordUpdate(
            provider=self.name,
            record_name="test",
            record_type=RecordType.A,
            value=ip,
        )


class TestBaseDNSProvider:
    """Tests for BaseDNSProvider class."""

    def test_name_and_enabled(self):
        provider = StaticProvider(ProviderConfig(enabled=True))
        assert provider.name == "cloudflare"
        assert provider.enabled is True

    def test_disabled_by_default(self):
        provider = StaticProvider.from_settings({})
        assert provider.enabled is False

    def test_from_settings_invalid(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            StaticProvider.from_settings({"enabled": "maybe"})
        assert "providers.cloudflare.enabled" in str(exc_info.value)


class TestProviderSettings:
    """Tests for decoding provider settings."""

    def test_cloudflare_settings(self):
        provider = CloudFlareProvider.from_settings(CLOUDFLARE_SETTINGS)
        assert isinstance(provider, CloudFlareProvider)
        assert provider.config.zone_id == "zone-1"
        assert provider.config.record_type is RecordType.A
        assert provider.config.proxied is True

    def test_route53_settings(self):
        provider = Route53Provider.from_settings(ROUTE53_SETTINGS)
        assert isinstance(provider, Route53Provider)
        assert provider.config.hosted_zone_id == "Z123"
        assert provider.config.record_type is RecordType.AAAA
        assert provider.config.ttl == 300

    def test_enabled_requires_credentials(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            CloudFlareProvider.from_settings({"enabled": True, "zone_id": "zone-1"})
        error_msg = str(exc_info.value)
        assert "providers.cloudflare" in error_msg
        assert "api_token" in error_msg
        assert "record_name" in error_msg

    def test_error_does_not_echo_credentials(self):
        settings = {**ROUTE53_SETTINGS, "hosted_zone_id": ""}
        with pytest.raises(ConfigValidationError) as exc_info:
            Route53Provider.from_settings(settings)
        error_msg = str(exc_info.value)
        assert "hosted_zone_id" in error_msg
        assert "AKIA" not in error_msg

    def test_disabled_needs_no_credentials(self):
        provider = Route53Provider.from_settings({"enabled": False})
        assert provider.enabled is False

    def test_unsupported_record_type(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            CloudFlareProvider.from_settings({**CLOUDFLARE_SETTINGS, "record_type": "MX"})
        assert "providers.cloudflare.record_type" in str(exc_info.value)


class TestBuildProviders:
    """Tests for build_providers function."""

    def test_builds_known_providers_in_order(self):
        providers = build_providers(
            {"route53": ROUTE53_SETTINGS, "cloudflare": CLOUDFLARE_SETTINGS},
        )
        assert [p.name for p in providers] == ["cloudflare", "route53"]

    def test_ignores_unknown_providers(self):
        providers = build_providers(
            {"cloudflare": CLOUDFLARE_SETTINGS, "gandi": {"enabled": True}},
        )
        assert [p.name for p in providers] == ["cloudflare"]

    def test_includes_disabled_providers(self):
        providers = build_providers({"route53": {"enabled": False}})
        assert len(providers) == 1
        assert providers[0].enabled is False


class TestDNSProviderRegistry:
    """Tests for DNSProviderRegistry class."""

    def test_filters_disabled(self):
        enabled = StaticProvider(ProviderConfig(enabled=True))
        disabled = StaticProvider(ProviderConfig(enabled=False))
        registry = DNSProviderRegistry([disabled, enabled])
        assert registry.providers == (enabled,)
        assert len(registry) == 1
        assert list(registry) == [enabled]

    def test_empty_raises(self):
        with pytest.raises(NoProvidersEnabledError):
            DNSProviderRegistry([])

    def test_all_disabled_raises(self):
        with pytest.raises(ProviderError, match="No DNS providers enabled"):
            DNSProviderRegistry([StaticProvider(ProviderConfig(enabled=False))])

    def test_from_config_single_enabled(self):
        config = Config(
            interval="1m",
            ip_source="http://ip.example",
            providers={
                "cloudflare": CLOUDFLARE_SETTINGS,
                "route53": {**ROUTE53_SETTINGS, "enabled": False},
            },
        )
        registry = DNSProviderRegistry.from_config(config)
        assert registry.names == ["cloudflare"]

    def test_from_config_both_enabled(self):
        config = Config(
            interval="1m",
            ip_source="http://ip.example",
            providers={"route53": ROUTE53_SETTINGS, "cloudflare": CLOUDFLARE_SETTINGS},
        )
        registry = DNSProviderRegistry.from_config(config)
        assert registry.names == ["cloudflare", "route53"]

    def test_from_config_none_enabled(self):
        config = Config(
            interval="1m",
            ip_source="http://ip.example",
            providers={"cloudflare": {"enabled": False}, "route53": {"enabled": False}},
        )
        with pytest.raises(NoProvidersEnabledError):
            DNSProviderRegistry.from_config(config)

    def test_from_config_no_providers_section(self):
        config = Config(interval="1m", ip_source="http://ip.example")
        with pytest.raises(NoProvidersEnabledError):
            DNSProviderRegistry.from_config(config)
