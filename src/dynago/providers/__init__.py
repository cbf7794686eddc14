"""DNS provider adapters (CloudFlare, AWS Route53)."""

from dynago.providers.base import (
    BaseDNSProvider,
    DNSProviderRegistry,
    NoProvidersEnabledError,
    ProviderError,
    RecordNotFoundError,
    build_providers,
)

__all__ = [
    "BaseDNSProvider",
    "DNSProviderRegistry",
    "NoProvidersEnabledError",
    "ProviderError",
    "RecordNotFoundError",
    "build_providers",
]
