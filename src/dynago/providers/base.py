"""
Base class and registry for DNS providers.

This module defines the abstract base class that all DNS provider
implementations must inherit from, the errors they raise, and the
registry that selects the enabled providers for a run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ValidationError

from dynago.config import ConfigValidationError, format_validation_errors
from dynago.models import ProviderKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

    from dynago.config import Config
    from dynago.models import RecordUpdate


logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """
    Exception raised when a provider operation fails.

    Attributes
    ----------
    provider : str
        Name of the provider that failed.
    """

    def __init__(self, provider: str, message: str) -> None:
        """
        Initialize ProviderError.

        Parameters
        ----------
        provider : str
            Name of the provider that failed.
        message : str
            Human-readable error message.
        """
        self.provider = provider
        super().__init__(message)


class RecordNotFoundError(ProviderError):
    """Raised when no record matches the configured name and type."""


class NoProvidersEnabledError(ProviderError):
    """Raised when the configuration does not enable any provider."""

    def __init__(self) -> None:
        super().__init__("registry", "No DNS providers enabled in config")


class ProviderConfig(BaseModel):
    """
    Settings common to every provider.

    Attributes
    ----------
    enabled : bool
        Whether the provider is used for this run.
    """

    enabled: bool = False


class BaseDNSProvider(ABC):
    """
    Abstract base class for DNS providers.

    Each provider owns its typed configuration and a vendor client that is
    created on first use and reused afterwards. Subclasses set `kind` and
    `config_model` and implement `get_record_ip` and `update_record_ip`.
    """

    kind: ClassVar[ProviderKind]
    config_model: ClassVar[type[ProviderConfig]]

    def __init__(self, config: ProviderConfig) -> None:
        """
        Initialize the provider.

        Parameters
        ----------
        config : ProviderConfig
            Provider-specific configuration.
        """
        self.config = config

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> BaseDNSProvider:
        """
        Build a provider from its raw configuration mapping.

        Parameters
        ----------
        settings : Mapping[str, Any]
            The provider section of the configuration file.

        Returns
        -------
        BaseDNSProvider
            The provider instance.

        Raises
        ------
        ConfigValidationError
            If the settings are invalid.
        """
        try:
            config = cls.config_model.model_validate(dict(settings))
        except ValidationError as e:
            msg = format_validation_errors(e, None, prefix=f"providers.{cls.kind}")
            raise ConfigValidationError(msg) from e
        return cls(config)

    @property
    def name(self) -> str:
        """Get the provider name."""
        return self.kind.value

    @property
    def enabled(self) -> bool:
        """Whether the provider is enabled in its configuration."""
        return self.config.enabled

    @abstractmethod
    async def get_record_ip(self) -> str:
        """
        Get the value currently published for the configured record.

        Returns
        -------
        str
            The current record value.

        Raises
        ------
        RecordNotFoundError
            If no record matches the configured name and type.
        ProviderError
            If the vendor API call fails.
        """
        ...

    @abstractmethod
    async def update_record_ip(self, ip: str) -> RecordUpdate:
        """
        Point the configured record at a new address.

        Parameters
        ----------
        ip : str
            The new record value.

        Returns
        -------
        RecordUpdate
            Metadata about the update.

        Raises
        ------
        RecordNotFoundError
            If no record matches the configured name and type.
        ProviderError
            If the vendor API call fails or the write is rejected.
        """
        ...

    async def aclose(self) -> None:  # noqa: B027
        """Release the cached vendor client."""


def _provider_classes() -> dict[ProviderKind, type[BaseDNSProvider]]:
    # Imported here to avoid a circular import with the provider modules
    from dynago.providers.cloudflare import CloudFlareProvider  # noqa: PLC0415
    from dynago.providers.route53 import Route53Provider  # noqa: PLC0415

    return {
        ProviderKind.CLOUDFLARE: CloudFlareProvider,
        ProviderKind.ROUTE53: Route53Provider,
    }


def build_providers(
    providers_config: Mapping[str, Mapping[str, Any]],
) -> list[BaseDNSProvider]:
    """
    Construct a provider for every known key in the configuration.

    Providers are built in ``ProviderKind`` order; unknown keys are ignored.

    Parameters
    ----------
    providers_config : Mapping[str, Mapping[str, Any]]
        The ``providers`` section of the configuration.

    Returns
    -------
    list[BaseDNSProvider]
        The constructed providers, enabled or not.

    Raises
    ------
    ConfigValidationError
        If a provider section is invalid.
    """
    known = {kind.value for kind in ProviderKind}
    for key in providers_config:
        if key not in known:
            logger.warning(
                'Ignoring unknown provider "%s" (supported: %s).',
                key,
                ", ".join(sorted(known)),
            )

    classes = _provider_classes()
    return [
        classes[kind].from_settings(providers_config[kind.value])
        for kind in ProviderKind
        if kind.value in providers_config
    ]


class DNSProviderRegistry:
    """
    The ordered set of enabled providers for a run.

    The registry is never empty and is not modified after construction.
    """

    def __init__(self, providers: Iterable[BaseDNSProvider]) -> None:
        """
        Initialize the registry, keeping only enabled providers.

        Parameters
        ----------
        providers : Iterable[BaseDNSProvider]
            Constructed providers, in the order they should be updated.

        Raises
        ------
        NoProvidersEnabledError
            If none of the providers is enabled.
        """
        self._providers = tuple(p for p in providers if p.enabled)
        if not self._providers:
            raise NoProvidersEnabledError

    @classmethod
    def from_config(cls, config: Config) -> DNSProviderRegistry:
        """
        Build the registry from the application configuration.

        Parameters
        ----------
        config : Config
            Application configuration.

        Returns
        -------
        DNSProviderRegistry
            The registry of enabled providers.
        """
        return cls(build_providers(config.providers))

    @property
    def providers(self) -> tuple[BaseDNSProvider, ...]:
        """Get the enabled providers."""
        return self._providers

    @property
    def names(self) -> list[str]:
        """Get the names of the enabled providers."""
        return [p.name for p in self._providers]

    def __iter__(self) -> Iterator[BaseDNSProvider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    async def aclose(self) -> None:
        """Release the vendor clients of all providers."""
        for provider in self._providers:
            await provider.aclose()
