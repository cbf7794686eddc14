"""
CloudFlare DNS provider implementation.

This module implements the CloudFlare DNS API v4 for reading and updating
a single DNS record. Only API Token authentication is supported (not
Global API Key).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import model_validator
from pydantic_core import PydanticCustomError

from dynago.models import ProviderKind, RecordType, RecordUpdate
from dynago.providers.base import (
    BaseDNSProvider,
    ProviderConfig,
    ProviderError,
    RecordNotFoundError,
)

if TYPE_CHECKING:
    from typing import Final, Self


# CloudFlare API base URL
CF_API_BASE: Final[str] = "https://api.cloudflare.com/client/v4"

# HTTP timeout in seconds
HTTP_TIMEOUT: Final[float] = 30.0


logger = logging.getLogger(__name__)


class CloudflareConfig(ProviderConfig):
    """
    CloudFlare provider configuration.

    Attributes
    ----------
    api_token : str
        CloudFlare API Token with DNS edit permission on the zone.
    zone_id : str
        The zone ID containing the record.
    record_name : str
        Fully qualified record name (e.g., "home.example.com").
    record_type : RecordType
        The record type (A or AAAA).
    proxied : bool
        Whether the record is proxied through CloudFlare.
    """

    api_token: str = ""
    zone_id: str = ""
    record_name: str = ""
    record_type: RecordType = RecordType.A
    proxied: bool = False

    @model_validator(mode="after")
    def check_required_when_enabled(self) -> Self:
        """
        Validate that an enabled provider has credentials and a record.

        Returns
        -------
        Self
            The validated model.

        Raises
        ------
        PydanticCustomError
            If a required setting is empty.
        """
        if self.enabled:
            missing = [
                field
                for field in ("api_token", "zone_id", "record_name")
                if not getattr(self, field)
            ]
            if missing:
                raise PydanticCustomError(
                    "provider_config_error",
                    "Missing required settings: {missing}",
                    {"missing": ", ".join(missing)},
                )
        return self


class CloudFlareProvider(BaseDNSProvider):
    """
    CloudFlare DNS provider.

    Uses CloudFlare API v4 with API Token authentication.
    """

    kind = ProviderKind.CLOUDFLARE
    config_model = CloudflareConfig

    config: CloudflareConfig

    def __init__(
        self,
        config: CloudflareConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the provider.

        Parameters
        ----------
        config : CloudflareConfig
            Provider configuration.
        transport : httpx.AsyncBaseTransport | None, optional
            Transport for the HTTP client (used by tests).
        """
        super().__init__(config)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get the cached API client, creating it on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=CF_API_BASE,
                headers={
                    "Authorization": f"Bearer {self.config.api_token}",
                    "Content-Type": "application/json",
                },
                timeout=HTTP_TIMEOUT,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the cached API client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def get_record_ip(self) -> str:
        """
        Get the content of the configured record.

        Returns
        -------
        str
            The current record value.
        """
        record = await self._find_record()
        return str(record.get("content", ""))

    async def update_record_ip(self, ip: str) -> RecordUpdate:
        """
        Set the content of the configured record.

        Parameters
        ----------
        ip : str
            The new record value.

        Returns
        -------
        RecordUpdate
            Metadata about the update.
        """
        cfg = self.config
        record = await self._find_record()
        record_id = str(record["id"])

        payload: dict[str, str | bool] = {
            "type": cfg.record_type.value,
            "name": cfg.record_name,
            "content": ip,
            "proxied": cfg.proxied,
        }
        logger.info(
            "[cloudflare] Updating record %s (ID: %s, zone: %s) to IP %s",
            cfg.record_name,
            record_id,
            cfg.zone_id,
            ip,
        )
        await self._request(
            "PATCH",
            f"/zones/{cfg.zone_id}/dns_records/{record_id}",
            json=payload,
        )
        return RecordUpdate(
            provider=self.name,
            record_name=cfg.record_name,
            record_type=cfg.record_type,
            value=ip,
            record_id=record_id,
        )

    async def _find_record(self) -> dict[str, Any]:
        """
        Find the record matching the configured name and type.

        Returns
        -------
        dict[str, Any]
            The record as returned by the API.

        Raises
        ------
        RecordNotFoundError
            If no record matches.
        """
        cfg = self.config
        data = await self._request(
            "GET",
            f"/zones/{cfg.zone_id}/dns_records",
            params={"name": cfg.record_name, "type": cfg.record_type.value},
        )
        records = data.get("result") or []
        for record in records:
            if record.get("name") == cfg.record_name and record.get("type") == cfg.record_type:
                return record

        logger.debug(
            "[cloudflare] No match for %s %s in zone %s (%d records returned)",
            cfg.record_name,
            cfg.record_type,
            cfg.zone_id,
            len(records),
        )
        msg = f"Record not found: {cfg.record_name} {cfg.record_type} (zone {cfg.zone_id})"
        raise RecordNotFoundError(self.name, msg)

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """
        Send an API request and return the decoded response envelope.

        Parameters
        ----------
        method : str
            HTTP method.
        url : str
            Path relative to the API base URL.
        **kwargs : Any
            Extra arguments for `httpx.AsyncClient.request`.

        Returns
        -------
        dict[str, Any]
            The decoded JSON response.

        Raises
        ------
        ProviderError
            On network errors, non-200 responses or unsuccessful envelopes.
        """
        client = self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            msg = f"Network request failed: {e}"
            raise ProviderError(self.name, msg) from e

        logger.debug("[cloudflare] %s %s -> %d", method, url, response.status_code)
        logger.debug("[cloudflare] Response: %s", response.text)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code != httpx.codes.OK or not data.get("success"):
            errors = data.get("errors") or []
            error_msg = (
                errors[0].get("message", "Unknown error") if errors else response.reason_phrase
            )
            msg = f"{method} {url} failed ({response.status_code}): {error_msg}"
            raise ProviderError(self.name, msg)

        return data
