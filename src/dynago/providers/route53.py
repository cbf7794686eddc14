"""
AWS Route53 DNS provider implementation.

This module reads and upserts a single resource record set through the
boto3 Route53 client. The SDK is blocking, so calls are run in a worker
thread to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import Field, model_validator
from pydantic_core import PydanticCustomError

from dynago.models import ProviderKind, RecordType, RecordUpdate
from dynago.providers.base import (
    BaseDNSProvider,
    ProviderConfig,
    ProviderError,
    RecordNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Final, Self


DEFAULT_TTL: Final[int] = 300


logger = logging.getLogger(__name__)


def _normalize_name(name: str) -> str:
    """Normalize a record name for comparison (case, trailing dot)."""
    return name.rstrip(".").lower()


class Route53Config(ProviderConfig):
    """
    Route53 provider configuration.

    Attributes
    ----------
    access_key_id : str
        AWS access key ID.
    secret_access_key : str
        AWS secret access key.
    hosted_zone_id : str
        The hosted zone containing the record.
    record_name : str
        Fully qualified record name (e.g., "home.example.com").
    record_type : RecordType
        The record type (A or AAAA).
    region : str | None
        AWS region for the client; Route53 is global so this is optional.
    ttl : int
        TTL in seconds written with every update.
    """

    access_key_id: str = ""
    secret_access_key: str = ""
    hosted_zone_id: str = ""
    record_name: str = ""
    record_type: RecordType = RecordType.A
    region: str | None = None
    ttl: int = Field(default=DEFAULT_TTL, ge=1, le=2147483647)

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
                for field in (
                    "access_key_id",
                    "secret_access_key",
                    "hosted_zone_id",
                    "record_name",
                )
                if not getattr(self, field)
            ]
            if missing:
                raise PydanticCustomError(
                    "provider_config_error",
                    "Missing required settings: {missing}",
                    {"missing": ", ".join(missing)},
                )
        return self


class Route53Provider(BaseDNSProvider):
    """AWS Route53 DNS provider using static credentials."""

    kind = ProviderKind.ROUTE53
    config_model = Route53Config

    config: Route53Config

    def __init__(self, config: Route53Config, client: Any | None = None) -> None:
        """
        Initialize the provider.

        Parameters
        ----------
        config : Route53Config
            Provider configuration.
        client : Any | None, optional
            Pre-built boto3 Route53 client (used by tests).
        """
        super().__init__(config)
        self._client = client

    async def _get_client(self) -> Any:
        """Get the cached Route53 client, creating it in a worker thread on first use."""
        if self._client is None:
            try:
                self._client = await asyncio.to_thread(
                    boto3.client,
                    "route53",
                    region_name=self.config.region or None,
                    aws_access_key_id=self.config.access_key_id,
                    aws_secret_access_key=self.config.secret_access_key,
                )
            except (ClientError, BotoCoreError) as e:
                raise ProviderError(self.name, str(e)) from e
        return self._client

    async def _call(self, func: Callable[..., dict[str, Any]], **kwargs: Any) -> dict[str, Any]:
        """
        Run a blocking SDK call in a worker thread.

        Raises
        ------
        ProviderError
            If the SDK raises.
        """
        try:
            return await asyncio.to_thread(func, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise ProviderError(self.name, str(e)) from e

    async def get_record_ip(self) -> str:
        """
        Get the first value of the configured resource record set.

        Returns
        -------
        str
            The current record value.
        """
        cfg = self.config
        client = await self._get_client()
        response = await self._call(
            client.list_resource_record_sets,
            HostedZoneId=cfg.hosted_zone_id,
            StartRecordName=cfg.record_name,
            StartRecordType=cfg.record_type.value,
            MaxItems="1",
        )

        wanted = _normalize_name(cfg.record_name)
        for rrset in response.get("ResourceRecordSets", []):
            if _normalize_name(rrset.get("Name", "")) != wanted:
                continue
            if rrset.get("Type") != cfg.record_type:
                continue
            values = [r["Value"] for r in rrset.get("ResourceRecords", [])]
            if values:
                return values[0]

        msg = f"Record not found: {cfg.record_name} {cfg.record_type} (zone {cfg.hosted_zone_id})"
        raise RecordNotFoundError(self.name, msg)

    async def update_record_ip(self, ip: str) -> RecordUpdate:
        """
        Upsert the configured resource record set with a new value.

        Parameters
        ----------
        ip : str
            The new record value.

        Returns
        -------
        RecordUpdate
            Metadata about the update, including the change ID.
        """
        cfg = self.config
        change = {
            "Action": "UPSERT",
            "ResourceRecordSet": {
                "Name": cfg.record_name,
                "Type": cfg.record_type.value,
                "TTL": cfg.ttl,
                "ResourceRecords": [{"Value": ip}],
            },
        }
        logger.info("[route53] Updating record %s to IP %s", cfg.record_name, ip)

        client = await self._get_client()
        response = await self._call(
            client.change_resource_record_sets,
            HostedZoneId=cfg.hosted_zone_id,
            ChangeBatch={
                "Comment": f"dynago update for {cfg.record_name} -> {ip}",
                "Changes": [change],
            },
        )
        change_id = response.get("ChangeInfo", {}).get("Id")
        logger.debug("[route53] Change submitted: %s", change_id)

        return RecordUpdate(
            provider=self.name,
            record_name=cfg.record_name,
            record_type=cfg.record_type,
            value=ip,
            change_id=change_id,
        )

