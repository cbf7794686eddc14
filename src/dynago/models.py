"""
Data models for dynago.

This module defines the enumerations shared by the configuration layer and
the provider adapters, and the result model returned after a record update.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class ProviderKind(StrEnum):
    """
    Supported DNS providers.

    The members double as the keys accepted under ``providers`` in the
    configuration file.

    Attributes
    ----------
    CLOUDFLARE : str
        CloudFlare DNS service.
    ROUTE53 : str
        AWS Route53 service.
    """

    CLOUDFLARE = "cloudflare"
    ROUTE53 = "route53"


class RecordType(StrEnum):
    """
    Supported DNS record types.

    Attributes
    ----------
    A : str
        IPv4 address record.
    AAAA : str
        IPv6 address record.
    """

    A = "A"
    AAAA = "AAAA"


class RecordUpdate(BaseModel):
    """
    Metadata about a successful record update.

    Attributes
    ----------
    provider : str
        The provider that performed the update.
    record_name : str
        The record name that was written.
    record_type : RecordType
        The record type that was written.
    value : str
        The new record value.
    record_id : str | None
        The record ID from the provider (CloudFlare).
    change_id : str | None
        The change batch ID from the provider (Route53).
    """

    provider: str
    record_name: str
    record_type: RecordType
    value: str
    record_id: str | None = None
    change_id: str | None = None
