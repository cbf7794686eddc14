"""
DNS update service for dynago.

This module runs the update loop: on every tick it fetches the current
public IP once, then walks the enabled providers in order, reading each
record and rewriting it when it differs. Failures are logged and skipped;
the loop only ends when `DNSUpdateService.stop` is called.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import math
import time
from typing import TYPE_CHECKING, Literal

import httpx

from dynago.ip_source import HTTP_TIMEOUT, IPSourceError, get_current_ip
from dynago.providers.base import ProviderError

if TYPE_CHECKING:
    from dynago.config import Config
    from dynago.providers.base import BaseDNSProvider, DNSProviderRegistry


logger = logging.getLogger(__name__)

PassOutcome = Literal["unchanged", "updated", "skipped", "error"]


def _same_address(record_value: str, current_ip: str) -> bool:
    """Compare a record value with the current IP as addresses, not text."""
    try:
        return ipaddress.ip_address(record_value.strip()) == ipaddress.ip_address(current_ip)
    except ValueError:
        return False


class DNSUpdateService:
    """
    Periodically reconcile DNS records with the current public IP.

    Attributes
    ----------
    last_known : dict[str, str]
        Provider name to the IP this process last wrote. Advisory only.
    """

    def __init__(
        self,
        config: Config,
        registry: DNSProviderRegistry,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the service.

        Parameters
        ----------
        config : Config
            Application configuration.
        registry : DNSProviderRegistry
            The enabled providers.
        http_client : httpx.AsyncClient | None, optional
            Client for the IP source. If None, one is created and owned by
            the service.
        """
        self.config = config
        self.registry = registry
        self.last_known: dict[str, str] = {}
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._stop_event = asyncio.Event()

    @property
    def stopped(self) -> bool:
        """Whether a stop has been requested."""
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request the loop to stop. Safe to call more than once."""
        if not self._stop_event.is_set():
            logger.info("Stop requested.")
        self._stop_event.set()

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)
        return self._http_client

    async def run(self) -> None:
        """
        Run the update loop until `stop` is called.

        The first pass runs one interval after start. Ticks that fall due
        while a pass is still running are dropped.
        """
        interval = self.config.interval.total_seconds()
        logger.info(
            "DNS update service starting (interval: %ss, providers: %s).",
            f"{interval:g}",
            ", ".join(self.registry.names),
        )

        next_tick = time.monotonic() + interval
        try:
            while not self.stopped:
                timeout = max(next_tick - time.monotonic(), 0.0)
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
                except TimeoutError:
                    await self.run_pass()
                    # Skip the ticks missed during a long pass
                    now = time.monotonic()
                    missed = math.floor((now - next_tick) / interval)
                    next_tick += (missed + 1) * interval
        finally:
            await self.aclose()
            logger.info("DNS update service stopped.")

    async def run_pass(self) -> dict[str, PassOutcome]:
        """
        Run one IP-check-and-update pass over all enabled providers.

        Returns
        -------
        dict[str, PassOutcome]
            Provider name to outcome. Empty if the IP could not be fetched.
        """
        try:
            current_ip = await get_current_ip(self.config.ip_source, self._get_http_client())
        except IPSourceError as e:
            logger.error("Failed to get current IP: %s", e)  # noqa: TRY400
            return {}

        logger.debug("Current public IP: %s", current_ip)

        outcomes: dict[str, PassOutcome] = {}
        for provider in self.registry:
            if self.stopped:
                logger.debug("Stop requested, ending pass early.")
                break
            outcomes[provider.name] = await self._update_provider(provider, current_ip)
        return outcomes

    async def _update_provider(
        self,
        provider: BaseDNSProvider,
        current_ip: str,
    ) -> PassOutcome:
        """
        Compare one provider's record with the current IP and update it.

        Parameters
        ----------
        provider : BaseDNSProvider
            The provider to reconcile.
        current_ip : str
            The current public IP.

        Returns
        -------
        PassOutcome
            What happened for this provider.
        """
        name = provider.name
        try:
            dns_ip = await provider.get_record_ip()
        except ProviderError as e:
            logger.error("%s: failed to get DNS record IP: %s", name, e)  # noqa: TRY400
            return "error"
        except Exception:
            logger.exception("%s: unexpected error while reading DNS record", name)
            return "error"

        if _same_address(dns_ip, current_ip):
            logger.debug("%s: IP unchanged (%s)", name, current_ip)
            return "unchanged"

        if self.stopped:
            logger.debug("%s: stop requested, skipping update.", name)
            return "skipped"

        logger.info(
            "%s: IP mismatch (current: %s, DNS: %s), updating...",
            name,
            current_ip,
            dns_ip,
        )
        try:
            await provider.update_record_ip(current_ip)
        except ProviderError as e:
            logger.error("%s: failed to update DNS record: %s", name, e)  # noqa: TRY400
            return "error"
        except Exception:
            logger.exception("%s: unexpected error while updating DNS record", name)
            return "error"

        self.last_known[name] = current_ip
        logger.info("%s: DNS record updated to %s", name, current_ip)
        return "updated"

    async def aclose(self) -> None:
        """Close the owned HTTP client and all provider clients."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
        await self.registry.aclose()
