"""
Public IP discovery.

Fetches the current public address from an HTTP endpoint that returns the
address as a plain-text body (e.g., https://checkip.amazonaws.com/).
"""

from __future__ import annotations

import ipaddress
import logging
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from typing import Final


# HTTP timeout in seconds
HTTP_TIMEOUT: Final[float] = 30.0


logger = logging.getLogger(__name__)


class IPSourceError(Exception):
    """Raised when the current IP cannot be determined."""


async def get_current_ip(ip_source: str, client: httpx.AsyncClient) -> str:
    """
    Fetch the current public IP address.

    Parameters
    ----------
    ip_source : str
        URL returning the address as plain text.
    client : httpx.AsyncClient
        HTTP client used for the request.

    Returns
    -------
    str
        The address, stripped of surrounding whitespace.

    Raises
    ------
    IPSourceError
        On network errors, a malformed URL, non-200 responses, or a body
        that is not an IPv4/IPv6 address.
    """
    try:
        response = await client.get(ip_source)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        msg = f"Failed to fetch IP from {ip_source}: {e}"
        raise IPSourceError(msg) from e

    logger.debug("[ip_source] GET %s -> %d", ip_source, response.status_code)

    if response.status_code != httpx.codes.OK:
        msg = f"Failed to fetch IP: non-200 response ({response.status_code})"
        raise IPSourceError(msg)

    body = response.text.strip()
    try:
        ipaddress.ip_address(body)
    except ValueError as e:
        msg = f"IP source returned an invalid address: {body[:64]!r}"
        raise IPSourceError(msg) from e

    return body
