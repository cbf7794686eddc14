"""
CLI entry point for dynago.

This module provides the command-line interface for starting the updater.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from dynago import __version__
from dynago.config import ConfigValidationError, load_config, parse_args
from dynago.logging_config import setup_logging
from dynago.providers.base import DNSProviderRegistry, NoProvidersEnabledError
from dynago.service import DNSUpdateService

logger = logging.getLogger("dynago")


async def serve(service: DNSUpdateService) -> None:
    """
    Run the service until SIGINT or SIGTERM is received.

    Parameters
    ----------
    service : DNSUpdateService
        The service to run.
    """
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, service.stop)
    try:
        await service.run()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)


def main() -> None:
    """
    Start the dynago updater.

    Parse command-line arguments, load configuration, build the provider
    registry and run the update loop. Exit with status 1 on any startup
    failure and 0 after a graceful shutdown.
    """
    args = parse_args()
    try:
        config = load_config(args.config, log_level=args.log_level)
    except ConfigValidationError as e:
        print(e, file=sys.stderr)  # noqa: T201
        sys.exit(1)

    setup_logging(config.log_level, args.log_file)
    logger.debug("Starting dynago version %s.", __version__)
    logger.debug('Configuration loaded from "%s".', args.config)

    try:
        registry = DNSProviderRegistry.from_config(config)
    except (ConfigValidationError, NoProvidersEnabledError) as e:
        logger.critical("%s", e)
        sys.exit(1)

    service = DNSUpdateService(config, registry)
    asyncio.run(serve(service))
    sys.exit(0)


if __name__ == "__main__":
    main()
