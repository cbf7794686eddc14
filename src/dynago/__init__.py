"""
dynago - A dynamic DNS updater.

This package polls an IP-discovery URL on a fixed interval and keeps DNS
records at the enabled providers (CloudFlare, AWS Route53) pointed at the
current public address.
"""

__version__ = "0.1.0"
__author__ = "dynago Contributors"
