"""
Service discovery client.
"""

from .client import DiscoveryClient, DiscoveryError

__all__ = ["DiscoveryClient", "DiscoveryError"]
