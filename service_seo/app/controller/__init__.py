"""
Controller package: the cache-aside core of the service.

The controller coordinates an authoritative store with a disposable cache
and translates store outcomes into the domain error vocabulary
(NotFound, AlreadyExists, Internal). It knows nothing about transports.
"""

from .controller import Controller
from .interfaces import Cache, Store

__all__ = ["Controller", "Cache", "Store"]
