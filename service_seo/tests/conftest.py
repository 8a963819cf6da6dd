"""
Shared fixtures for SEO service tests.
"""

import pytest

from fakes import FakeContext
from shared.config import get_config
from service_seo.app.main import SEOService


@pytest.fixture
def service_config():
    """Configuration with in-process backends and no gRPC listener."""
    return get_config(
        "seo",
        8080,
        store_backend="memory",
        cache_backend="memory",
        grpc_enabled=False,
        discovery_url=None,
        enable_tracing=False,
    )


@pytest.fixture
def seo_service(service_config):
    """Create SEOService instance."""
    return SEOService(config=service_config)


@pytest.fixture
def grpc_context():
    return FakeContext()
