"""
SEO service: HTTP and gRPC front ends over one cache-aside controller.
"""

from typing import Dict, Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config

from .cache import MemoryCache, RedisCache
from .controller import Cache, Controller, Store
from .discovery import DiscoveryClient, DiscoveryError
from .handlers.grpc import GRPCServer
from .handlers.http import create_router, install_error_handlers
from .persistence.memory import MemoryStore
from .persistence.postgres import PostgreSQLStore

SERVICE_NAME = "seo"
DEFAULT_PORT = 8080


class SEOService(BaseService):
    """SEO service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        store: Optional[Store] = None,
        cache: Optional[Cache] = None,
        discovery: Optional[DiscoveryClient] = None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config or get_config(SERVICE_NAME, DEFAULT_PORT))

        # Initialize components
        self.store = store or self._build_store()
        self.cache = cache or self._build_cache()
        self.controller = Controller(
            self.store,
            self.cache,
            ttl_seconds=self.config.cache_ttl_seconds,
            timeout_seconds=self.config.operation_timeout_seconds,
            metrics=self.metrics,
        )
        self.grpc_server: Optional[GRPCServer] = None
        if self.config.grpc_enabled:
            self.grpc_server = GRPCServer(self.controller, self.metrics, self.config.grpc_port)
        self.discovery = discovery
        if self.discovery is None and self.config.discovery_url:
            self.discovery = DiscoveryClient(
                self.config.discovery_url,
                SERVICE_NAME,
                self.config.public_address,
            )

        self._setup_seo_routes()

    def _build_store(self) -> Store:
        if self.config.store_backend == "memory":
            return MemoryStore()
        return PostgreSQLStore(self.config.postgres_dsn)

    def _build_cache(self) -> Cache:
        if self.config.cache_backend == "memory":
            return MemoryCache(namespace=self.config.cache_namespace)
        return RedisCache(self.config.redis_url, namespace=self.config.cache_namespace)

    def _setup_seo_routes(self):
        """Set up SEO-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": SERVICE_NAME,
                "message": "SEO tags and content pages",
                "version": "1.0.0",
                "capabilities": ["seo", "pages", "caching", "grpc" if self.grpc_server else "http"]
            }

        self.app.include_router(create_router(self.controller))
        install_error_handlers(self.app)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check SEO service dependencies."""
        dependencies = {}

        try:
            dependencies["store"] = "ok" if await self.store.health_check() else "error"
        except Exception:
            dependencies["store"] = "error"

        try:
            dependencies["cache"] = "ok" if await self.cache.health_check() else "error"
        except Exception:
            dependencies["cache"] = "error"

        return dependencies

    async def start(self):
        """Start SEO service components."""
        await self.store.start()
        await self.cache.start()

        if self.grpc_server is not None:
            await self.grpc_server.start()

        if self.discovery is not None:
            try:
                await self.discovery.register()
            except DiscoveryError as e:
                self.logger.warning("Error registering service", error=str(e))

        self.logger.info("SEO service started", grpc_enabled=self.grpc_server is not None)

    async def stop(self):
        """Stop SEO service components."""
        if self.discovery is not None:
            try:
                await self.discovery.deregister()
            except DiscoveryError as e:
                self.logger.warning("Error deregistering service", error=str(e))

        if self.grpc_server is not None:
            await self.grpc_server.stop()

        await self.cache.close()
        await self.store.stop()

        self.logger.info("SEO service stopped")


def create_app():
    """Create SEO service application."""
    service = SEOService()
    return service.app


if __name__ == "__main__":
    service = SEOService()
    service.run()
