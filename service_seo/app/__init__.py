"""
SEO service package.

Serves and mutates two small metadata resources, SEO tags attached to an
arbitrary entity (type name + primary key) and content pages addressed by
slug, over parallel HTTP and gRPC front ends:

- app.main: Service wiring and lifecycle.
- app.models: Record and request models.
- app.controller: Cache-aside orchestration, key derivation, error mapping.
- app.cache: Redis-backed and in-memory caches.
- app.persistence: PostgreSQL-backed and in-memory stores.
- app.handlers: HTTP and gRPC adapters plus shared request validation.
- app.discovery: Service-discovery registration.

Guidelines:
- The service is stateless; the store is authoritative, the cache is disposable.
- Transports never talk to the store or cache directly.
"""
