"""
Persistence package for the SEO service.

Provides the authoritative stores: PostgreSQL (asyncpg) for deployments and
an in-memory store for local runs and tests. Both raise the store-specific
errors in ``errors``; the controller translates them.
"""
