"""
Shared utilities for the SEO metadata service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry tracing config
- errors: Canonical error types and responses
- retry: Retry decorator for outbound calls
- base_service: FastAPI application scaffold

Any cross-cutting logic should live here to avoid import cycles. Do not
import from service_* packages into shared/.
"""
