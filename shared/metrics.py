"""
Shared metrics configuration for the SEO metadata service.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, generate_latest
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for a service.

    Each collector owns its registry so that several service instances
    (e.g. one per test) never collide on metric names.
    """
    
    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()
    
    def _setup_metrics(self):
        """Set up common metrics for the service."""
        
        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })
        
        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )
        
        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )
        
        # RPC metrics
        self._metrics["rpc_requests_total"] = Counter(
            "rpc_requests_total",
            "Total RPC requests",
            ["method", "status_code"],
            registry=self.registry
        )
        
        self._metrics["rpc_request_duration_seconds"] = Histogram(
            "rpc_request_duration_seconds",
            "RPC request duration in seconds",
            ["method"],
            registry=self.registry
        )
        
        # Health check metrics
        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )
        
        # Cache metrics
        self._metrics["cache_hits_total"] = Counter(
            "cache_hits_total",
            "Total cache hits",
            ["resource"],
            registry=self.registry
        )
        
        self._metrics["cache_misses_total"] = Counter(
            "cache_misses_total",
            "Total cache misses",
            ["resource"],
            registry=self.registry
        )
        
        self._metrics["cache_errors_total"] = Counter(
            "cache_errors_total",
            "Total best-effort cache failures",
            ["operation"],
            registry=self.registry
        )
        
        # Controller metrics
        self._metrics["controller_operation_duration_seconds"] = Histogram(
            "controller_operation_duration_seconds",
            "Controller operation duration in seconds",
            ["operation"],
            registry=self.registry
        )
        
        self._metrics["domain_errors_total"] = Counter(
            "domain_errors_total",
            "Total domain errors returned by the controller",
            ["operation", "code"],
            registry=self.registry
        )
    
    def render(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)
    
    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()
        
        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)
    
    def record_rpc_request(self, method: str, status_code: str, duration: float):
        """Record RPC request metrics."""
        self._metrics["rpc_requests_total"].labels(
            method=method,
            status_code=status_code
        ).inc()
        
        self._metrics["rpc_request_duration_seconds"].labels(method=method).observe(duration)
    
    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()
    
    def record_cache_lookup(self, resource: str, hit: bool):
        """Record a cache hit or miss."""
        name = "cache_hits_total" if hit else "cache_misses_total"
        self._metrics[name].labels(resource=resource).inc()
    
    def record_cache_error(self, operation: str):
        """Record a swallowed cache failure."""
        self._metrics["cache_errors_total"].labels(operation=operation).inc()
    
    def record_domain_error(self, operation: str, code: str):
        """Record a domain error."""
        self._metrics["domain_errors_total"].labels(operation=operation, code=code).inc()
    
    @contextmanager
    def time_operation(self, operation_name: str):
        """Context manager to time a controller operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            self._metrics["controller_operation_duration_seconds"].labels(
                operation=operation_name
            ).observe(duration)
    
    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Read back a sample value from the registry (0.0 when absent)."""
        value = self.registry.get_sample_value(name, labels or {})
        return value or 0.0


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
