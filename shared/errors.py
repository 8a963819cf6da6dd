"""
Shared error handling for the SEO metadata service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field
from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""
    
    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ServiceException(Exception):
    """Base exception for domain outcomes surfaced to transports."""
    
    code = "SERVICE_ERROR"
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)
    
    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        # Get trace ID from current span
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"
        
        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(ServiceException):
    """The addressed resource does not exist."""
    
    code = "NOT_FOUND"
    
    def __init__(self, message: str = "not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AlreadyExistsError(ServiceException):
    """A resource with the same identity already exists."""
    
    code = "ALREADY_EXISTS"
    
    def __init__(self, message: str = "already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class InternalError(ServiceException):
    """Unclassified failure.

    The public message is always generic; ``reason`` stays server-side and
    is only written to logs and spans.
    """
    
    code = "INTERNAL"
    
    def __init__(self, reason: str = "", operation: Optional[str] = None):
        self.reason = reason
        self.operation = operation
        super().__init__("internal error")


class InvalidArgumentError(ServiceException):
    """Request rejected before reaching the controller."""
    
    code = "INVALID_ARGUMENT"
    
    def __init__(self, message: str = "failed to decode request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
