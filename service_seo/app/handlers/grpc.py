"""
gRPC adapter: grpc.aio servicers over the controller.

Messages are JSON objects carried as the raw gRPC payload, registered via
generic method handlers:

- seo.SEOService/{GetSEO, ListSEO, CreateSEO, UpdateSEO, DeleteSEO}
- seo.PageService/{ListPages, GetPage, CreatePage, UpdatePage, DeletePage}
"""

import functools
import json
import time
from typing import Any, Dict, Optional

import grpc

from shared.errors import InternalError, InvalidArgumentError, ServiceException
from shared.logging import clear_context, get_logger, set_request_id
from shared.metrics import MetricsCollector
from shared.tracing import mark_span_error, trace_operation
from ..controller import Controller
from . import validation

SEO_SERVICE = "seo.SEOService"
PAGE_SERVICE = "seo.PageService"

SEO_METHODS = ("GetSEO", "ListSEO", "CreateSEO", "UpdateSEO", "DeleteSEO")
PAGE_METHODS = ("ListPages", "GetPage", "CreatePage", "UpdatePage", "DeletePage")

STATUS_BY_CODE = {
    "INVALID_ARGUMENT": grpc.StatusCode.INVALID_ARGUMENT,
    "NOT_FOUND": grpc.StatusCode.NOT_FOUND,
    "ALREADY_EXISTS": grpc.StatusCode.ALREADY_EXISTS,
    "INTERNAL": grpc.StatusCode.INTERNAL,
}

logger = get_logger("seo.handler.grpc")


def deserialize(data: bytes) -> Any:
    """Decode a request payload; undecodable bytes become None (rejected later)."""
    try:
        return json.loads(data)
    except ValueError:
        logger.debug("Failed to decode request payload", size=len(data))
        return None


def serialize(message: Any) -> bytes:
    return json.dumps(message, separators=(",", ":")).encode("utf-8")


def _status_message(exc: ServiceException) -> str:
    if isinstance(exc, InternalError) or not exc.details:
        return exc.message
    detail = ", ".join(f"{key}={value}" for key, value in exc.details.items())
    return f"{exc.message} ({detail})"


def _message(request: Any) -> Dict[str, Any]:
    if not isinstance(request, dict):
        raise InvalidArgumentError(validation.DECODE_ERROR)
    return request


def _dump(record) -> Dict[str, Any]:
    return record.model_dump(mode="json")


def rpc_method(op: str):
    """Trace, time and map domain errors to gRPC status codes.

    The abort happens after the span is closed, so only Internal failures
    mark the span as an error.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, request, context):
            start = time.time()
            code = grpc.StatusCode.OK
            metadata = dict(context.invocation_metadata() or ())
            set_request_id(metadata.get("x-request-id"))
            try:
                with trace_operation(op) as span:
                    try:
                        return await func(self, request, context)
                    except ServiceException as exc:
                        code = STATUS_BY_CODE.get(exc.code, grpc.StatusCode.INTERNAL)
                        if isinstance(exc, InternalError):
                            mark_span_error(span, exc.reason)
                            logger.error("Request failed", operation=exc.operation or op, reason=exc.reason)
                        else:
                            logger.debug("Request rejected", operation=op, code=exc.code, message=exc.message)
                        details = _status_message(exc)
                    except Exception as exc:
                        code = grpc.StatusCode.INTERNAL
                        mark_span_error(span, str(exc))
                        logger.error("Unhandled exception", operation=op, error=str(exc), exc_info=True)
                        details = InternalError().message
                await context.abort(code, details)
            finally:
                self.metrics.record_rpc_request(op, code.name, time.time() - start)
                clear_context()

        return wrapper

    return decorator


class SEOServicer:
    """seo.SEOService implementation."""

    def __init__(self, controller: Controller, metrics: MetricsCollector):
        self.controller = controller
        self.metrics = metrics

    @rpc_method("seo.GetSEO.hdl")
    async def GetSEO(self, request, context):
        message = _message(request)
        name = validation.require(message.get("name"), "name")
        pk = validation.require(message.get("pk"), "pk")
        record = await self.controller.get_seo(name, pk, timeout=context.time_remaining())
        return _dump(record)

    @rpc_method("seo.ListSEO.hdl")
    async def ListSEO(self, request, context):
        message = _message(request)
        name = validation.require(message.get("name"), "name")
        records = await self.controller.list_seo(name, timeout=context.time_remaining())
        return {"items": [_dump(r) for r in records]}

    @rpc_method("seo.CreateSEO.hdl")
    async def CreateSEO(self, request, context):
        message = _message(request)
        name = validation.require(message.get("name"), "name")
        pk = validation.require(message.get("pk"), "pk")
        payload = message.get("seo")
        if not isinstance(payload, dict):
            raise InvalidArgumentError(f"{validation.DECODE_ERROR}, missing seo")
        seo = validation.seo_for_create({**payload, "name": name, "pk": pk})
        record = await self.controller.create_seo(seo, timeout=context.time_remaining())
        return _dump(record)

    @rpc_method("seo.UpdateSEO.hdl")
    async def UpdateSEO(self, request, context):
        message = _message(request)
        name = validation.require(message.get("name"), "name")
        pk = validation.require(message.get("pk"), "pk")
        fields = validation.seo_fields(message.get("seo"))
        record = await self.controller.update_seo(name, pk, fields, timeout=context.time_remaining())
        return _dump(record)

    @rpc_method("seo.DeleteSEO.hdl")
    async def DeleteSEO(self, request, context):
        message = _message(request)
        name = validation.require(message.get("name"), "name")
        pk = validation.require(message.get("pk"), "pk")
        await self.controller.delete_seo(name, pk, timeout=context.time_remaining())
        return {}


class PageServicer:
    """seo.PageService implementation."""

    def __init__(self, controller: Controller, metrics: MetricsCollector):
        self.controller = controller
        self.metrics = metrics

    @rpc_method("pages.ListPages.hdl")
    async def ListPages(self, request, context):
        _message(request)
        records = await self.controller.list_pages(timeout=context.time_remaining())
        return {"items": [_dump(r) for r in records]}

    @rpc_method("pages.GetPage.hdl")
    async def GetPage(self, request, context):
        slug = validation.require(_message(request).get("slug"), "slug")
        record = await self.controller.get_page(slug, timeout=context.time_remaining())
        return _dump(record)

    @rpc_method("pages.CreatePage.hdl")
    async def CreatePage(self, request, context):
        page = validation.page_for_create(_message(request).get("page"))
        record = await self.controller.create_page(page, timeout=context.time_remaining())
        return _dump(record)

    @rpc_method("pages.UpdatePage.hdl")
    async def UpdatePage(self, request, context):
        message = _message(request)
        slug = validation.require(message.get("slug"), "slug")
        fields = validation.page_fields(message.get("page"))
        record = await self.controller.update_page(slug, fields, timeout=context.time_remaining())
        return _dump(record)

    @rpc_method("pages.DeletePage.hdl")
    async def DeletePage(self, request, context):
        slug = validation.require(_message(request).get("slug"), "slug")
        await self.controller.delete_page(slug, timeout=context.time_remaining())
        return {}


def _generic_handler(servicer, service_name: str, methods) -> grpc.GenericRpcHandler:
    return grpc.method_handlers_generic_handler(service_name, {
        method: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, method),
            request_deserializer=deserialize,
            response_serializer=serialize,
        )
        for method in methods
    })


def build_handlers(controller: Controller, metrics: MetricsCollector):
    """Generic handlers for both services, ready for ``server.add_generic_rpc_handlers``."""
    return (
        _generic_handler(SEOServicer(controller, metrics), SEO_SERVICE, SEO_METHODS),
        _generic_handler(PageServicer(controller, metrics), PAGE_SERVICE, PAGE_METHODS),
    )


class GRPCServer:
    """grpc.aio server hosting the SEO and Page services."""

    def __init__(self, controller: Controller, metrics: MetricsCollector, port: int, host: str = "[::]"):
        self.controller = controller
        self.metrics = metrics
        self.host = host
        self.port = port
        self.server: Optional[grpc.aio.Server] = None

    async def start(self) -> int:
        """Start serving; returns the bound port (useful when port is 0)."""
        self.server = grpc.aio.server()
        self.server.add_generic_rpc_handlers(build_handlers(self.controller, self.metrics))
        bound = self.server.add_insecure_port(f"{self.host}:{self.port}")
        await self.server.start()
        logger.info("gRPC server started", port=bound)
        return bound

    async def stop(self, grace: float = 5.0) -> None:
        if self.server is not None:
            await self.server.stop(grace)
            logger.info("gRPC server stopped")


class JSONStub:
    """Minimal client for the JSON-encoded services."""

    def __init__(self, channel: grpc.aio.Channel):
        self.channel = channel

    async def call(self, service: str, method: str, message: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        rpc = self.channel.unary_unary(
            f"/{service}/{method}",
            request_serializer=serialize,
            response_deserializer=json.loads,
        )
        return await rpc(message, timeout=timeout)
