"""
Unit tests for the gRPC servicers.
"""

from contextlib import contextmanager

import grpc
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fakes import AbortCalled, FakeContext
from shared.metrics import MetricsCollector
from service_seo.app.cache import MemoryCache
from service_seo.app.controller import Controller
from service_seo.app.handlers.grpc import (
    GRPCServer, JSONStub, PageServicer, SEOServicer, PAGE_SERVICE, SEO_SERVICE, deserialize
)
from service_seo.app.persistence.errors import StoreError
from service_seo.app.persistence.memory import MemoryStore


class TestGRPCServicers:
    """Test cases for SEOServicer and PageServicer."""

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("seo-test")

    @pytest.fixture
    def store(self):
        return MemoryStore()

    @pytest.fixture
    def controller(self, store, metrics):
        return Controller(store, MemoryCache(namespace="test"), ttl_seconds=60, metrics=metrics)

    @pytest.fixture
    def seo(self, controller, metrics):
        return SEOServicer(controller, metrics)

    @pytest.fixture
    def pages(self, controller, metrics):
        return PageServicer(controller, metrics)

    def test_deserialize_rejects_garbage(self):
        """Test that undecodable payloads become None."""
        assert deserialize(b"{not json") is None
        assert deserialize(b"\xff\xfe") is None
        assert deserialize(b'{"name": "product"}') == {"name": "product"}

    @pytest.mark.asyncio
    async def test_seo_lifecycle(self, seo, grpc_context):
        """Test create, get, list, update and delete over RPC."""
        created = await seo.CreateSEO(
            {"name": "product", "pk": "42", "seo": {"title": "Blue Widget"}}, grpc_context
        )
        assert created["title"] == "Blue Widget"

        fetched = await seo.GetSEO({"name": "product", "pk": "42"}, grpc_context)
        assert fetched["name"] == "product"

        listed = await seo.ListSEO({"name": "product"}, grpc_context)
        assert [item["pk"] for item in listed["items"]] == ["42"]

        updated = await seo.UpdateSEO(
            {"name": "product", "pk": "42", "seo": {"title": "Red Widget"}}, grpc_context
        )
        assert updated["title"] == "Red Widget"

        assert await seo.DeleteSEO({"name": "product", "pk": "42"}, grpc_context) == {}

    @pytest.mark.asyncio
    async def test_get_missing_seo(self, seo, metrics):
        """Test NOT_FOUND carries the identity in its message."""
        context = FakeContext()

        with pytest.raises(AbortCalled):
            await seo.GetSEO({"name": "product", "pk": "7"}, context)

        assert context.code == grpc.StatusCode.NOT_FOUND
        assert "pk=7" in context.details
        assert metrics.sample(
            "rpc_requests_total", {"method": "seo.GetSEO.hdl", "status_code": "NOT_FOUND"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_undecodable_request(self, seo):
        """Test that a None request (failed decode) is INVALID_ARGUMENT."""
        context = FakeContext()

        with pytest.raises(AbortCalled):
            await seo.GetSEO(None, context)

        assert context.code == grpc.StatusCode.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_missing_identity(self, pages):
        """Test that a blank slug is INVALID_ARGUMENT."""
        context = FakeContext()

        with pytest.raises(AbortCalled):
            await pages.GetPage({"slug": "  "}, context)

        assert context.code == grpc.StatusCode.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_duplicate_page(self, pages):
        """Test ALREADY_EXISTS."""
        context = FakeContext()
        await pages.CreatePage({"page": {"title": "About Us"}}, context)

        with pytest.raises(AbortCalled):
            await pages.CreatePage({"page": {"slug": "about-us", "title": "Other"}}, context)

        assert context.code == grpc.StatusCode.ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_internal_error_is_generic(self, pages, store):
        """Test that INTERNAL never carries the underlying failure."""
        context = FakeContext()

        with patch.object(store, "list_pages", new_callable=AsyncMock) as mock_list:
            mock_list.side_effect = StoreError("disk full on /var/lib/postgresql")
            with pytest.raises(AbortCalled):
                await pages.ListPages({}, context)

        assert context.code == grpc.StatusCode.INTERNAL
        assert context.details == "internal error"

    @pytest.mark.asyncio
    async def test_deadline_is_forwarded(self, pages, controller):
        """Test that the caller's remaining time becomes the controller timeout."""
        context = FakeContext(remaining=2.5)

        with patch.object(controller, "list_pages", new_callable=AsyncMock) as mock_list:
            mock_list.return_value = []
            await pages.ListPages({}, context)

        mock_list.assert_awaited_once_with(timeout=2.5)


    @pytest.mark.asyncio
    async def test_unexpected_exception_is_internal(self, pages, controller, metrics):
        """Test that non-domain failures are reported and counted as INTERNAL."""
        context = FakeContext()

        with patch.object(controller, "get_page", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = RuntimeError("boom")
            with pytest.raises(AbortCalled):
                await pages.GetPage({"slug": "about-us"}, context)

        assert context.code == grpc.StatusCode.INTERNAL
        assert context.details == "internal error"
        assert metrics.sample(
            "rpc_requests_total", {"method": "pages.GetPage.hdl", "status_code": "INTERNAL"}
        ) == 1.0
        assert metrics.sample(
            "rpc_requests_total", {"method": "pages.GetPage.hdl", "status_code": "OK"}
        ) == 0.0

    @pytest.mark.asyncio
    async def test_only_internal_failures_mark_span(self, pages, controller):
        """Test that rejected requests leave their span clean."""
        spans = []
        escaped = []

        @contextmanager
        def recording_span(op, **attributes):
            span = MagicMock()
            spans.append(span)
            try:
                yield span
            except Exception as exc:
                escaped.append(exc)
                raise

        with patch("service_seo.app.handlers.grpc.trace_operation", recording_span):
            with pytest.raises(AbortCalled):
                await pages.GetPage({"slug": "missing"}, FakeContext())
            with patch.object(controller, "list_pages", new_callable=AsyncMock) as mock_list:
                mock_list.side_effect = RuntimeError("boom")
                with pytest.raises(AbortCalled):
                    await pages.ListPages({}, FakeContext())

        assert escaped == []
        not_found_span, internal_span = spans
        not_found_span.set_status.assert_not_called()
        internal_span.set_attribute.assert_any_call("error", True)


class TestGRPCServer:
    """Round trip through a real grpc.aio server."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        """Test page calls and error statuses over the wire."""
        metrics = MetricsCollector("seo-test")
        controller = Controller(MemoryStore(), MemoryCache(namespace="test"), ttl_seconds=60, metrics=metrics)
        server = GRPCServer(controller, metrics, port=0, host="127.0.0.1")
        port = await server.start()

        try:
            async with grpc.aio.insecure_channel(f"127.0.0.1:{port}") as channel:
                stub = JSONStub(channel)

                created = await stub.call(PAGE_SERVICE, "CreatePage", {"page": {"title": "Hello World"}})
                assert created["slug"] == "hello-world"

                listed = await stub.call(PAGE_SERVICE, "ListPages", {}, timeout=5)
                assert [p["slug"] for p in listed["items"]] == ["hello-world"]

                with pytest.raises(grpc.aio.AioRpcError) as exc_info:
                    await stub.call(SEO_SERVICE, "GetSEO", {"name": "product", "pk": "1"})
                assert exc_info.value.code() == grpc.StatusCode.NOT_FOUND

                garbage = channel.unary_unary(
                    f"/{SEO_SERVICE}/GetSEO",
                    request_serializer=lambda message: b"{not json",
                    response_deserializer=lambda data: data,
                )
                with pytest.raises(grpc.aio.AioRpcError) as exc_info:
                    await garbage({})
                assert exc_info.value.code() == grpc.StatusCode.INVALID_ARGUMENT
        finally:
            await server.stop(0)
