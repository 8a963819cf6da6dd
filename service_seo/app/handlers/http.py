"""
HTTP adapter: FastAPI routes over the controller.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.errors import ErrorResponse, InternalError, ServiceException
from shared.logging import get_logger
from shared.tracing import trace_operation
from ..controller import Controller
from ..models import SEO, SEOList, Page, PageList
from . import validation

STATUS_BY_CODE = {
    "INVALID_ARGUMENT": 400,
    "NOT_FOUND": 404,
    "ALREADY_EXISTS": 409,
    "INTERNAL": 500,
}

_CODE_BY_HTTP_STATUS = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}

logger = get_logger("seo.handler.http")


def create_router(controller: Controller) -> APIRouter:
    """Build the /api/seo and /api/page routes."""
    router = APIRouter(prefix="/api")

    # SEO

    @router.post("/seo", status_code=201, response_model=SEO)
    async def create_seo(payload: Dict[str, Any] = Body(...)):
        """Create SEO metadata for an entity."""
        with trace_operation("seo.CreateSEO.handler"):
            seo = validation.seo_for_create(payload)
            return await controller.create_seo(seo)

    @router.get("/seo/{params:path}")
    async def get_seo(params: str):
        """Get one SEO record, or every record of an entity type."""
        name, pk = validation.parse_seo_path(params)
        if pk is None:
            with trace_operation("seo.ListSEO.handler", name=name):
                return SEOList(items=await controller.list_seo(name))
        with trace_operation("seo.GetSEO.handler", name=name, pk=pk):
            return await controller.get_seo(name, pk)

    @router.put("/seo/{params:path}", response_model=SEO)
    async def update_seo(params: str, payload: Dict[str, Any] = Body(...)):
        """Replace the metadata of an existing SEO record."""
        name, pk = validation.parse_seo_identity(params)
        with trace_operation("seo.UpdateSEO.handler", name=name, pk=pk):
            fields = validation.seo_fields(payload)
            return await controller.update_seo(name, pk, fields)

    @router.delete("/seo/{params:path}", status_code=204)
    async def delete_seo(params: str):
        """Delete an SEO record."""
        name, pk = validation.parse_seo_identity(params)
        with trace_operation("seo.DeleteSEO.handler", name=name, pk=pk):
            await controller.delete_seo(name, pk)
        return Response(status_code=204)

    # Pages

    @router.get("/page", response_model=PageList)
    async def list_pages():
        """List all pages."""
        with trace_operation("pages.ListPages.handler"):
            return PageList(items=await controller.list_pages())

    @router.post("/page", status_code=201, response_model=Page)
    async def create_page(payload: Dict[str, Any] = Body(...)):
        """Create a page."""
        with trace_operation("pages.CreatePage.handler"):
            page = validation.page_for_create(payload)
            return await controller.create_page(page)

    @router.get("/page/{params:path}", response_model=Page)
    async def get_page(params: str):
        """Get a page by slug."""
        slug = validation.parse_page_path(params)
        with trace_operation("pages.GetPage.handler", slug=slug):
            return await controller.get_page(slug)

    @router.put("/page/{params:path}", response_model=Page)
    async def update_page(params: str, payload: Dict[str, Any] = Body(...)):
        """Replace the content of an existing page."""
        slug = validation.parse_page_path(params)
        with trace_operation("pages.UpdatePage.handler", slug=slug):
            fields = validation.page_fields(payload)
            return await controller.update_page(slug, fields)

    @router.delete("/page/{params:path}", status_code=204)
    async def delete_page(params: str):
        """Delete a page."""
        slug = validation.parse_page_path(params)
        with trace_operation("pages.DeletePage.handler", slug=slug):
            await controller.delete_page(slug)
        return Response(status_code=204)

    return router


def install_error_handlers(app: FastAPI) -> None:
    """Map domain and decoding errors to HTTP responses."""

    @app.exception_handler(ServiceException)
    async def service_exception_handler(request: Request, exc: ServiceException):
        status_code = STATUS_BY_CODE.get(exc.code, 500)
        if isinstance(exc, InternalError):
            logger.error(
                "Request failed",
                operation=exc.operation,
                reason=exc.reason,
                method=request.method,
                path=request.url.path,
            )
        else:
            logger.debug("Request rejected", code=exc.code, message=exc.message, path=request.url.path)
        return JSONResponse(status_code=status_code, content=exc.to_response().model_dump())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug("Failed to decode request", path=request.url.path, errors=len(exc.errors()))
        body = ErrorResponse(code="INVALID_ARGUMENT", message=validation.DECODE_ERROR)
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = _CODE_BY_HTTP_STATUS.get(exc.status_code, "HTTP_ERROR")
        body = ErrorResponse(code=code, message=str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)
