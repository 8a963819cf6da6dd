"""
Request validation shared by the HTTP and gRPC adapters.

Everything here raises ``InvalidArgumentError``; the controller never sees
blank identity fields or malformed payloads.
"""

from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from shared.errors import InvalidArgumentError
from ..models import SEO, SEOCreateRequest, SEOFields, Page, PageCreateRequest, PageFields, check_identity

M = TypeVar("M", bound=BaseModel)

DECODE_ERROR = "failed to decode request"


def _errors(exc: ValidationError) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def _parse(model: Type[M], payload: Any) -> M:
    if not isinstance(payload, dict):
        raise InvalidArgumentError(DECODE_ERROR, {"reason": "expected a JSON object"})
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidArgumentError("failed to validate obj", {"errors": _errors(e)}) from e


def require(value: Any, field: str) -> str:
    """Return a non-blank identity component, stripped."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{DECODE_ERROR}, missing {field}", {"field": field})
    try:
        return check_identity(value)
    except ValueError as e:
        raise InvalidArgumentError(f"{DECODE_ERROR}, invalid {field}", {"field": field, "reason": str(e)}) from e


def parse_seo_path(params: str) -> Tuple[str, Optional[str]]:
    """Split '<name>' or '<name>/<pk>' taken from an URL path."""
    parts = params.strip("/").split("/") if params.strip("/") else []
    if len(parts) == 1:
        return require(parts[0], "name"), None
    if len(parts) == 2:
        return require(parts[0], "name"), require(parts[1], "pk")
    raise InvalidArgumentError(f"{DECODE_ERROR}, missing name or pk", {"path": params})


def parse_page_path(params: str) -> str:
    """Extract a slug from an URL path."""
    parts = params.strip("/").split("/") if params.strip("/") else []
    if len(parts) != 1:
        raise InvalidArgumentError(f"{DECODE_ERROR}, missing slug", {"path": params})
    return require(parts[0], "slug")


def seo_for_create(payload: Any) -> SEO:
    """Validated SEO record from a create payload carrying its own identity."""
    request = _parse(SEOCreateRequest, payload)
    return SEO(**request.model_dump())


def seo_fields(payload: Any) -> SEOFields:
    """Validated SEO metadata from an update payload."""
    return _parse(SEOFields, payload)


def page_for_create(payload: Any) -> Page:
    """Validated page from a create payload, deriving the slug when omitted."""
    request = _parse(PageCreateRequest, payload)
    slug = request.resolved_slug()
    if not slug:
        raise InvalidArgumentError("failed to validate obj", {"errors": [
            {"field": "slug", "message": "slug is empty and cannot be derived from title"}
        ]})
    data = request.model_dump(exclude={"slug"})
    try:
        return Page(slug=slug, **data)
    except ValidationError as e:
        raise InvalidArgumentError("failed to validate obj", {"errors": _errors(e)}) from e


def page_fields(payload: Any) -> PageFields:
    """Validated page content from an update payload."""
    return _parse(PageFields, payload)


def parse_seo_identity(params: str) -> Tuple[str, str]:
    """Split '<name>/<pk>' taken from an URL path; both parts are required."""
    name, pk = parse_seo_path(params)
    if pk is None:
        raise InvalidArgumentError(f"{DECODE_ERROR}, missing name or pk", {"path": params})
    return name, pk
