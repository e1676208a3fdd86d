"""RFC 7807 Problem Details error response formatting"""

from typing import Optional, Dict, Any, List
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from hiring_platform.services.exceptions import HierarchyError

ERROR_TYPE_BASE = "https://api.hiring-platform.dev/errors"


class ValidationErrorDetail(BaseModel):
    """Validation error detail for a specific field"""
    field: str
    message: str


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs"""
    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference identifying the specific occurrence")
    errors: Optional[List[ValidationErrorDetail]] = Field(None, description="Validation errors")


def problem(
    status_code: int,
    title: str,
    detail: str,
    error_type: Optional[str] = None,
    instance: Optional[str] = None,
    errors: Optional[List[Dict[str, str]]] = None
) -> Dict[str, Any]:
    """
    Build an RFC 7807 problem body

    Args:
        status_code: HTTP status code
        title: Short error title
        detail: Detailed error message
        error_type: Error type slug (defaults to generic type based on status code)
        instance: Request path or identifier
        errors: List of validation errors with field and message
    """
    error_type_map = {
        400: "validation_error",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        409: "conflict",
        422: "validation_error",
        500: "internal_server_error",
    }

    if not error_type:
        error_type = error_type_map.get(status_code, "error")

    body: Dict[str, Any] = {
        "type": f"{ERROR_TYPE_BASE}/{error_type}",
        "title": title,
        "status": status_code,
        "detail": detail
    }

    if instance:
        body["instance"] = instance

    if errors:
        body["errors"] = errors

    return body


def create_error_response(
    status_code: int,
    title: str,
    detail: str,
    error_type: Optional[str] = None,
    instance: Optional[str] = None,
    errors: Optional[List[Dict[str, str]]] = None
) -> JSONResponse:
    """Create an RFC 7807 compliant error response"""
    return JSONResponse(
        status_code=status_code,
        content=problem(status_code, title, detail, error_type, instance, errors),
        media_type="application/problem+json",
    )


def unauthorized_exception(detail: str = "Authentication required", instance: Optional[str] = None) -> HTTPException:
    """401 raised from dependencies; carries the bearer challenge header"""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=problem(status.HTTP_401_UNAUTHORIZED, "Unauthorized", detail, instance=instance),
        headers={"WWW-Authenticate": "Bearer"},
    )


def validation_exception(detail: str, instance: Optional[str] = None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=problem(status.HTTP_400_BAD_REQUEST, "Validation Error", detail, instance=instance),
    )


async def hierarchy_error_handler(request: Request, exc: HierarchyError) -> JSONResponse:
    """Map domain errors onto problem responses"""
    return create_error_response(
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.detail,
        error_type=exc.error_type,
        instance=request.url.path,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Pass problem bodies through unchanged; wrap plain string details"""
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = problem(exc.status_code, "Error", str(exc.detail), instance=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
        media_type="application/problem+json",
    )
