from collections.abc import Sequence
from typing import Any, Protocol

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class ComponentError(Protocol):
    code: str
    message: str
    status: int


def raise_for_errors(errors: Sequence[ComponentError]) -> None:
    """Turn the first component error into an HTTPException."""
    if errors:
        err = errors[0]
        raise HTTPException(
            status_code=err.status, detail={"code": err.code, "message": err.message}
        )


def rest_error_body(code: str, message: str, status: int) -> dict[str, Any]:
    return {"code": code, "message": message, "data": {"status": status}}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict) and "code" in detail:
        body = rest_error_body(str(detail["code"]), str(detail.get("message", "")), exc.status_code)
    elif exc.status_code in (404, 405):
        body = rest_error_body(
            "rest_no_route",
            "No route was found matching the URL and request method.",
            exc.status_code,
        )
    else:
        body = rest_error_body("rest_error", str(detail), exc.status_code)
    return JSONResponse(body, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    names = sorted({str(e["loc"][-1]) for e in exc.errors() if e.get("loc")})
    message = f"Invalid parameter(s): {', '.join(names)}" if names else "Invalid parameter(s)."
    return JSONResponse(rest_error_body("rest_invalid_param", message, 400), status_code=400)
