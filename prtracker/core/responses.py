"""Standardized API response helpers.

Proxy and session endpoints answer errors with one envelope so the dashboard can
show the upstream reason next to its own message:

Error:   {"error": "...", "details": ...}
Success: {"success": true} for session endpoints, upstream bodies verbatim otherwise.
"""

from typing import Any, Optional

from fastapi.responses import JSONResponse


def success_response(status_code: int = 200) -> JSONResponse:
    return JSONResponse(content={"success": True}, status_code=status_code)


def error_response(
    error: str,
    details: Any = None,
    status_code: int = 400,
    url: Optional[str] = None,
) -> JSONResponse:
    content = {"error": error, "details": details}
    if url is not None:
        content["url"] = url
    return JSONResponse(content=content, status_code=status_code)
