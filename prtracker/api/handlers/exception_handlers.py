from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError


async def bad_request_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error["loc"] if part != "body"]
        field = ".".join(loc) if loc else "body"
        errors.append({"field": field, "message": error["msg"], "type": error["type"]})

    first = errors[0] if errors else None
    if first and first["type"] == "missing":
        message = f"{first['field']} is required"
    else:
        message = "The received data is invalid"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": message,
            "details": [{"field": e["field"], "message": e["message"]} for e in errors],
        },
    )
