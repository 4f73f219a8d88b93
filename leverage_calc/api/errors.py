from typing import Any, Dict, Mapping, Optional

from fastapi.responses import JSONResponse


def error_response(
    *,
    status_code: int,
    code: str,
    detail: str,
    context: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Return a consistent error payload for API responses."""
    payload: Dict[str, Any] = {"error": code, "detail": detail}
    if context:
        payload["context"] = context
    return JSONResponse(status_code=status_code, content=payload)


def field_errors_response(errors: Mapping[str, str]) -> JSONResponse:
    """400 payload listing every invalid form field and its message."""
    fields = dict(errors)
    return error_response(
        status_code=400,
        code="validation_error",
        detail="; ".join(fields[key] for key in sorted(fields)),
        context={"fields": fields},
    )
