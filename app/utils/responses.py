from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.schemas.response_schemas import ApiResponse, ResponseStatus
from app.utils.context import get_request_id


def _envelope(
    request: Request,
    success: bool,
    message: str,
    status_code: int,
    **fields: Any,
) -> JSONResponse:
    # request.state is set by RequestIDMiddleware; the context var covers callers outside it
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    body = ApiResponse(
        success=success,
        status=ResponseStatus.SUCCESS if success else ResponseStatus.ERROR,
        message=message,
        request_id=request_id,
        path=request.url.path,
        **fields,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


class ResponseBuilder:
    """Builds ApiResponse envelopes as JSONResponse objects"""

    @staticmethod
    def success(
        request: Request,
        data: Any = None,
        message: str = "Request successful",
        meta: Optional[Dict[str, Any]] = None,
        status_code: int = status.HTTP_200_OK,
    ) -> JSONResponse:
        return _envelope(request, True, message, status_code, data=data, meta=meta)

    @staticmethod
    def error(
        request: Request,
        message: str = "An error occurred",
        errors: Optional[List[Dict[str, Any]]] = None,
        error_code: Optional[str] = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        meta: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        """Error envelope; ``error_code`` is reported as ``meta.error_code``."""
        meta = dict(meta or {})
        if error_code:
            meta["error_code"] = error_code
        return _envelope(
            request, False, message, status_code, errors=errors, meta=meta or None
        )
