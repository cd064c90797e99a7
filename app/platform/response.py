from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    message: str = "OK",
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    JSON envelope for the /api/v1 routes and the app-wide error handlers:
    {"status_code", "status", "message", "data"}.
    The pages and the sync route answer with their own shapes.
    """
    content = {
        "status_code": status_code,
        "status": "error" if status_code >= status.HTTP_400_BAD_REQUEST else "success",
        "message": message,
        "data": jsonable_encoder(data) if data is not None else {},
    }
    return JSONResponse(status_code=status_code, content=content)
