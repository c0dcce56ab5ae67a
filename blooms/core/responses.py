from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ApiResponse(BaseModel):
    success: bool
    message: str | None = None
    data: Any = None


def success_response(data: Any = None, message: str | None = None) -> dict:
    return ApiResponse(success=True, message=message, data=data).model_dump(mode="json")


def error_response(status_code: int, message: str) -> JSONResponse:
    body = ApiResponse(success=False, message=message).model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=body)
