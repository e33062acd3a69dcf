"""Standard API response envelope."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """统一响应包装：{"code", "message", "data"}；错误响应见 exceptions.py。"""

    code: int = 200
    message: str = "OK"
    data: T | None = None

    @classmethod
    def success(cls, data: T | None = None, message: str = "OK") -> "ApiResponse[T]":
        return cls(data=data, message=message)
