"""Common API response envelopes."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class StatusCode:
    SUCCESS = 0
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_ERROR = 500


class BaseResponse(BaseModel, Generic[T]):
    code: int = Field(..., description="Status code, 0 on success")
    msg: str = Field(..., description="Human-readable message")
    data: Optional[T] = Field(None, description="Response payload")


class SuccessResponse(BaseResponse[T], Generic[T]):
    code: int = Field(default=StatusCode.SUCCESS, description="Status code")

    @classmethod
    def create(cls, data: Any = None, msg: str = "success") -> "SuccessResponse":
        return cls(code=StatusCode.SUCCESS, msg=msg, data=data)


class ErrorResponse(BaseResponse[Any]):
    @classmethod
    def create(cls, code: int, msg: str, data: Any = None) -> "ErrorResponse":
        return cls(code=code, msg=msg, data=data)


class AppInfoData(BaseModel):
    name: str = Field(..., description="Application name")
    version: str = Field(..., description="Application version")
