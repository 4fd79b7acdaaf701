"""API schemas."""

from .base import AppInfoData, ErrorResponse, StatusCode, SuccessResponse

__all__ = [
    "AppInfoData",
    "ErrorResponse",
    "StatusCode",
    "SuccessResponse",
]
