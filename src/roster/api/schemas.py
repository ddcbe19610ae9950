"""Response envelope shared by every endpoint."""

from typing import Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Successful response envelope: ``{"success": true, "data": ...}``."""

    success: bool = True
    data: T


class MessageData(BaseModel):
    """Payload for endpoints that only report an outcome."""

    message: str


def ok(data: T) -> SuccessResponse[T]:
    """Wrap data in the success envelope."""
    return SuccessResponse(data=data)
