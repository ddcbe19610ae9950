"""Pydantic schemas for company operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from roster.core.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return None
    v = v.strip()
    return v or None


class CompanyCreate(BaseModel):
    """Schema for creating a company."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Company name is required")
        return v

    _clean_description = field_validator("description")(_blank_to_none)


class CompanyUpdate(BaseModel):
    """Schema for partially updating a company.

    An empty or blank description clears it.
    """

    name: str | None = Field(None, min_length=1, max_length=MAX_NAME_LENGTH)
    description: str | None = Field(None, max_length=MAX_DESCRIPTION_LENGTH)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Company name cannot be empty")
        return v

    _clean_description = field_validator("description")(_blank_to_none)


class CompanyResponse(BaseModel):
    """Schema for company response data."""

    id: UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompanyDeleted(BaseModel):
    """Outcome of a company delete."""

    deleted: CompanyResponse
    message: str
