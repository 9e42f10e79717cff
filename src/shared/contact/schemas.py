"""Pydantic schemas for the contact API."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class Submission(BaseModel):
    """An accepted contact submission, as persisted."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    email: str
    message: str
    submitted_at: str = Field(..., alias="submittedAt", description="ISO-8601 UTC, server assigned")


class ContactResponse(BaseModel):
    """Schema for a successful submission."""
    success: bool = True
    message: str = "Message received."


class ContactErrorResponse(BaseModel):
    """Schema for any rejected request."""
    success: bool = False
    error: str
    retry_after: Optional[int] = Field(None, alias="retryAfter")

    model_config = ConfigDict(populate_by_name=True)
