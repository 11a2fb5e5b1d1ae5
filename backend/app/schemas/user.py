"""
Foundation API Backend — User Admin Schemas
=============================================

What:  Explicit request/response models for the users admin controller.
How:   Passed to @admin_controller in place of the column-derived models;
       they add the email format and image URL checks.
"""

import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, HttpUrl, field_validator


def _url_string(value: HttpUrl) -> str:
    url = str(value)
    if len(url) > 2048:
        raise ValueError("URL must be at most 2048 characters")
    return url


ImageUrl = Annotated[HttpUrl, AfterValidator(_url_string)]


class CreateUser(BaseModel):
    email: EmailStr = Field(description="Login email; unique among active users")
    name: Optional[str] = Field(default=None, max_length=255)
    email_verified: bool = Field(default=False)
    image: Optional[ImageUrl] = Field(default=None, description="Avatar URL")

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v: str) -> str:
        if len(v) > 255:
            raise ValueError("Email must be at most 255 characters")
        return v


class UpdateUser(BaseModel):
    """Partial update: omitted fields keep their stored values."""

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, max_length=255)
    email_verified: Optional[bool] = None
    image: Optional[ImageUrl] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("Email cannot be null")
        if len(v) > 255:
            raise ValueError("Email must be at most 255 characters")
        return v

    @field_validator("email_verified")
    @classmethod
    def validate_email_verified(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("email_verified cannot be null")
        return v


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    email_verified: bool
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
