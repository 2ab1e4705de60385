"""Request and response bodies for the JSON API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from litestar.datastructures import UploadFile
from pydantic import BaseModel, ConfigDict, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    username: str = Field(min_length=3, max_length=20)
    password: str = Field(min_length=6)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)


class LoginRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(min_length=1)


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    avatar: str | None = Field(default=None, max_length=1024)


class PasswordChangeRequest(BaseModel):
    old_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class MediaUpdateRequest(BaseModel):
    """Partial update shared by images and posts; omitted fields stay as they are."""

    title: str | None = Field(default=None, max_length=255)
    description: str | None = None
    tags: str | None = Field(default=None, max_length=1000)
    is_public: bool | None = None


class PostCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    image_ids: list[UUID] = Field(min_length=1)
    tags: str = Field(default="", max_length=1000)
    is_public: bool = True


@dataclass
class ImageUploadForm:
    image: UploadFile
    title: str
    description: str = ""
    tags: str = ""
    is_public: bool = True


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    first_name: str
    last_name: str
    avatar: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AuthOut(BaseModel):
    user: UserOut
    token: str
    token_type: str = "bearer"
    expires_in: int


class ImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    url: str
    title: str
    description: str
    tags: str
    is_public: bool
    view_count: int
    width: int
    height: int
    file_size: int
    format: str
    created_at: datetime
    updated_at: datetime


class PostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    description: str
    tags: str
    is_public: bool
    view_count: int
    images: list[ImageOut]
    created_at: datetime
    updated_at: datetime


class VariantOut(BaseModel):
    image_id: UUID
    size: str
    url: str


class MessageOut(BaseModel):
    message: str
