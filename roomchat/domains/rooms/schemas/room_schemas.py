"""Room schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _not_blank(value: str, field: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be blank")
    return value


class Pagination(BaseModel):
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=20, ge=1, le=100)


class RoomCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=4096)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return _not_blank(value, "name")


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=4096)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        # Omitted means unchanged; present means a real name.
        if value is None:
            return value
        return _not_blank(value, "name")


class JoinRoomRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=64)


class UsernameUpdate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    user_id: Optional[int] = None


class MessageCreate(BaseModel):
    body: str = Field(min_length=1, max_length=4096)

    @field_validator("body")
    @classmethod
    def _strip_body(cls, value: str) -> str:
        return _not_blank(value, "body")


class RoomSearchParams(Pagination):
    pass


class MessageListParams(Pagination):
    per_page: int = Field(default=50, ge=1, le=200)
