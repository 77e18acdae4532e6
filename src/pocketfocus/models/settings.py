"""Application-level settings stored in the database."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class AppSetting(SQLModel, table=True):
    """Key-value storage for small persisted preferences and serialized records."""

    __tablename__: ClassVar[str] = "app_setting"

    key: str = Field(primary_key=True, max_length=128)
    value: str = Field(nullable=False, max_length=4096)
    description: Optional[str] = Field(default=None, max_length=255)


def user_setting_key(key: str, user_id: int | None) -> str:
    """Namespace ``key`` for a user; anonymous callers share the bare key."""

    if user_id is None:
        return key
    return f"user_{user_id}_{key}"
