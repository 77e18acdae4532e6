"""Settings repository for app-level key/value pairs."""

from __future__ import annotations

from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.settings import AppSetting, user_setting_key


class SQLModelSettingsRepository:
    """SQLModel-based settings repository, optionally namespaced to one user."""

    def __init__(self, session_factory: Callable[[], Session], *, user_id: int | None = None):
        self.session_factory = session_factory
        self.user_id = user_id

    def _key(self, key: str) -> str:
        return user_setting_key(key, self.user_id)

    def get(self, key: str) -> Optional[AppSetting]:
        with self.session_factory() as session:
            setting = session.exec(select(AppSetting).where(AppSetting.key == self._key(key))).first()
            if setting:
                session.expunge(setting)
            return setting

    def get_value(self, key: str) -> Optional[str]:
        setting = self.get(key)
        return setting.value if setting else None

    def set_value(self, key: str, value: str, description: str | None = None) -> None:
        """Upsert one row; the whole value is written in a single commit."""
        with self.session_factory() as session:
            stored_key = self._key(key)
            setting = session.exec(select(AppSetting).where(AppSetting.key == stored_key)).first()
            if setting:
                setting.value = value
                if description is not None:
                    setting.description = description
            else:
                setting = AppSetting(key=stored_key, value=value, description=description)
            session.add(setting)
            session.commit()

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get_value(key)
        if value is None:
            return default
        return value.strip().lower() in ("true", "1", "yes")

    def set_bool(self, key: str, flag: bool) -> None:
        self.set_value(key, "true" if flag else "false")

    def delete(self, key: str) -> None:
        with self.session_factory() as session:
            setting = session.exec(select(AppSetting).where(AppSetting.key == self._key(key))).first()
            if setting:
                session.delete(setting)
                session.commit()


__all__ = ["SQLModelSettingsRepository"]
