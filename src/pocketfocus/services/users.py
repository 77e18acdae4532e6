"""Local owner bootstrap; authentication is handled outside this app."""

from __future__ import annotations

from typing import Callable

from sqlmodel import Session, select

from ..models.user import User

SessionFactory = Callable[[], Session]

LOCAL_USERNAME = "local"


def ensure_local_user(session_factory: SessionFactory, username: str = LOCAL_USERNAME) -> User:
    """Create or return the profile that owns this installation's records."""

    with session_factory() as session:
        user = session.exec(select(User).where(User.username == username)).first()
        if user:
            session.expunge(user)
            return user
        user = User(username=username)
        session.add(user)
        session.commit()
        session.refresh(user)
        session.expunge(user)
        return user


__all__ = ["LOCAL_USERNAME", "ensure_local_user"]
