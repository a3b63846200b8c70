"""
Database helper functions: the credential store and todo queries the
handlers compose.  All of them work on a caller-supplied ``AsyncSession``
and only ``flush``; the request dependency owns the commit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import ApiError
from database.models import RefreshToken, Todo, User

logger = logging.getLogger(__name__)


# ── Users ───────────────────────────────────────────────────────────


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    email: str,
    name: str,
    password_hash: str,
) -> User:
    user = User(email=email, name=name, password_hash=password_hash)
    session.add(user)
    await session.flush()
    return user


# ── Refresh tokens ──────────────────────────────────────────────────


def _dialect_insert(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise ApiError.internal(f"Refresh token upsert is not supported on {dialect}")


async def upsert_refresh_token(session: AsyncSession, user_id: str, token: str) -> None:
    """Create or replace the single stored refresh token for ``user_id``."""
    insert = _dialect_insert(session)
    now = datetime.now(timezone.utc)
    stmt = (
        insert(RefreshToken)
        .values(user_id=user_id, token=token, updated_at=now)
        .on_conflict_do_update(
            index_elements=["user_id"],
            set_={"token": token, "updated_at": now},
        )
    )
    await session.execute(stmt)
    await session.flush()
    logger.debug("Stored refresh token for user %s", user_id)


async def find_refresh_token(session: AsyncSession, token: str) -> Optional[RefreshToken]:
    """Exact-match lookup; a rotated-out token string finds nothing."""
    result = await session.execute(
        select(RefreshToken).where(RefreshToken.token == token)
    )
    return result.scalar_one_or_none()


# ── Todos ───────────────────────────────────────────────────────────


async def get_todo(session: AsyncSession, todo_id: int) -> Optional[Todo]:
    return await session.get(Todo, todo_id)


async def list_todos_for_user(session: AsyncSession, user_id: str) -> Sequence[Todo]:
    result = await session.execute(
        select(Todo).where(Todo.user_id == user_id).order_by(Todo.id.asc())
    )
    return result.scalars().all()


async def create_todo(
    session: AsyncSession,
    user_id: str,
    text: str,
    completed: bool = False,
) -> Todo:
    todo = Todo(user_id=user_id, text=text, completed=completed)
    session.add(todo)
    await session.flush()
    return todo


async def get_todos_by_ids(session: AsyncSession, todo_ids: Iterable[int]) -> List[Todo]:
    ids = list(todo_ids)
    if not ids:
        return []
    result = await session.execute(
        select(Todo).where(Todo.id.in_(ids)).order_by(Todo.id.asc())
    )
    return list(result.scalars().all())


async def delete_todos(session: AsyncSession, todos: Iterable[Todo]) -> List[int]:
    ids = []
    for todo in todos:
        ids.append(todo.id)
        await session.delete(todo)
    await session.flush()
    return ids
