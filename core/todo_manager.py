"""
Todo resource handlers with the ownership guard.

Every operation that reads a user's list or mutates a todo first compares
the authenticated identity with the owning user id; on mismatch the store
is never touched.  Batch operations apply all items inside the request's
transaction, so a failure part-way leaves nothing applied.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import ApiError
from database.helpers import (
    create_todo,
    delete_todos,
    get_todo,
    get_todos_by_ids,
    list_todos_for_user,
)
from database.models import Todo
from utils.schemas import TodoRef, TokenClaims

logger = logging.getLogger(__name__)

TODO_NOT_FOUND = "Todo not found"


class TodoManager:
    async def _owned_todo(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        todo_id: int,
    ) -> Todo:
        todo = await get_todo(session, todo_id)
        if todo is None:
            raise ApiError.not_found(TODO_NOT_FOUND)
        if caller is None or str(todo.user_id) != caller.id:
            logger.warning(
                "Rejected access to todo %s by %s", todo_id, caller.id if caller else None,
            )
            raise ApiError.forbidden("Not allowed to change this todo")
        return todo

    async def _owned_batch(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        refs: Sequence[TodoRef],
    ) -> List[Todo]:
        if not refs:
            raise ApiError.bad_request("Todos are required")
        if caller is None:
            raise ApiError.forbidden("No user or incorrect user id")

        wanted = {ref.id for ref in refs}
        todos = await get_todos_by_ids(session, wanted)
        if len(todos) != len(wanted):
            raise ApiError.not_found(TODO_NOT_FOUND)
        if any(str(todo.user_id) != caller.id for todo in todos):
            logger.warning("Rejected batch on foreign todos by %s", caller.id)
            raise ApiError.forbidden("Not allowed to change these todos")
        return todos

    async def list_for_user(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        user_id: str,
    ) -> Sequence[Todo]:
        if caller is None or caller.id != user_id:
            raise ApiError.forbidden("No user or incorrect user id")
        return await list_todos_for_user(session, user_id)

    async def get_one(self, session: AsyncSession, todo_id: int) -> Todo:
        todo = await get_todo(session, todo_id)
        if todo is None:
            raise ApiError.not_found(TODO_NOT_FOUND)
        return todo

    async def create(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        text: Optional[str],
        completed: Optional[bool],
        user_id: Optional[str],
    ) -> Todo:
        if not text:
            raise ApiError.bad_request("Text is required")
        if caller is None or user_id != caller.id:
            raise ApiError.bad_request("userId wrong")
        return await create_todo(session, caller.id, text, bool(completed))

    async def update(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        todo_id: int,
        text: Optional[str] = None,
        completed: Optional[bool] = None,
    ) -> Todo:
        todo = await self._owned_todo(session, caller, todo_id)
        if text is not None:
            todo.text = text
        if completed is not None:
            todo.completed = completed
        await session.flush()
        return todo

    async def delete(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        todo_id: int,
    ) -> Todo:
        todo = await self._owned_todo(session, caller, todo_id)
        await delete_todos(session, [todo])
        return todo

    async def toggle_all(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        refs: Sequence[TodoRef],
    ) -> List[Todo]:
        """Set each referenced todo's ``completed`` to the value sent for it."""
        todos = await self._owned_batch(session, caller, refs)
        wanted: Dict[int, bool] = {ref.id: ref.completed for ref in refs}
        for todo in todos:
            todo.completed = wanted[todo.id]
        await session.flush()
        return todos

    async def clear_completed(
        self,
        session: AsyncSession,
        caller: Optional[TokenClaims],
        refs: Sequence[TodoRef],
    ) -> List[int]:
        """Delete the referenced todos; the whole batch fails if any is open."""
        todos = await self._owned_batch(session, caller, refs)
        if not all(ref.completed for ref in refs) or not all(t.completed for t in todos):
            raise ApiError.bad_request("There are not completed todos")
        deleted = await delete_todos(session, todos)
        logger.info("Cleared %d completed todos for %s", len(deleted), caller.id)
        return deleted
