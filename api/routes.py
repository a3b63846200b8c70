"""
Todo REST routes.

Route prefix: /api/todo.  Every route except ``GET /getOne/{todo_id}``
requires a Bearer access token.  Static paths (``toggleAll``,
``clearCompleted``, ``getOne``) are declared before the parametrised ones.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import get_current_user
from core.todo_manager import TodoManager
from database.session import get_db_session
from utils.schemas import (
    MAX_TODO_ID,
    CamelModel,
    TodoBatchRequest,
    TodoRead,
    TokenClaims,
)

router = APIRouter(tags=["todo"])

TodoId = Annotated[int, Path(gt=0, le=MAX_TODO_ID)]


def get_todo_manager(request: Request) -> TodoManager:
    return request.app.state.todo_manager


class TodoCreateRequest(CamelModel):
    text: Optional[str] = None
    completed: Optional[bool] = None
    user_id: Optional[str] = None


class TodoUpdateRequest(CamelModel):
    text: Optional[str] = None
    completed: Optional[bool] = None


@router.put("/toggleAll", response_model=List[TodoRead])
async def toggle_all(
    req: TodoBatchRequest,
    session: AsyncSession = Depends(get_db_session),
    user: Optional[TokenClaims] = Depends(get_current_user),
    manager: TodoManager = Depends(get_todo_manager),
):
    return await manager.toggle_all(session, user, req.todos)


@router.post("/clearCompleted", response_model=List[int])
async def clear_completed(
    req: TodoBatchRequest,
    session: AsyncSession = Depends(get_db_session),
    user: Optional[TokenClaims] = Depends(get_current_user),
    manager: TodoManager = Depends(get_todo_manager),
):
    return await manager.clear_completed(session, user, req.todos)


@router.get("/getOne/{todo_id}", response_model=TodoRead)
async def get_one(
    todo_id: TodoId,
    session: AsyncSession = Depends(get_db_session),
    manager: TodoManager = Depends(get_todo_manager),
):
    return await manager.get_one(session, todo_id)


@router.get("/{user_id}", response_model=List[TodoRead])
async def list_todos(
    user_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: Optional[TokenClaims] = Depends(get_current_user),
    manager: TodoManager = Depends(get_todo_manager),
):
    """All todos owned by ``user_id``; only that user may ask."""
    return await manager.list_for_user(session, user, user_id)


@router.post("/", response_model=TodoRead, status_code=status.HTTP_201_CREATED)
async def add_todo(
    req: TodoCreateRequest,
    session: AsyncSession = Depends(get_db_session),
    user: Optional[TokenClaims] = Depends(get_current_user),
    manager: TodoManager = Depends(get_todo_manager),
):
    return await manager.create(session, user, req.text, req.completed, req.user_id)


@router.put("/{todo_id}", response_model=TodoRead)
async def update_todo(
    todo_id: TodoId,
    req: TodoUpdateRequest,
    session: AsyncSession = Depends(get_db_session),
    user: Optional[TokenClaims] = Depends(get_current_user),
    manager: TodoManager = Depends(get_todo_manager),
):
    return await manager.update(session, user, todo_id, req.text, req.completed)


@router.delete("/{todo_id}", response_model=TodoRead)
async def delete_todo(
    todo_id: TodoId,
    session: AsyncSession = Depends(get_db_session),
    user: Optional[TokenClaims] = Depends(get_current_user),
    manager: TodoManager = Depends(get_todo_manager),
):
    return await manager.delete(session, user, todo_id)
