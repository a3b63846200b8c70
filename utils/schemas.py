"""
Pydantic schemas shared by the auth and todo layers.

JSON on the wire is camelCase; Python attributes stay snake_case and both
spellings are accepted on input.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Todo.id is a 32-bit INTEGER column
MAX_TODO_ID = 2**31 - 1


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Tokens
# ═══════════════════════════════════════════════════════════════════════════════


class TokenClaims(BaseModel):
    """Identity carried inside a signed token.  Never persisted."""

    id: str
    email: str
    name: str = ""
    exp: Optional[int] = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class AccessTokenResponse(CamelModel):
    access_token: str


# ═══════════════════════════════════════════════════════════════════════════════
# Todos
# ═══════════════════════════════════════════════════════════════════════════════


class TodoRead(CamelModel):
    id: int
    text: str
    completed: bool
    user_id: str


class TodoRef(CamelModel):
    """A todo as the client sends it inside batch requests."""

    id: int = Field(gt=0, le=MAX_TODO_ID)
    text: Optional[str] = None
    completed: bool = False
    user_id: Optional[str] = None


class TodoBatchRequest(CamelModel):
    todos: List[TodoRef] = Field(default_factory=list)
