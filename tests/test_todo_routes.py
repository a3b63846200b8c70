"""
End-to-end tests for the todo routes and their ownership guard.
"""

import jwt
import pytest
import pytest_asyncio
from sqlalchemy import select

from database.models import Todo


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class _Caller:
    def __init__(self, app, tokens: dict):
        settings = app.state.settings
        self.token = tokens["accessToken"]
        self.id = jwt.decode(
            self.token, settings.access_secret_key, algorithms=[settings.jwt_algorithm],
        )["id"]
        self.headers = _bearer(self.token)


@pytest_asyncio.fixture
async def alice(app, register):
    return _Caller(app, await register(email="alice@example.com", name="Alice"))


@pytest_asyncio.fixture
async def bob(app, register):
    return _Caller(app, await register(email="bob@example.com", name="Bob"))


async def _add(client, caller, text="write tests", completed=False) -> dict:
    resp = await client.post(
        "/api/todo/",
        json={"text": text, "completed": completed, "userId": caller.id},
        headers=caller.headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _stored(app):
    async with app.state.session_factory() as session:
        result = await session.execute(select(Todo).order_by(Todo.id))
        return result.scalars().all()


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_for_self(self, client, alice):
        todo = await _add(client, alice, "buy milk")
        assert todo["text"] == "buy milk"
        assert todo["completed"] is False
        assert todo["userId"] == alice.id
        assert isinstance(todo["id"], int)

    @pytest.mark.asyncio
    async def test_create_for_someone_else(self, client, app, alice, bob):
        resp = await client.post(
            "/api/todo/",
            json={"text": "sneaky", "userId": bob.id},
            headers=alice.headers,
        )
        assert resp.status_code == 400
        assert resp.json() == {"message": "userId wrong"}
        assert await _stored(app) == []

    @pytest.mark.asyncio
    async def test_text_required(self, client, alice):
        resp = await client.post("/api/todo/", json={"userId": alice.id}, headers=alice.headers)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Text is required"}

    @pytest.mark.asyncio
    async def test_requires_token(self, client, app, alice):
        resp = await client.post("/api/todo/", json={"text": "x", "userId": alice.id})
        assert resp.status_code == 401
        assert await _stored(app) == []


class TestRead:
    @pytest.mark.asyncio
    async def test_list_own_todos(self, client, alice, bob):
        await _add(client, alice, "one")
        await _add(client, alice, "two")
        await _add(client, bob, "other")

        resp = await client.get(f"/api/todo/{alice.id}", headers=alice.headers)

        assert resp.status_code == 200
        assert [t["text"] for t in resp.json()] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_list_of_another_user_forbidden(self, client, alice, bob):
        await _add(client, bob, "private")

        resp = await client.get(f"/api/todo/{bob.id}", headers=alice.headers)

        assert resp.status_code == 403
        assert resp.json() == {"message": "No user or incorrect user id"}

    @pytest.mark.asyncio
    async def test_get_one(self, client, alice):
        todo = await _add(client, alice)
        resp = await client.get(f"/api/todo/getOne/{todo['id']}")
        assert resp.status_code == 200
        assert resp.json() == todo

    @pytest.mark.asyncio
    async def test_get_one_missing(self, client):
        resp = await client.get("/api/todo/getOne/999")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Todo not found"}

    @pytest.mark.asyncio
    async def test_get_one_bad_id(self, client):
        resp = await client.get("/api/todo/getOne/abc")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("todo_id", ["99999999999999999999", "2147483648", "0", "-1"])
    async def test_get_one_id_out_of_column_range(self, client, todo_id):
        resp = await client.get(f"/api/todo/getOne/{todo_id}")
        assert resp.status_code == 400
        assert resp.json()["message"].startswith("Invalid todo_id")


class TestUpdateDelete:
    @pytest.mark.asyncio
    async def test_owner_updates_only_given_fields(self, client, alice):
        todo = await _add(client, alice, "draft")

        resp = await client.put(
            f"/api/todo/{todo['id']}", json={"completed": True}, headers=alice.headers,
        )

        assert resp.status_code == 200
        assert resp.json()["completed"] is True
        assert resp.json()["text"] == "draft"

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update(self, client, app, alice, bob):
        todo = await _add(client, alice, "mine")

        resp = await client.put(
            f"/api/todo/{todo['id']}", json={"text": "hacked"}, headers=bob.headers,
        )

        assert resp.status_code == 403
        (stored,) = await _stored(app)
        assert stored.text == "mine"

    @pytest.mark.asyncio
    async def test_update_missing(self, client, alice):
        resp = await client.put("/api/todo/42", json={"text": "x"}, headers=alice.headers)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_owner_deletes(self, client, app, alice):
        todo = await _add(client, alice)

        resp = await client.delete(f"/api/todo/{todo['id']}", headers=alice.headers)

        assert resp.status_code == 200
        assert resp.json()["id"] == todo["id"]
        assert await _stored(app) == []

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, client, app, alice, bob):
        todo = await _add(client, alice)

        resp = await client.delete(f"/api/todo/{todo['id']}", headers=bob.headers)

        assert resp.status_code == 403
        assert len(await _stored(app)) == 1

    @pytest.mark.asyncio
    async def test_forged_token_never_reaches_handler(self, client, app, alice):
        todo = await _add(client, alice)
        forged = jwt.encode(
            {"id": alice.id, "email": "alice@example.com", "name": "Alice", "exp": 9999999999},
            "not-the-access-secret-0123456789abcdef",
            algorithm="HS256",
        )

        resp = await client.delete(f"/api/todo/{todo['id']}", headers=_bearer(forged))

        assert resp.status_code == 401
        assert len(await _stored(app)) == 1

    @pytest.mark.asyncio
    async def test_oversized_id_on_update_and_delete(self, client, app, alice):
        await _add(client, alice)

        update = await client.put(
            "/api/todo/99999999999999999999", json={"text": "x"}, headers=alice.headers,
        )
        delete = await client.delete("/api/todo/99999999999999999999", headers=alice.headers)

        assert (update.status_code, delete.status_code) == (400, 400)
        assert len(await _stored(app)) == 1


class TestToggleAll:
    @pytest.mark.asyncio
    async def test_applies_sent_completion_state(self, client, app, alice):
        first = await _add(client, alice, "a")
        second = await _add(client, alice, "b", completed=True)

        resp = await client.put(
            "/api/todo/toggleAll",
            json={"todos": [{**first, "completed": True}, {**second, "completed": False}]},
            headers=alice.headers,
        )

        assert resp.status_code == 200
        assert {t["id"]: t["completed"] for t in resp.json()} == {
            first["id"]: True,
            second["id"]: False,
        }
        assert [t.completed for t in await _stored(app)] == [True, False]

    @pytest.mark.asyncio
    async def test_empty_batch(self, client, alice):
        resp = await client.put("/api/todo/toggleAll", json={"todos": []}, headers=alice.headers)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Todos are required"}

    @pytest.mark.asyncio
    async def test_foreign_todo_aborts_whole_batch(self, client, app, alice, bob):
        own = await _add(client, alice, "mine")
        foreign = await _add(client, bob, "theirs")

        resp = await client.put(
            "/api/todo/toggleAll",
            json={"todos": [{**own, "completed": True}, {**foreign, "completed": True}]},
            headers=alice.headers,
        )

        assert resp.status_code == 403
        assert [t.completed for t in await _stored(app)] == [False, False]

    @pytest.mark.asyncio
    async def test_ownership_checked_against_store_not_body(self, client, app, alice, bob):
        foreign = await _add(client, bob, "theirs")

        resp = await client.put(
            "/api/todo/toggleAll",
            json={"todos": [{**foreign, "userId": alice.id, "completed": True}]},
            headers=alice.headers,
        )

        assert resp.status_code == 403
        (stored,) = await _stored(app)
        assert stored.completed is False


class TestClearCompleted:
    @pytest.mark.asyncio
    async def test_deletes_completed(self, client, app, alice):
        done = await _add(client, alice, "done", completed=True)
        keep = await _add(client, alice, "keep")

        resp = await client.post(
            "/api/todo/clearCompleted", json={"todos": [done]}, headers=alice.headers,
        )

        assert resp.status_code == 200
        assert resp.json() == [done["id"]]
        assert [t.id for t in await _stored(app)] == [keep["id"]]

    @pytest.mark.asyncio
    async def test_one_open_todo_rejects_batch(self, client, app, alice):
        done = await _add(client, alice, "done", completed=True)
        open_ = await _add(client, alice, "open")

        resp = await client.post(
            "/api/todo/clearCompleted", json={"todos": [done, open_]}, headers=alice.headers,
        )

        assert resp.status_code == 400
        assert resp.json() == {"message": "There are not completed todos"}
        assert len(await _stored(app)) == 2

    @pytest.mark.asyncio
    async def test_stale_body_does_not_bypass_store(self, client, app, alice):
        open_ = await _add(client, alice, "open")

        resp = await client.post(
            "/api/todo/clearCompleted",
            json={"todos": [{**open_, "completed": True}]},
            headers=alice.headers,
        )

        assert resp.status_code == 400
        assert len(await _stored(app)) == 1

    @pytest.mark.asyncio
    async def test_missing_todo(self, client, alice):
        resp = await client.post(
            "/api/todo/clearCompleted",
            json={"todos": [{"id": 123, "completed": True}]},
            headers=alice.headers,
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_oversized_id_in_batch(self, client, alice):
        resp = await client.post(
            "/api/todo/clearCompleted",
            json={"todos": [{"id": 99999999999999999999, "completed": True}]},
            headers=alice.headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"].startswith("Invalid todos.0.id")
