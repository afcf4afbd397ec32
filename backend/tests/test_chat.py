"""Tests for conversations, messages and web-search augmentation."""

from datetime import datetime

from sqlalchemy import func, select

from polymath.db.models import Message


async def create_conversation(client, headers, **body) -> int:
    response = await client.post("/chat/conversations", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()["id"]


async def test_requires_authentication(client):
    response = await client.get("/chat/conversations")
    assert response.status_code == 401

    response = await client.get("/chat/conversations", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_list_models(client, alice_headers):
    response = await client.get("/chat/models", headers=alice_headers)
    assert response.status_code == 200

    models = response.json()
    assert models
    assert {"id", "name", "description", "max_tokens"} <= set(models[0])
    assert "claude-sonnet-4-20250514" in {m["id"] for m in models}


async def test_create_conversation_defaults(client, alice_headers):
    conversation_id = await create_conversation(client, alice_headers)
    assert isinstance(conversation_id, int)

    response = await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["conversation"]["title"] == "New Conversation"
    assert body["conversation"]["model"] == "claude-sonnet-4-20250514"
    assert body["conversation"]["is_favorite"] == 0
    assert body["conversation"]["tags"] == []
    assert body["messages"] == []


async def test_create_conversation_rejects_unknown_model(client, alice_headers):
    response = await client.post("/chat/conversations", json={"model": "gpt-nonexistent"}, headers=alice_headers)
    assert response.status_code == 400


async def test_other_users_conversation_is_not_found(client, alice_headers, bob_headers):
    conversation_id = await create_conversation(client, alice_headers, title="Private")

    response = await client.get(f"/chat/conversations/{conversation_id}", headers=bob_headers)
    assert response.status_code == 404

    response = await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "hi"},
        headers=bob_headers,
    )
    assert response.status_code == 404

    response = await client.delete(f"/chat/conversations/{conversation_id}", headers=bob_headers)
    assert response.status_code == 404

    response = await client.get("/chat/conversations", headers=bob_headers)
    assert response.json()["total"] == 0


async def test_send_message_stores_exchange_and_titles(client, alice_headers, fake_llm):
    conversation_id = await create_conversation(client, alice_headers, title="Test")
    before = (await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)).json()

    response = await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "Hello"},
        headers=alice_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["content"] == fake_llm.reply
    assert body["web_search_results"] is None

    after = (await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)).json()
    messages = after["messages"]
    assert [m["role"] for m in messages] == ["user", "assistant"]
    assert messages[0]["content"] == "Hello"
    assert messages[1]["id"] == body["message_id"]
    assert messages[1]["metadata"]["model"] == "claude-sonnet-4-20250514"
    assert messages[1]["metadata"]["usage"] == {"input_tokens": 12, "output_tokens": 8}

    title = after["conversation"]["title"]
    assert title != "Test"
    assert len(title.split()) <= 6
    assert '"' not in title and "'" not in title

    assert datetime.fromisoformat(after["conversation"]["updated_at"]) > datetime.fromisoformat(
        before["conversation"]["updated_at"]
    )

    # The model saw the stored history, ending with the new user turn
    chat_call = fake_llm.calls[0]
    assert chat_call["messages"] == [{"role": "user", "content": "Hello"}]


async def test_title_is_generated_only_once(client, alice_headers, fake_llm):
    conversation_id = await create_conversation(client, alice_headers)

    for text in ("first", "second"):
        response = await client.post(
            f"/chat/conversations/{conversation_id}/messages",
            json={"message": text},
            headers=alice_headers,
        )
        assert response.status_code == 200

    title_calls = [c for c in fake_llm.calls if "title_for" in c]
    assert title_calls == [{"title_for": "first"}]

    # Second turn sees the whole history
    last_chat_call = [c for c in fake_llm.calls if "messages" in c][-1]
    assert [m["content"] for m in last_chat_call["messages"]] == ["first", fake_llm.reply, "second"]


async def test_failed_title_keeps_existing_title(client, alice_headers, fake_llm):
    fake_llm.fail_title = True
    conversation_id = await create_conversation(client, alice_headers, title="Keep me")

    response = await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "Hello"},
        headers=alice_headers,
    )
    assert response.status_code == 200

    body = (await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)).json()
    assert body["conversation"]["title"] == "Keep me"


async def test_renamed_conversation_is_not_retitled(client, alice_headers, fake_llm):
    conversation_id = await create_conversation(client, alice_headers)
    response = await client.patch(
        f"/chat/conversations/{conversation_id}",
        json={"title": "My own title"},
        headers=alice_headers,
    )
    assert response.status_code == 200

    await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "Hello"},
        headers=alice_headers,
    )

    body = (await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)).json()
    assert body["conversation"]["title"] == "My own title"
    assert not [c for c in fake_llm.calls if "title_for" in c]


async def test_web_search_context_is_not_persisted(client, alice_headers, fake_llm, fake_search):
    conversation_id = await create_conversation(client, alice_headers)

    response = await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "What is Python?", "include_web_search": True},
        headers=alice_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert [r["source"] for r in body["web_search_results"]] == ["duckduckgo", "wikipedia"]
    assert fake_search.queries == ["What is Python?"]

    sent = fake_llm.calls[0]["messages"]
    assert sent[-1]["role"] == "system"
    assert sent[-1]["content"].startswith("Web search results:\n")
    assert "Python: Python is a programming language. (https://example.com/python)" in sent[-1]["content"]

    stored = (await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)).json()
    assert [m["role"] for m in stored["messages"]] == ["user", "assistant"]
    assert stored["messages"][1]["metadata"]["web_search_results"] == 2


async def test_web_search_with_no_results_adds_no_context(client, alice_headers, fake_llm, fake_search):
    fake_search.results = []
    conversation_id = await create_conversation(client, alice_headers)

    response = await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "obscure", "include_web_search": True},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json()["web_search_results"] == []
    assert all(m["role"] != "system" for m in fake_llm.calls[0]["messages"])


async def test_empty_message_is_rejected(client, alice_headers):
    conversation_id = await create_conversation(client, alice_headers)

    for message in ("", "   "):
        response = await client.post(
            f"/chat/conversations/{conversation_id}/messages",
            json={"message": message},
            headers=alice_headers,
        )
        assert response.status_code == 422


async def test_model_failure_keeps_user_message(client, alice_headers, fake_llm):
    fake_llm.fail = True
    conversation_id = await create_conversation(client, alice_headers)

    response = await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "Hello"},
        headers=alice_headers,
    )
    assert response.status_code == 502

    body = (await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)).json()
    assert [m["role"] for m in body["messages"]] == ["user"]


async def test_update_and_search_conversations(client, alice_headers):
    work_id = await create_conversation(client, alice_headers, title="Quarterly Planning")
    await create_conversation(client, alice_headers, title="Holiday ideas")

    response = await client.patch(
        f"/chat/conversations/{work_id}",
        json={"is_favorite": 1, "tags": ["work", "budget"]},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json()["is_favorite"] == 1
    assert response.json()["tags"] == ["work", "budget"]

    by_title = await client.get("/chat/conversations/search", params={"query": "PLANNING"}, headers=alice_headers)
    assert [c["id"] for c in by_title.json()["conversations"]] == [work_id]

    by_tag = await client.get("/chat/conversations/search", params={"query": "budget"}, headers=alice_headers)
    assert [c["id"] for c in by_tag.json()["conversations"]] == [work_id]

    # Most recently updated first
    listed = await client.get("/chat/conversations", headers=alice_headers)
    assert listed.json()["conversations"][0]["id"] == work_id


async def test_update_rejects_invalid_fields(client, alice_headers):
    conversation_id = await create_conversation(client, alice_headers)

    response = await client.patch(
        f"/chat/conversations/{conversation_id}", json={"is_favorite": 2}, headers=alice_headers
    )
    assert response.status_code == 422

    response = await client.patch(
        f"/chat/conversations/{conversation_id}", json={"model": "nope"}, headers=alice_headers
    )
    assert response.status_code == 400

    response = await client.patch("/chat/conversations/9999", json={"title": "x"}, headers=alice_headers)
    assert response.status_code == 404


async def test_delete_conversation_removes_messages(client, alice_headers, session_factory):
    conversation_id = await create_conversation(client, alice_headers)
    await client.post(
        f"/chat/conversations/{conversation_id}/messages",
        json={"message": "Hello"},
        headers=alice_headers,
    )

    response = await client.delete(f"/chat/conversations/{conversation_id}", headers=alice_headers)
    assert response.status_code == 204

    response = await client.get(f"/chat/conversations/{conversation_id}", headers=alice_headers)
    assert response.status_code == 404

    async with session_factory() as session:
        count = await session.scalar(
            select(func.count()).select_from(Message).where(Message.conversation_id == conversation_id)
        )
    assert count == 0

    response = await client.delete(f"/chat/conversations/{conversation_id}", headers=alice_headers)
    assert response.status_code == 404


async def test_web_search_endpoint(client, alice_headers):
    response = await client.get("/chat/web-search", params={"query": "python"}, headers=alice_headers)
    assert response.status_code == 200
    assert len(response.json()) == 2


async def test_me_returns_synced_profile(client, alice_headers):
    response = await client.get("/auth/me", headers=alice_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["open_id"] == "alice-open-id"
    assert body["email"] == "alice@example.com"
    assert body["role"] == "user"


async def test_without_database_reads_are_empty_and_writes_fail(no_database, client, alice_headers):
    response = await client.get("/chat/conversations", headers=alice_headers)
    assert response.status_code == 200
    assert response.json() == {"conversations": [], "total": 0}

    response = await client.get("/advanced/files", headers=alice_headers)
    assert response.json()["total"] == 0

    response = await client.get("/code/projects", headers=alice_headers)
    assert response.json() == []

    response = await client.get("/chat/conversations/1", headers=alice_headers)
    assert response.status_code == 404

    me = await client.get("/auth/me", headers=alice_headers)
    assert me.status_code == 200
    assert me.json()["open_id"] == "alice-open-id"

    response = await client.post("/chat/conversations", json={}, headers=alice_headers)
    assert response.status_code == 503

    response = await client.post("/code/projects", json={"name": "x"}, headers=alice_headers)
    assert response.status_code == 503
