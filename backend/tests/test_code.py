"""Tests for code tools and code projects."""

from polymath.services.code_assistant import ANALYZE_PROMPT


async def test_generate_uses_language_in_system_prompt(client, alice_headers, fake_llm):
    fake_llm.reply = "print('hi')"
    response = await client.post(
        "/code/generate",
        json={"description": "print hi", "language": "python"},
        headers=alice_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["code"] == "print('hi')"
    assert body["language"] == "python"
    assert body["timestamp"]

    system, user = fake_llm.calls[0]["messages"]
    assert system["role"] == "system"
    assert "Write code in python" in system["content"]
    assert user == {"role": "user", "content": "print hi"}


async def test_generate_defaults_to_javascript(client, alice_headers):
    response = await client.post("/code/generate", json={"description": "add two numbers"}, headers=alice_headers)
    assert response.json()["language"] == "javascript"


async def test_analyze_wraps_code_and_issues(client, alice_headers, fake_llm):
    response = await client.post(
        "/code/analyze",
        json={"code": "x = 1/0", "language": "python", "issues": "division"},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"analysis": fake_llm.reply}

    system, user = fake_llm.calls[0]["messages"]
    assert system["content"] == ANALYZE_PROMPT.format(language="python")
    assert user["content"] == "Code:\n```python\nx = 1/0\n```\n\nSpecific issues to check: division"


async def test_explain(client, alice_headers, fake_llm):
    response = await client.post(
        "/code/explain",
        json={"code": "SELECT 1", "language": "sql"},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"explanation": fake_llm.reply}
    assert fake_llm.calls[0]["messages"][1]["content"] == "Explain this sql code:\n```sql\nSELECT 1\n```"


async def test_provider_failure_is_bad_gateway(client, alice_headers, fake_llm):
    fake_llm.fail = True
    response = await client.post("/code/explain", json={"code": "x", "language": "python"}, headers=alice_headers)
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to explain code"


async def test_project_crud(client, alice_headers):
    created = await client.post(
        "/code/projects",
        json={"name": "Landing page", "language": "html"},
        headers=alice_headers,
    )
    assert created.status_code == 201
    project_id = created.json()["id"]
    assert created.json()["name"] == "Landing page"

    file_created = await client.post(
        f"/code/projects/{project_id}/files",
        json={"filename": "index.html", "content": "<h1>Hi</h1>", "language": "html"},
        headers=alice_headers,
    )
    assert file_created.status_code == 201

    project = (await client.get(f"/code/projects/{project_id}", headers=alice_headers)).json()
    assert project["language"] == "html"
    assert [f["filename"] for f in project["files"]] == ["index.html"]

    updated = await client.patch(
        f"/code/projects/{project_id}",
        json={"description": "Marketing site"},
        headers=alice_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Landing page"
    assert updated.json()["description"] == "Marketing site"

    listed = await client.get("/code/projects", headers=alice_headers)
    assert [p["id"] for p in listed.json()] == [project_id]

    deleted = await client.delete(f"/code/projects/{project_id}", headers=alice_headers)
    assert deleted.status_code == 204
    assert (await client.get(f"/code/projects/{project_id}", headers=alice_headers)).status_code == 404


async def test_foreign_project_is_not_found(client, alice_headers, bob_headers):
    created = await client.post("/code/projects", json={"name": "Secret"}, headers=alice_headers)
    project_id = created.json()["id"]

    assert (await client.get(f"/code/projects/{project_id}", headers=bob_headers)).status_code == 404
    assert (await client.delete(f"/code/projects/{project_id}", headers=bob_headers)).status_code == 404
    assert (await client.get(f"/code/projects/{project_id}/files", headers=bob_headers)).status_code == 404

    response = await client.post(
        "/code/generate",
        json={"description": "x", "project_id": project_id},
        headers=bob_headers,
    )
    assert response.status_code == 404
