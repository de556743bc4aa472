"""Integration tests for session view endpoints."""

from datetime import timedelta


async def _two_tenants(seed, now):
    await seed.license("LIC-A", domain="a.example.com")
    await seed.license("LIC-B", domain="b.example.com")
    await seed.event("a1", "LIC-A", now - timedelta(minutes=10), domain="a.example.com")
    await seed.event("a1", "LIC-A", now - timedelta(minutes=9), role="assistant",
                     domain="a.example.com", content="hello")
    await seed.event("b1", "LIC-B", now - timedelta(minutes=5), domain="b.example.com")


class TestChatbotSessions:
    async def test_requires_auth(self, client):
        resp = await client.get("/api/dashboard/chatbot/sessions")
        assert resp.status_code == 401

    async def test_master_sees_all(self, client, seed, now, master_headers):
        await _two_tenants(seed, now)
        resp = await client.get("/api/dashboard/chatbot/sessions", headers=master_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert [s["sessionId"] for s in data["sessions"]] == ["b1", "a1"]
        assert data["summary"]["totalSessions"] == 2
        assert data["summary"]["totalMessages"] == 3
        assert data["sessions"][1]["duration"] == 60
        assert data["sessions"][1]["licenseKey"] == "LIC-A"

    async def test_tenant_isolation(self, client, seed, now, auth_headers):
        await _two_tenants(seed, now)
        for view in ("all", "by-domain", "recent"):
            resp = await client.get(
                "/api/dashboard/chatbot/sessions",
                params={"view": view},
                headers=auth_headers("LIC-A"),
            )
            assert resp.status_code == 200
            assert [s["sessionId"] for s in resp.json()["sessions"]] == ["a1"]

    async def test_invalid_view(self, client, master_headers):
        resp = await client.get(
            "/api/dashboard/chatbot/sessions", params={"view": "nope"}, headers=master_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Invalid view")

    async def test_domain_filter(self, client, seed, now, master_headers):
        await _two_tenants(seed, now)
        resp = await client.get(
            "/api/dashboard/chatbot/sessions",
            params={"view": "by-domain", "domain": "b.example.com"},
            headers=master_headers,
        )
        assert [s["sessionId"] for s in resp.json()["sessions"]] == ["b1"]

    async def test_limit(self, client, seed, now, master_headers):
        for i in range(5):
            await seed.event(f"s{i}", "LIC-A", now - timedelta(minutes=i))
        resp = await client.get(
            "/api/dashboard/chatbot/sessions",
            params={"view": "by-domain", "limit": 2},
            headers=master_headers,
        )
        assert [s["sessionId"] for s in resp.json()["sessions"]] == ["s0", "s1"]

    async def test_bad_limit(self, client, master_headers):
        resp = await client.get(
            "/api/dashboard/chatbot/sessions", params={"limit": "many"}, headers=master_headers,
        )
        assert resp.status_code == 400
        assert "limit" in resp.json()["error"]


class TestConversation:
    async def test_messages_oldest_first(self, client, seed, now, auth_headers):
        await _two_tenants(seed, now)
        resp = await client.get("/api/conversations/a1", headers=auth_headers("LIC-A"))
        assert resp.status_code == 200
        messages = resp.json()["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[1]["content"] == "hello"

    async def test_foreign_conversation_is_empty(self, client, seed, now, auth_headers):
        await _two_tenants(seed, now)
        resp = await client.get("/api/conversations/a1", headers=auth_headers("LIC-B"))
        assert resp.json() == {"messages": []}
