"""Integration tests for license listing and the custom product registry."""

from sqlalchemy import text


class TestHealthEndpoint:
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "insight-engine"


class TestLicenseEndpoints:
    async def test_create_license(self, client, master_headers):
        resp = await client.post("/api/licenses", json={
            "licenseKey": "LIC-A", "productType": "chatbot", "plan": "pro",
            "domain": "shop.example.com",
        }, headers=master_headers)
        assert resp.status_code == 201
        data = resp.json()
        assert data["licenseKey"] == "LIC-A"
        assert data["status"] == "active"
        assert data["usedAt"] is None

    async def test_create_requires_master(self, client, auth_headers):
        resp = await client.post(
            "/api/licenses", json={"licenseKey": "LIC-X"}, headers=auth_headers("LIC-A"),
        )
        assert resp.status_code == 403

    async def test_duplicate_key(self, client, master_headers):
        await client.post("/api/licenses", json={"licenseKey": "LIC-A"}, headers=master_headers)
        resp = await client.post("/api/licenses", json={"licenseKey": "LIC-A"}, headers=master_headers)
        assert resp.status_code == 409
        assert resp.json() == {"error": "License key already exists"}

    async def test_list_scoped(self, client, seed, master_headers, auth_headers):
        await seed.license("LIC-A", product_type="chatbot")
        await seed.license("LIC-B", product_type="sales-agent", status="trial")

        resp = await client.get("/api/licenses", headers=master_headers)
        assert resp.json()["total"] == 2

        resp = await client.get("/api/licenses", headers=auth_headers("LIC-B"))
        data = resp.json()
        assert data["total"] == 1
        assert data["items"][0]["licenseKey"] == "LIC-B"

    async def test_list_filters(self, client, seed, master_headers):
        await seed.license("LIC-A", product_type="chatbot")
        await seed.license("LIC-B", product_type="chatbot", status="trial")
        resp = await client.get(
            "/api/licenses", params={"status": "trial"}, headers=master_headers,
        )
        assert [i["licenseKey"] for i in resp.json()["items"]] == ["LIC-B"]


class TestCustomProductEndpoints:
    async def _source_table(self):
        from insight_engine.deps import get_db
        async with get_db().get_session() as session:
            await session.execute(text(
                "CREATE TABLE quiz_results ("
                "id INTEGER PRIMARY KEY, license_key TEXT, user_id TEXT, created_at TEXT)"
            ))
            await session.execute(text(
                "INSERT INTO quiz_results (license_key, user_id, created_at) VALUES "
                "('LIC-Q', 'u1', '2026-02-01 08:00:00'), "
                "('LIC-Q', 'u2', '2026-02-02 08:00:00'), "
                "('LIC-R', 'u3', '2026-02-03 08:00:00')"
            ))

    async def test_register_and_report(self, client, master_headers, auth_headers):
        await self._source_table()
        resp = await client.post("/api/licenses/custom-product", json={
            "licenseKey": "LIC-Q",
            "productType": "quiz",
            "customerEmail": "q@example.com",
            "tableName": "quiz_results",
            "name": "Quiz Builder",
        }, headers=master_headers)
        assert resp.status_code == 201
        assert resp.json()["tableName"] == "quiz_results"

        resp = await client.get("/api/custom-product/quiz", headers=auth_headers("LIC-Q"))
        assert resp.status_code == 200
        data = resp.json()
        assert data["productName"] == "Quiz Builder"
        assert data["stats"]["total_entries"] == 2
        assert data["stats"]["unique_users"] == 2
        assert data["stats"]["last_activity"] == "2026-02-02 08:00:00"
        assert len(data["data"]) == 2

    async def test_register_requires_master(self, client, auth_headers):
        resp = await client.post("/api/licenses/custom-product", json={
            "licenseKey": "LIC-Q", "productType": "quiz",
            "customerEmail": "q@example.com", "tableName": "quiz_results",
        }, headers=auth_headers("LIC-A"))
        assert resp.status_code == 403

    async def test_register_rejects_bad_table(self, client, master_headers):
        resp = await client.post("/api/licenses/custom-product", json={
            "licenseKey": "LIC-Q", "productType": "quiz",
            "customerEmail": "q@example.com", "tableName": "quiz; DROP TABLE licenses",
        }, headers=master_headers)
        assert resp.status_code == 400

    async def test_register_duplicate_license_key(self, client, seed, master_headers):
        await seed.license("LIC-Q")
        resp = await client.post("/api/licenses/custom-product", json={
            "licenseKey": "LIC-Q", "productType": "quiz",
            "customerEmail": "q@example.com", "tableName": "quiz_results",
        }, headers=master_headers)
        assert resp.status_code == 409
        assert resp.json() == {"error": "License key already exists"}

    async def test_unknown_product(self, client, master_headers):
        resp = await client.get("/api/custom-product/ghost", headers=master_headers)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Product not found"}
