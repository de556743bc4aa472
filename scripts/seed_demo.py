#!/usr/bin/env python3
"""Seed the database with demo licenses and a few chatbot conversations.

Usage:
    python scripts/seed_demo.py
"""

import asyncio
from datetime import datetime, timedelta, timezone

from insight_engine.common.config import get_settings
from insight_engine.common.database import DatabaseManager
from insight_engine.ingestion.schemas import ChatbotEventPayload
from insight_engine.ingestion.service import IngestionService
from insight_engine.licensing.service import LicensingService
from insight_engine.sessions.service import SessionService

DEMO_LICENSES = [
    {"license_key": "DEMO-CHAT-0001", "product_type": "chatbot", "plan": "pro",
     "domain": "shop.example.com", "subscription_status": "active", "status": "active"},
    {"license_key": "DEMO-CHAT-0002", "product_type": "chatbot", "plan": "basic",
     "domain": "blog.example.org", "subscription_status": "active", "status": "active"},
    {"license_key": "DEMO-SETUP-0001", "product_type": "setup-agent", "plan": "enterprise",
     "domain": "corp.example.net", "subscription_status": "canceled", "status": "trial"},
]

DEMO_TURNS = [
    ("Hi, do you ship to Canada?", "Yes, we ship to Canada within 5 business days."),
    ("How much is shipping?", "Shipping is free on orders over $50."),
]


async def seed_demo() -> None:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.init()
    await db.create_all()

    licensing = LicensingService(settings)
    ingestion = IngestionService(settings, licensing, SessionService(settings))
    now = datetime.now(timezone.utc)

    async with db.get_session() as session:
        for seed in DEMO_LICENSES:
            if await licensing.get_license_by_key(session, seed["license_key"]):
                print(f"  [skip] {seed['license_key']} already exists")
                continue
            await licensing.create_license(
                session, created_at=now - timedelta(days=10), **seed,
            )
            print(f"  [created] {seed['license_key']} ({seed['product_type']})")

        for day in range(5):
            for lic in DEMO_LICENSES[:2]:
                session_id = f"{lic['license_key']}-s{day}"
                if await ingestion.sessions.session_summary(session, session_id):
                    continue
                start = now - timedelta(days=day, hours=2)
                for turn, (question, answer) in enumerate(DEMO_TURNS):
                    ts = start + timedelta(minutes=3 * turn)
                    for role, content, offset in (("user", question, 0), ("assistant", answer, 20)):
                        payload = ChatbotEventPayload(
                            session_id=session_id,
                            license_key=lic["license_key"],
                            domain=lic["domain"],
                            role=role,
                            content=content,
                            timestamp=ts + timedelta(seconds=offset),
                        )
                        await ingestion.ingest(session, payload, now=ts)
        print("  [created] demo conversations")

    await db.close()
    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(seed_demo())
