#!/usr/bin/env python3
"""
LEAP live dashboard — watch responses arrive in real time.

Creates a campaign → opens the push stream for it → submits a few
responses → prints every event the stream delivers → shows the overview.
Run with: python examples/live_dashboard.py

Requires: pip install httpx
Backend must be running: leap serve (http://localhost:8000)
"""

import asyncio
import json
import sys
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"

ANSWERS = [
    ("leadership", {"department": "Engineering"}, {"q1": 5, "q2": 4, "q3": 4}),
    ("leadership", {"department": "Sales"}, {"q1": 2, "q2": 3, "q3": 5}),
    ("employee-experience", {"department": "Sales"}, {"nps": 9}),
]


async def watch(client: httpx.AsyncClient, survey_id: str, ready: asyncio.Event):
    """Print push-stream events until cancelled."""
    async with client.stream("GET", "/realtime/stream", params={"surveyId": survey_id}) as r:
        event = None
        async for line in r.aiter_lines():
            if line.startswith("event:"):
                event = line[len("event:"):].strip()
            elif line.startswith("data:"):
                data = json.loads(line[len("data:"):])
                print(f"   ← {event}: {data}")
                if event == "connected":
                    ready.set()


async def main():
    run_id = uuid.uuid4().hex[:6]
    async with httpx.AsyncClient(base_url=BASE, timeout=None) as client:

        # ── Health check ──────────────────────────────────────────────
        print("Checking backend health...")
        try:
            resp = await client.get("/health")
        except httpx.ConnectError:
            print(f"Backend not reachable at {BASE}")
            sys.exit(1)
        health = resp.json()
        print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")
        print(f"  Redis:    {'✓' if health['redis'] == 'ok' else '✗'}")

        # ── Create campaign ───────────────────────────────────────────
        print("\n1. Creating campaign...")
        resp = await client.post("/campaigns", json={
            "company_name": f"Demo Corp {run_id}",
            "target_audience": "managers",
            "modules": ["leadership", "employee-experience"],
            "primary_module": "leadership",
            "participant_count": 10,
        })
        assert resp.status_code == 201, f"Failed: {resp.text}"
        campaign = resp.json()
        print(f"   Campaign: {campaign['id']}")
        print(f"   Survey link: {campaign['survey_url']}")

        # ── Open the push stream ──────────────────────────────────────
        print("\n2. Opening live stream...")
        ready = asyncio.Event()
        watcher = asyncio.create_task(watch(client, campaign["id"], ready))
        await asyncio.wait_for(ready.wait(), timeout=5)

        # ── Submit responses ──────────────────────────────────────────
        print("\n3. Submitting responses...")
        for module, metadata, responses in ANSWERS:
            resp = await client.post("/responses/submit", json={
                "survey_id": campaign["id"],
                "module": module,
                "responses": responses,
                "metadata": metadata,
            })
            assert resp.status_code == 201, f"Failed: {resp.text}"
            print(f"   → {module}: {len(responses)} answer(s)")
            await asyncio.sleep(0.2)

        watcher.cancel()
        try:
            await watcher
        except asyncio.CancelledError:
            pass

        # ── Overview ──────────────────────────────────────────────────
        print("\n4. Overview:")
        resp = await client.get("/analytics/overview", params={"surveyId": campaign["id"]})
        overview = resp.json()
        print(f"   Leadership:          {overview['leadership']:.1f}% positive")
        print(f"   Employee experience: {overview['employee_experience']:.1f}% positive")
        print(f"   Answers stored:      {overview['total_responses']}")


if __name__ == "__main__":
    asyncio.run(main())
