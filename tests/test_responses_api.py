"""Response submission tests — the write path that feeds dashboards.

Learn: A successful submit must (1) store one row per answer, (2) bump
the campaign counter, and (3) reach live dashboards on both transports
after the commit. A rejected submit must reach nobody.
"""

import pytest

from leap.auth.jwt import create_access_token
from leap.config import settings


def _submission(campaign, module="leadership", **answers):
    return {
        "survey_id": campaign["id"],
        "module": module,
        "responses": answers or {"q1": 4, "q2": 5, "q3": 2},
        "metadata": {"department": "Engineering", "role": "manager"},
    }


@pytest.fixture
async def socket_client(hub, campaign):
    """A dashboard socket for the campaign's company, watching its survey."""
    gateway = hub.sockets
    sent = []

    async def record(event, data=None, to=None, **kwargs):
        sent.append((event, data, to))

    gateway.sio.emit = record
    token = create_access_token("dash", company_id=campaign["company_id"])
    await gateway.on_connect("sid-1", {}, {"token": token, "surveyIds": [campaign["id"]]})
    return sent


@pytest.mark.asyncio
async def test_submit_stores_rows(client, campaign):
    resp = await client.post("/api/v1/responses/submit", json=_submission(campaign))
    assert resp.status_code == 201
    data = resp.json()
    assert data["success"] is True
    assert data["count"] == 3
    assert len(data["submission_id"]) == 32

    rows = (await client.get(f"/api/v1/responses/survey/{campaign['id']}")).json()
    assert len(rows["leadership"]) == 3
    assert rows["ai_readiness"] == []
    assert {r["department"] for r in rows["leadership"]} == {"Engineering"}


@pytest.mark.asyncio
async def test_submit_bumps_campaign_counter(client, campaign):
    await client.post("/api/v1/responses/submit", json=_submission(campaign))
    updated = (await client.get(f"/api/v1/campaigns/{campaign['id']}")).json()
    assert updated["response_count"] == 1
    assert updated["completion_rate"] == 25.0


@pytest.mark.asyncio
async def test_submit_notifies_push_stream(client, hub, campaign, open_push):
    _, stream = await open_push(hub.push, campaign["id"])

    await client.post("/api/v1/responses/submit", json=_submission(campaign))

    frame = await stream.__anext__()
    assert frame.startswith("event: response\n")
    assert f'"surveyId": "{campaign["id"]}"' in frame
    assert '"count": 3' in frame


@pytest.mark.asyncio
async def test_submit_notifies_company_sockets(client, campaign, socket_client):
    await client.post("/api/v1/responses/submit", json=_submission(campaign))

    created = [(data, to) for event, data, to in socket_client if event == "response:created"]
    # company room + survey room
    assert len(created) == 2
    data, to = created[0]
    assert to == "sid-1"
    assert data["companyId"] == "acme-corp"
    assert data["module"] == "leadership"


@pytest.mark.asyncio
async def test_out_of_range_answer_is_rejected_silently(
    client, hub, campaign, socket_client, open_push
):
    conn, _ = await open_push(hub.push, campaign["id"])

    resp = await client.post(
        "/api/v1/responses/submit",
        json=_submission(campaign, q1=4, q2=9),
    )

    assert resp.status_code == 422
    assert "q2" in resp.json()["detail"]
    assert conn.transport._queue.qsize() == 0
    assert [e for e, _, _ in socket_client if e == "response:created"] == []


@pytest.mark.asyncio
async def test_employee_experience_uses_zero_to_ten(client, campaign):
    resp = await client.post(
        "/api/v1/responses/submit",
        json=_submission(campaign, module="employee-experience", q1=0, q2=10),
    )
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_submit_for_unknown_campaign(client):
    resp = await client.post(
        "/api/v1/responses/submit",
        json={"survey_id": "ghost-1", "module": "leadership", "responses": {"q1": 4}},
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_submit_requires_answers(client, campaign):
    resp = await client.post(
        "/api/v1/responses/submit",
        json={"survey_id": campaign["id"], "module": "leadership", "responses": {}},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_postgres_mode_skips_inline_notify(
    client, hub, campaign, monkeypatch, open_push
):
    monkeypatch.setattr(settings, "notify_source", "postgres")
    conn, _ = await open_push(hub.push, campaign["id"])

    resp = await client.post("/api/v1/responses/submit", json=_submission(campaign))

    assert resp.status_code == 201
    assert conn.transport._queue.qsize() == 0


@pytest.mark.asyncio
async def test_notify_failure_does_not_fail_submit(client, hub, campaign, monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("hub exploded")

    monkeypatch.setattr(hub, "notify", boom)
    resp = await client.post("/api/v1/responses/submit", json=_submission(campaign))
    assert resp.status_code == 201
