"""Analytics tests — scoring rules and the dashboard endpoints."""

import pytest

from leap.assessments import ModuleId, assessment_for, positive_percentage


# ═══════════════════════════════════════════════════════════
# Scoring
# ═══════════════════════════════════════════════════════════


def test_positive_percentage_five_point_scale():
    assert positive_percentage([5, 4, 3, 1], ModuleId.LEADERSHIP) == pytest.approx(50.0)


def test_positive_percentage_zero_to_ten_scale():
    assert positive_percentage([10, 7, 6, 0], "employee-experience") == pytest.approx(50.0)


def test_positive_percentage_empty():
    assert positive_percentage([], ModuleId.AI_READINESS) == 0.0


def test_assessment_scales():
    assert assessment_for("ai-readiness").accepts(1)
    assert not assessment_for("ai-readiness").accepts(0)
    assert assessment_for("employee-experience").accepts(0)
    assert not assessment_for("leadership").accepts(6)


def test_unknown_module():
    with pytest.raises(ValueError):
        assessment_for("culture")


# ═══════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════


async def _submit(client, campaign, module, department, **answers):
    resp = await client.post(
        "/api/v1/responses/submit",
        json={
            "survey_id": campaign["id"],
            "module": module,
            "responses": answers,
            "metadata": {"department": department},
        },
    )
    assert resp.status_code == 201


@pytest.fixture
async def answered(client, campaign):
    await _submit(client, campaign, "leadership", "Engineering", q1=5, q2=4)
    await _submit(client, campaign, "leadership", "Sales", q1=2, q2=4)
    await _submit(client, campaign, "employee-experience", "Sales", q1=9)
    return campaign


@pytest.mark.asyncio
async def test_overview(client, answered):
    resp = await client.get("/api/v1/analytics/overview", params={"surveyId": answered["id"]})
    assert resp.status_code == 200
    data = resp.json()
    assert data["leadership"] == pytest.approx(75.0)
    assert data["employee_experience"] == pytest.approx(100.0)
    assert data["ai_readiness"] == 0.0
    assert data["total_responses"] == 5


@pytest.mark.asyncio
async def test_overview_for_other_survey_is_empty(client, answered):
    resp = await client.get("/api/v1/analytics/overview", params={"surveyId": "other-1"})
    assert resp.json()["total_responses"] == 0


@pytest.mark.asyncio
async def test_module_breakdowns(client, answered):
    resp = await client.get("/api/v1/analytics/leadership", params={"surveyId": answered["id"]})
    assert resp.status_code == 200
    data = resp.json()
    assert data["module"] == "leadership"
    assert data["total_responses"] == 4
    assert data["demographics"] == [
        {"department": "Engineering", "score": 100.0, "count": 2},
        {"department": "Sales", "score": 50.0, "count": 2},
    ]
    assert [q["question_id"] for q in data["question_scores"]] == ["q1", "q2"]
    assert data["question_scores"][1]["score"] == 100.0


@pytest.mark.asyncio
async def test_unknown_module_is_422(client):
    resp = await client.get("/api/v1/analytics/culture")
    assert resp.status_code == 422
