import pytest
from httpx import AsyncClient

from finediet.site_config.registry import CONFIG_REGISTRY, DEFAULT_FEATURE_FLAGS, get_public_readable_keys
from finediet.site_config.service import get_assessment_config, webhooks_enabled


@pytest.mark.asyncio
async def test_public_config_returns_default(client: AsyncClient):
    response = await client.get("/api/v1/config/feature-flags:global")
    assert response.status_code == 200
    assert response.json() == {"key": "feature-flags:global", "value": DEFAULT_FEATURE_FLAGS}


@pytest.mark.asyncio
async def test_public_config_unknown_key(client: AsyncClient):
    response = await client.get("/api/v1/config/home")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_list_reports_defaults(client: AsyncClient, admin_headers: dict):
    response = await client.get("/api/v1/admin/config", headers=admin_headers)
    assert response.status_code == 200
    items = response.json()["items"]
    assert {item["key"] for item in items} == set(CONFIG_REGISTRY)
    assert all(item["is_default"] for item in items)


@pytest.mark.asyncio
async def test_save_config_then_read(client: AsyncClient, admin_headers: dict):
    value = {"enableN8nWebhook": False, "enableNewResultsFlow": True}
    response = await client.put("/api/v1/admin/config/feature-flags:global", json=value, headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/config/feature-flags:global")
    assert response.json()["value"] == value

    response = await client.get("/api/v1/admin/config", headers=admin_headers)
    flags = next(i for i in response.json()["items"] if i["key"] == "feature-flags:global")
    assert flags["is_default"] is False


@pytest.mark.asyncio
async def test_save_config_validation(client: AsyncClient, admin_headers: dict):
    response = await client.put(
        "/api/v1/admin/config/avatar-mapping:global", json={"mappings": {}}, headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Config failed validation"

    response = await client.put("/api/v1/admin/config/unknown:key", json={}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_save_config_requires_admin(client: AsyncClient, editor_headers: dict):
    response = await client.put(
        "/api/v1/admin/config/feature-flags:global", json={"enableN8nWebhook": False}, headers=editor_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_assessment_config_defaults(db):
    v2 = await get_assessment_config(db, "gut-check", 2)
    assert v2["scoring"]["thresholds"] == {"axisBandHigh": 2.3, "axisBandModerate": 1.3}

    v1 = await get_assessment_config(db, "gut-check", 1)
    assert v1["scoring"]["thresholds"]["secondaryAvatarThreshold"] == 0.15

    other = await get_assessment_config(db, "sleep-check", 3)
    assert other["scoring"]["thresholds"]["axisBandHigh"] == 2.3


@pytest.mark.asyncio
async def test_webhooks_enabled_by_default(db):
    assert await webhooks_enabled(db) is True


@pytest.mark.asyncio
async def test_every_public_key_is_readable(client: AsyncClient):
    for key in get_public_readable_keys():
        response = await client.get(f"/api/v1/config/{key}")
        assert response.status_code == 200
        assert response.json()["value"] == CONFIG_REGISTRY[key].get_default()


@pytest.mark.asyncio
async def test_null_scoring_threshold_is_rejected(client: AsyncClient, admin_headers: dict):
    url = "/api/v1/admin/config/assessment-config:gut-check:2"
    response = await client.put(
        url, json={"scoring": {"thresholds": {"axisBandHigh": None, "axisBandModerate": 1.3}}},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["errors"][0]["path"] == "scoring.thresholds.axisBandHigh"

    response = await client.put(
        url, json={"scoring": {"thresholds": {"axisBandModerate": 1.0}}}, headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["value"] == {"scoring": {"thresholds": {"axisBandModerate": 1.0}}}

    response = await client.post(
        "/api/v1/assessments/score",
        json={"assessment_type": "gut-check", "assessment_version": 2,
              "answers": [{"question_id": "q1", "option_id": "q1_a"}]},
    )
    assert response.status_code == 200
    assert response.json()["result"]["primary_level"].startswith("level")
