import uuid

import pytest
from httpx import AsyncClient

from finediet.fallbacks.loader import load_fallback


def pack_content(label: str = "Edited level") -> dict:
    content = load_fallback("results_gut_check_v2.json")["level2"]
    content["label"] = label
    return content


async def create_pack(client: AsyncClient, headers: dict, level: str = "level2", version: str = "v2") -> str:
    response = await client.post(
        "/api/v1/admin/results-packs",
        json={"assessment_type": "gut-check", "results_version": version, "level_id": level},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["pack"]["id"]


async def create_revision(client: AsyncClient, headers: dict, pack_id: str, content: dict) -> str:
    response = await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/revisions",
        json={"content_json": content, "change_summary": "copy edits"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["revision"]["id"]


@pytest.mark.asyncio
async def test_resolve_falls_back_to_bundled_pack(client: AsyncClient):
    response = await client.get("/api/v1/results-packs/resolve", params={"level": "level3"})
    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "file"
    assert data["content_hash"] is None
    assert data["pack"]["label"] == load_fallback("results_gut_check_v2.json")["level3"]["label"]


@pytest.mark.asyncio
async def test_resolve_requires_level(client: AsyncClient):
    response = await client.get("/api/v1/results-packs/resolve")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_resolve_unknown_pack(client: AsyncClient):
    response = await client.get("/api/v1/results-packs/resolve", params={"version": "v3", "level": "level1"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Results pack not found: gut-check/v3/level1"

    response = await client.get("/api/v1/results-packs/resolve", params={"level": "level9"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_pack_is_idempotent(client: AsyncClient, editor_headers: dict):
    pack_id = await create_pack(client, editor_headers)
    response = await client.post(
        "/api/v1/admin/results-packs",
        json={"assessment_type": "gut-check", "results_version": "v2", "level_id": "level2"},
        headers=editor_headers,
    )
    assert response.json()["created"] is False
    assert response.json()["pack"]["id"] == pack_id

    await create_pack(client, editor_headers, level="level1")
    response = await client.get("/api/v1/admin/results-packs", params={"type": "gut-check"}, headers=editor_headers)
    assert [item["pack"]["level_id"] for item in response.json()["items"]] == ["level1", "level2"]

    response = await client.get("/api/v1/admin/results-packs", params={"type": "other"}, headers=editor_headers)
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_preview_publish_flow(client: AsyncClient, editor_headers: dict, admin_headers: dict):
    pack_id = await create_pack(client, editor_headers)
    revision_id = await create_revision(client, editor_headers, pack_id, pack_content())

    response = await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/preview", json={"revision_id": revision_id}, headers=editor_headers,
    )
    assert response.json()["preview_revision_id"] == revision_id

    params = {"level": "level2", "preview": "true"}
    data = (await client.get("/api/v1/results-packs/resolve", params=params, headers=editor_headers)).json()
    assert data["source"] == "cms"
    assert data["is_preview"] is True
    assert data["pack"]["label"] == "Edited level"

    data = (await client.get("/api/v1/results-packs/resolve", params=params)).json()
    assert data["source"] == "file"

    response = await client.get("/api/v1/results-packs/gut-check/v2/level2")
    assert response.status_code == 404

    response = await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/publish", json={"revision_id": revision_id}, headers=editor_headers,
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/publish", json={"revision_id": revision_id}, headers=admin_headers,
    )
    assert response.status_code == 204

    data = (await client.get("/api/v1/results-packs/resolve", params={"level": "level2"})).json()
    assert data["source"] == "cms"
    assert data["schema_version"] == "v2_pack_schema_1"
    assert data["results_pack_ref"]["published_revision_id"] == revision_id
    assert data["results_pack_ref"]["pack_id"] == pack_id

    response = await client.get("/api/v1/results-packs/gut-check/v2/level2")
    assert response.status_code == 200
    published = response.json()
    assert published["revision_number"] == 1
    assert published["content_json"]["label"] == "Edited level"

    detail = (await client.get(f"/api/v1/admin/results-packs/{pack_id}", headers=editor_headers)).json()
    assert detail["pointer"]["published_revision_id"] == revision_id
    assert detail["pointer"]["preview_revision_id"] is None
    assert detail["revisions"][0]["status"] == "published"


@pytest.mark.asyncio
async def test_unlabelled_revision_is_skipped(client: AsyncClient, editor_headers: dict, admin_headers: dict):
    pack_id = await create_pack(client, editor_headers)
    content = pack_content()
    del content["label"]
    revision_id = await create_revision(client, editor_headers, pack_id, content)
    await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/publish", json={"revision_id": revision_id}, headers=admin_headers,
    )

    data = (await client.get("/api/v1/results-packs/resolve", params={"level": "level2"})).json()
    assert data["source"] == "file"


@pytest.mark.asyncio
async def test_resolve_pinned_revision(client: AsyncClient, editor_headers: dict):
    pack_id = await create_pack(client, editor_headers)
    revision_id = await create_revision(client, editor_headers, pack_id, pack_content("Pinned"))

    data = (await client.get(
        "/api/v1/results-packs/resolve", params={"level": "level2", "revision_id": revision_id},
    )).json()
    assert data["pack"]["label"] == "Pinned"
    assert data["is_preview"] is False


@pytest.mark.asyncio
async def test_invalid_pack_rejected(client: AsyncClient, editor_headers: dict):
    pack_id = await create_pack(client, editor_headers)
    content = pack_content()
    del content["flow"]["page3"]

    response = await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/revisions",
        json={"content_json": content},
        headers=editor_headers,
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Results pack failed validation"
    assert detail["errors"] == ["Missing flow.page3."]


@pytest.mark.asyncio
async def test_revision_warnings_are_returned(client: AsyncClient, editor_headers: dict):
    pack_id = await create_pack(client, editor_headers)
    content = pack_content()
    content["flow"]["page1"] = {"body": "No headline"}

    response = await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/revisions",
        json={"content_json": content},
        headers=editor_headers,
    )
    assert response.status_code == 201
    assert response.json()["warnings"] == ["flow.page1 headline/title is missing."]
    assert response.json()["revision"]["validation_errors"] == ["flow.page1 headline/title is missing."]


@pytest.mark.asyncio
async def test_revision_from_other_pack_rejected(client: AsyncClient, editor_headers: dict):
    pack_a = await create_pack(client, editor_headers, level="level1")
    pack_b = await create_pack(client, editor_headers, level="level2")
    revision_b = await create_revision(client, editor_headers, pack_b, pack_content())

    response = await client.get(
        f"/api/v1/admin/results-packs/{pack_a}/revisions/{revision_b}", headers=editor_headers,
    )
    assert response.status_code == 400

    response = await client.get(f"/api/v1/admin/results-packs/{uuid.uuid4()}", headers=editor_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_publish_records_audit(client: AsyncClient, editor_headers: dict, admin_headers: dict):
    pack_id = await create_pack(client, editor_headers)
    revision_id = await create_revision(client, editor_headers, pack_id, pack_content())
    await client.post(
        f"/api/v1/admin/results-packs/{pack_id}/publish", json={"revision_id": revision_id}, headers=admin_headers,
    )

    response = await client.get(
        "/api/v1/admin/audit-log",
        params={"entity_type": "results_pack", "entity_id": pack_id},
        headers=admin_headers,
    )
    actions = [entry["action"] for entry in response.json()["items"]]
    assert sorted(actions) == ["results.create_draft", "results.create_pack", "results.publish"]
