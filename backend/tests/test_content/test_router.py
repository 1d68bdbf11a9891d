import pytest
from httpx import AsyncClient

HOME = {
    "hero": {
        "title": "Listen to your gut",
        "description": "A calmer way to eat.",
        "buttons": [{"label": "Start", "variant": "primary", "href": "/gut-check"}],
        "images": {"desktop": "/d.jpg", "mobile": "/m.jpg"},
    },
    "featureSections": [],
    "gridSections": [],
    "ctaSection": {"title": "Ready?"},
}


@pytest.mark.asyncio
async def test_public_content_falls_back_to_bundled_defaults(client: AsyncClient):
    response = await client.get("/api/v1/content/home")
    assert response.status_code == 200
    assert response.json()["hero"]["title"] == "Read your body. Reset your health."

    response = await client.get("/api/v1/content/waitlist")
    assert response.json()["submitButtonLabel"] == "Join Waitlist"


@pytest.mark.asyncio
async def test_public_content_unknown_key(client: AsyncClient):
    response = await client.get("/api/v1/content/secrets")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_draft_publish_flow(client: AsyncClient, editor_headers: dict):
    response = await client.put("/api/v1/admin/content/home", json=HOME, headers=editor_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "draft"

    # Anonymous readers never see drafts
    response = await client.get("/api/v1/content/home", params={"draft": "true"})
    assert response.json()["hero"]["title"] == "Read your body. Reset your health."

    response = await client.get("/api/v1/content/home", params={"draft": "true"}, headers=editor_headers)
    assert response.json()["hero"]["title"] == "Listen to your gut"

    response = await client.post("/api/v1/admin/content/home/publish", headers=editor_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "published"

    response = await client.get("/api/v1/content/home")
    assert response.json()["hero"]["title"] == "Listen to your gut"


@pytest.mark.asyncio
async def test_publish_without_draft(client: AsyncClient, editor_headers: dict):
    response = await client.post("/api/v1/admin/content/footer/publish", headers=editor_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_save_rejects_invalid_document(client: AsyncClient, editor_headers: dict):
    invalid = {**HOME, "hero": {"title": "Missing the rest"}}
    response = await client.put("/api/v1/admin/content/home", json=invalid, headers=editor_headers)
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Content failed validation"
    assert any(err["path"].startswith("hero") for err in detail["errors"])


@pytest.mark.asyncio
async def test_save_rejects_bad_button_variant(client: AsyncClient, editor_headers: dict):
    hero = {**HOME["hero"], "buttons": [{"label": "Go", "variant": "loud", "href": "/"}]}
    response = await client.put("/api/v1/admin/content/home", json={**HOME, "hero": hero}, headers=editor_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_save_drops_unknown_fields(client: AsyncClient, editor_headers: dict):
    response = await client.put(
        "/api/v1/admin/content/global",
        params={"status": "published"},
        json={"siteName": "Fine Diet", "legacyField": "x"},
        headers=editor_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"siteName": "Fine Diet"}


@pytest.mark.asyncio
async def test_save_rejects_unknown_and_config_keys(client: AsyncClient, editor_headers: dict):
    response = await client.put("/api/v1/admin/content/mystery", json={}, headers=editor_headers)
    assert response.status_code == 400

    response = await client.put(
        "/api/v1/admin/content/feature-flags:global",
        json={"enableN8nWebhook": False},
        headers=editor_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_content_requires_staff(client: AsyncClient, auth_headers: dict):
    response = await client.put("/api/v1/admin/content/home", json=HOME, headers=auth_headers)
    assert response.status_code == 403

    response = await client.get("/api/v1/admin/content")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_and_delete_content(client: AsyncClient, editor_headers: dict):
    await client.put("/api/v1/admin/content/home", json=HOME, headers=editor_headers)
    await client.post("/api/v1/admin/content/home/publish", headers=editor_headers)

    response = await client.get("/api/v1/admin/content", headers=editor_headers)
    assert response.json()["total"] == 2

    response = await client.delete(
        "/api/v1/admin/content/home", params={"status": "draft"}, headers=editor_headers,
    )
    assert response.status_code == 204

    response = await client.get("/api/v1/admin/content/home", params={"status": "draft"}, headers=editor_headers)
    assert response.status_code == 404
    response = await client.get("/api/v1/admin/content/home", headers=editor_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_product_lifecycle(client: AsyncClient, editor_headers: dict):
    response = await client.post(
        "/api/v1/admin/products", json={"slug": "gut-reset", "title": "Gut Reset"}, headers=editor_headers,
    )
    assert response.status_code == 201
    assert response.json()["key"] == "product:gut-reset"

    response = await client.post(
        "/api/v1/admin/products", json={"slug": "gut-reset", "title": "Again"}, headers=editor_headers,
    )
    assert response.status_code == 409

    response = await client.get("/api/v1/content/products/gut-reset")
    assert response.status_code == 200
    assert response.json()["hero"]["title"] == "Gut Reset"

    response = await client.get("/api/v1/admin/products", headers=editor_headers)
    assert [p["slug"] for p in response.json()["items"]] == ["gut-reset"]

    response = await client.delete("/api/v1/admin/products/gut-reset", headers=editor_headers)
    assert response.status_code == 204
    response = await client.get("/api/v1/content/products/gut-reset")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_product_slug_must_be_kebab_case(client: AsyncClient, editor_headers: dict):
    response = await client.post(
        "/api/v1/admin/products", json={"slug": "Gut Reset", "title": "Gut Reset"}, headers=editor_headers,
    )
    assert response.status_code == 422
