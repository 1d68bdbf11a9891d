import uuid

import pytest
from httpx import AsyncClient

from finediet.fallbacks.loader import load_fallback
from finediet.question_sets.validation import hash_question_set

META = "key,value\nversion,2\nassessmentType,gut-check\nassessmentVersion,3\nnotes,From the spreadsheet\n"
SECTIONS = "section_id,title,order\ns2,Second,2\ns1,First,1\n"
QUESTIONS = "question_id,section_id,text,order\nq1,s1,First,1\nq2,s1,Second,2\nq3,s2,Third,1\n"


def options_csv() -> str:
    lines = ["question_id,option_id,label,value"]
    for qid in ("q1", "q2", "q3"):
        lines.extend(f"{qid},{qid}_{value},Label {value},{value}" for value in range(4))
    return "\n".join(lines) + "\n"


async def create_set(client: AsyncClient, headers: dict, version: str = "2", locale: str | None = None) -> str:
    response = await client.post(
        "/api/v1/admin/question-sets",
        json={"assessment_type": "gut-check", "assessment_version": version, "locale": locale},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["question_set"]["id"]


async def create_revision(client: AsyncClient, headers: dict, set_id: str, content: dict | None = None) -> str:
    if content is None:
        content = load_fallback("questions_gut_check_v2.json")
    response = await client.post(
        f"/api/v1/admin/question-sets/{set_id}/revisions",
        json={"content_json": content, "notes": "first pass"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["revision"]["id"]


def edited_question_set() -> dict:
    content = load_fallback("questions_gut_check_v2.json")
    content["questions"][0]["text"] = "Edited in the CMS"
    return content


@pytest.mark.asyncio
async def test_resolve_defaults_to_bundled_file(client: AsyncClient):
    response = await client.get("/api/v1/question-sets/resolve")
    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "file"
    assert data["is_preview"] is False
    assert data["content_hash"] == hash_question_set(load_fallback("questions_gut_check_v2.json"))
    assert data["question_set_ref"]["source"] == "file"


@pytest.mark.asyncio
async def test_resolve_unparseable_version_uses_default(client: AsyncClient):
    response = await client.get("/api/v1/question-sets/resolve", params={"type": "gut-check", "version": "abc"})
    assert response.status_code == 200
    assert response.json()["source"] == "file"


@pytest.mark.asyncio
async def test_resolve_missing_version(client: AsyncClient):
    response = await client.get("/api/v1/question-sets/resolve", params={"version": "3"})
    assert response.status_code == 404
    assert "not found in CMS" in response.json()["detail"]


@pytest.mark.asyncio
async def test_resolve_set_without_published_revision(client: AsyncClient, editor_headers: dict):
    await create_set(client, editor_headers, version="3")
    response = await client.get("/api/v1/question-sets/resolve", params={"version": "3"})
    assert response.status_code == 404
    assert "has no published revision" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_set_is_idempotent(client: AsyncClient, editor_headers: dict):
    first = await create_set(client, editor_headers)
    response = await client.post(
        "/api/v1/admin/question-sets",
        json={"assessment_type": "gut-check", "assessment_version": "2"},
        headers=editor_headers,
    )
    assert response.json()["created"] is False
    assert response.json()["question_set"]["id"] == first

    fr = await create_set(client, editor_headers, locale="fr")
    assert fr != first

    response = await client.get("/api/v1/admin/question-sets", headers=editor_headers)
    assert response.json()["total"] == 2


@pytest.mark.asyncio
async def test_draft_preview_publish_flow(client: AsyncClient, editor_headers: dict, admin_headers: dict):
    set_id = await create_set(client, editor_headers)
    revision_id = await create_revision(client, editor_headers, set_id, edited_question_set())

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_id}/preview", json={"revision_id": revision_id}, headers=editor_headers,
    )
    assert response.status_code == 200
    assert response.json()["preview_revision_id"] == revision_id

    # Preview is visible to staff only
    response = await client.get("/api/v1/question-sets/resolve", params={"preview": "true"}, headers=editor_headers)
    data = response.json()
    assert data["source"] == "cms"
    assert data["is_preview"] is True
    assert data["question_set_ref"]["preview_revision_id"] == revision_id

    response = await client.get("/api/v1/question-sets/resolve", params={"preview": "true"})
    assert response.json()["source"] == "file"

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_id}/publish", json={"revision_id": revision_id}, headers=editor_headers,
    )
    assert response.status_code == 403

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_id}/publish", json={"revision_id": revision_id}, headers=admin_headers,
    )
    assert response.status_code == 204

    response = await client.get("/api/v1/question-sets/resolve")
    data = response.json()
    assert data["source"] == "cms"
    assert data["question_set"]["questions"][0]["text"] == "Edited in the CMS"
    assert data["question_set_ref"]["published_revision_id"] == revision_id

    response = await client.get(f"/api/v1/admin/question-sets/{set_id}", headers=editor_headers)
    detail = response.json()
    assert detail["pointer"]["published_revision_id"] == revision_id
    assert detail["revisions"][0]["status"] == "published"


@pytest.mark.asyncio
async def test_score_uses_published_cms_set(client: AsyncClient, editor_headers: dict, admin_headers: dict):
    set_id = await create_set(client, editor_headers)
    revision_id = await create_revision(client, editor_headers, set_id)
    await client.post(
        f"/api/v1/admin/question-sets/{set_id}/publish", json={"revision_id": revision_id}, headers=admin_headers,
    )
    answers = [{"question_id": f"q{i}", "option_id": f"q{i}_a"} for i in range(1, 18)]
    response = await client.post("/api/v1/assessments/score", json={"answers": answers})
    assert response.json()["question_set_source"] == "cms"
    assert response.json()["primary_avatar"] == "level1"


@pytest.mark.asyncio
async def test_revision_numbers_increment(client: AsyncClient, editor_headers: dict):
    set_id = await create_set(client, editor_headers)
    first = await create_revision(client, editor_headers, set_id)
    second = await create_revision(client, editor_headers, set_id, edited_question_set())

    first_rev = (await client.get(
        f"/api/v1/admin/question-sets/{set_id}/revisions/{first}", headers=editor_headers,
    )).json()
    second_rev = (await client.get(
        f"/api/v1/admin/question-sets/{set_id}/revisions/{second}", headers=editor_headers,
    )).json()
    assert first_rev["revision_number"] == 1
    assert second_rev["revision_number"] == 2
    assert first_rev["content_hash"] != second_rev["content_hash"]
    assert second_rev["content_json"]["questions"][0]["text"] == "Edited in the CMS"


@pytest.mark.asyncio
async def test_resolve_pinned_revision(client: AsyncClient, editor_headers: dict):
    set_id = await create_set(client, editor_headers)
    revision_id = await create_revision(client, editor_headers, set_id, edited_question_set())

    response = await client.get("/api/v1/question-sets/resolve", params={"revision_id": revision_id})
    data = response.json()
    assert data["source"] == "cms"
    assert data["question_set"]["questions"][0]["text"] == "Edited in the CMS"

    # Unknown pins fall through to normal resolution
    response = await client.get("/api/v1/question-sets/resolve", params={"revision_id": str(uuid.uuid4())})
    assert response.json()["source"] == "file"


@pytest.mark.asyncio
async def test_invalid_revision_rejected(client: AsyncClient, editor_headers: dict):
    set_id = await create_set(client, editor_headers)
    content = load_fallback("questions_gut_check_v2.json")
    content["questions"][0]["options"] = content["questions"][0]["options"][:3]

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_id}/revisions",
        json={"content_json": content},
        headers=editor_headers,
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Question set failed validation"
    assert "questions[0].options must have exactly 4 options, got 3." in detail["errors"]


@pytest.mark.asyncio
async def test_revision_from_other_set_rejected(client: AsyncClient, editor_headers: dict):
    set_a = await create_set(client, editor_headers)
    set_b = await create_set(client, editor_headers, version="3")
    revision_b = await create_revision(client, editor_headers, set_b)

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_a}/preview", json={"revision_id": revision_b}, headers=editor_headers,
    )
    assert response.status_code == 400

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_a}/preview", json={"revision_id": str(uuid.uuid4())},
        headers=editor_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_archive_and_unarchive(client: AsyncClient, editor_headers: dict, admin_headers: dict):
    set_id = await create_set(client, editor_headers)
    revision_id = await create_revision(client, editor_headers, set_id, edited_question_set())
    await client.post(
        f"/api/v1/admin/question-sets/{set_id}/publish", json={"revision_id": revision_id}, headers=admin_headers,
    )

    response = await client.post(f"/api/v1/admin/question-sets/{set_id}/archive", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "archived"

    response = await client.post(f"/api/v1/admin/question-sets/{set_id}/archive", headers=admin_headers)
    assert response.status_code == 400

    # Archiving clears the pointers, so resolution falls back to the bundled file
    response = await client.get("/api/v1/question-sets/resolve")
    assert response.json()["source"] == "file"

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_id}/revisions",
        json={"content_json": edited_question_set()},
        headers=editor_headers,
    )
    assert response.status_code == 400

    response = await client.post(
        f"/api/v1/admin/question-sets/{set_id}/publish", json={"revision_id": revision_id}, headers=admin_headers,
    )
    assert response.status_code == 400

    response = await client.post(f"/api/v1/admin/question-sets/{set_id}/unarchive", headers=admin_headers)
    assert response.json()["status"] == "active"
    response = await client.post(f"/api/v1/admin/question-sets/{set_id}/unarchive", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_warns_about_submissions(client: AsyncClient, editor_headers: dict, admin_headers: dict):
    set_id = await create_set(client, editor_headers)
    await create_revision(client, editor_headers, set_id)
    await client.post(
        "/api/v1/assessments/submit",
        json={
            "submission_id": str(uuid.uuid4()),
            "assessment_type": "gut-check",
            "assessment_version": 2,
            "session_id": "s1",
            "answers": [{"question_id": "q1", "option_id": "q1_a"}],
            "primary_avatar": "level1",
        },
    )

    response = await client.delete(f"/api/v1/admin/question-sets/{set_id}", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["warning"].startswith("1 assessment submission(s)")

    response = await client.get(f"/api/v1/admin/question-sets/{set_id}", headers=editor_headers)
    assert response.status_code == 404

    response = await client.get(
        "/api/v1/admin/audit-log", params={"action": "questions.delete"}, headers=admin_headers,
    )
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_import_csv_creates_draft(client: AsyncClient, editor_headers: dict):
    files = {
        "meta": ("meta.csv", META.encode("utf-8-sig"), "text/csv"),
        "sections": ("sections.csv", SECTIONS.encode(), "text/csv"),
        "questions": ("questions.csv", QUESTIONS.encode(), "text/csv"),
        "options": ("options.csv", options_csv().encode(), "text/csv"),
    }
    response = await client.post("/api/v1/admin/question-sets/import-csv", files=files, headers=editor_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["created_question_set"] is True
    assert data["revision_number"] == 1

    revision = (await client.get(
        f"/api/v1/admin/question-sets/{data['question_set_id']}/revisions/{data['revision_id']}",
        headers=editor_headers,
    )).json()
    assert revision["notes"] == "From the spreadsheet"
    assert [s["id"] for s in revision["content_json"]["sections"]] == ["s1", "s2"]


@pytest.mark.asyncio
async def test_import_csv_reports_errors(client: AsyncClient, editor_headers: dict):
    files = {
        "meta": ("meta.csv", b"key,value\nversion,2\n", "text/csv"),
        "sections": ("sections.csv", SECTIONS.encode(), "text/csv"),
        "questions": ("questions.csv", QUESTIONS.encode(), "text/csv"),
        "options": ("options.csv", options_csv().encode(), "text/csv"),
    }
    response = await client.post("/api/v1/admin/question-sets/import-csv", files=files, headers=editor_headers)
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "CSV import failed"
    assert detail["errors"][0]["file"] == "meta.csv"


@pytest.mark.asyncio
async def test_import_csv_rejects_non_utf8(client: AsyncClient, editor_headers: dict):
    files = {
        "meta": ("meta.csv", b"\xff\xfe\x00bad", "text/csv"),
        "sections": ("sections.csv", SECTIONS.encode(), "text/csv"),
        "questions": ("questions.csv", QUESTIONS.encode(), "text/csv"),
        "options": ("options.csv", options_csv().encode(), "text/csv"),
    }
    response = await client.post("/api/v1/admin/question-sets/import-csv", files=files, headers=editor_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "meta.csv is not valid UTF-8"


@pytest.mark.asyncio
async def test_admin_question_sets_require_staff(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/admin/question-sets", headers=auth_headers)
    assert response.status_code == 403
