import pytest
from sqlalchemy.exc import IntegrityError

from finediet.fallbacks.loader import load_fallback
from finediet.results_packs.models import ResultsPack, ResultsPackRevision
from finediet.results_packs.service import create_draft_revision
from finediet.results_packs.validation import PACK_SCHEMA_VERSION, RESULTS_VERSION, hash_results_pack


async def _create_pack(db) -> ResultsPack:
    pack = ResultsPack(assessment_type="gut-check", results_version=RESULTS_VERSION, level_id="level1")
    db.add(pack)
    await db.commit()
    await db.refresh(pack)
    return pack


def _level1() -> dict:
    return load_fallback("results_gut_check_v2.json")["level1"]


@pytest.mark.asyncio
async def test_draft_retries_when_number_is_taken(db, session_factory, monkeypatch):
    pack = await _create_pack(db)
    content = _level1()
    real_commit = db.commit
    calls = []

    async def racing_commit():
        if not calls:
            async with session_factory() as other:
                other.add(
                    ResultsPackRevision(
                        pack_id=pack.id,
                        revision_number=1,
                        status="draft",
                        schema_version=PACK_SCHEMA_VERSION,
                        content_json=content,
                        content_hash=hash_results_pack(content),
                    )
                )
                await other.commit()
        calls.append(1)
        await real_commit()

    monkeypatch.setattr(db, "commit", racing_commit)
    revision = await create_draft_revision(db, pack, content, None, None)
    assert len(calls) == 2
    assert revision.revision_number == 2
    assert revision.content_hash == hash_results_pack(content)


@pytest.mark.asyncio
async def test_draft_gives_up_after_second_conflict(db, monkeypatch):
    pack = await _create_pack(db)

    async def failing_commit():
        raise IntegrityError("INSERT INTO results_pack_revisions", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(IntegrityError):
        await create_draft_revision(db, pack, _level1(), None, None)
