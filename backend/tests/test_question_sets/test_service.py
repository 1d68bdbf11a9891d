import pytest
from sqlalchemy.exc import IntegrityError

from finediet.fallbacks.loader import load_fallback
from finediet.question_sets.models import QuestionSet, QuestionSetRevision
from finediet.question_sets.service import create_draft_revision
from finediet.question_sets.validation import SCHEMA_VERSION, hash_question_set


async def _create_set(db) -> QuestionSet:
    question_set = QuestionSet(assessment_type="gut-check", assessment_version="2")
    db.add(question_set)
    await db.commit()
    await db.refresh(question_set)
    return question_set


@pytest.mark.asyncio
async def test_draft_retries_when_number_is_taken(db, session_factory, monkeypatch):
    question_set = await _create_set(db)
    content = load_fallback("questions_gut_check_v2.json")
    real_commit = db.commit
    calls = []

    async def racing_commit():
        if not calls:
            async with session_factory() as other:
                other.add(
                    QuestionSetRevision(
                        question_set_id=question_set.id,
                        revision_number=1,
                        status="draft",
                        schema_version=SCHEMA_VERSION,
                        content_json=content,
                        content_hash=hash_question_set(content),
                    )
                )
                await other.commit()
        calls.append(1)
        await real_commit()

    monkeypatch.setattr(db, "commit", racing_commit)
    revision = await create_draft_revision(db, question_set, content, "edit", None)
    assert len(calls) == 2
    assert revision.revision_number == 2


@pytest.mark.asyncio
async def test_draft_gives_up_after_second_conflict(db, monkeypatch):
    question_set = await _create_set(db)

    async def failing_commit():
        raise IntegrityError("INSERT INTO question_set_revisions", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(IntegrityError):
        await create_draft_revision(db, question_set, load_fallback("questions_gut_check_v2.json"), None, None)
