import re
import uuid

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.assessments.models import AssessmentSubmission
from finediet.fallbacks.loader import load_fallback
from finediet.models.base import utcnow
from finediet.question_sets.models import QuestionSet, QuestionSetPointer, QuestionSetRevision
from finediet.question_sets.validation import SCHEMA_VERSION, hash_question_set

logger = structlog.get_logger()

DEFAULT_VERSION = 2

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class QuestionSetNotResolved(Exception):
    pass


def parse_version(value, default: int = DEFAULT_VERSION) -> int:
    """Query-string version to an int in 1..99; anything else falls back to the default."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None or value == "":
        return default
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    number = int(match.group(1))
    if number < 1 or number > 99:
        return default
    return number


def _normalize_locale(locale: str | None) -> str | None:
    return locale or None


async def get_question_set(db: AsyncSession, question_set_id: uuid.UUID) -> QuestionSet | None:
    result = await db.execute(select(QuestionSet).where(QuestionSet.id == question_set_id))
    return result.scalar_one_or_none()


async def find_question_set(
    db: AsyncSession, assessment_type: str, assessment_version: str, locale: str | None,
) -> QuestionSet | None:
    locale = _normalize_locale(locale)
    query = select(QuestionSet).where(
        QuestionSet.assessment_type == assessment_type,
        QuestionSet.assessment_version == str(assessment_version),
    )
    if locale is None:
        query = query.where(QuestionSet.locale.is_(None))
    else:
        query = query.where(QuestionSet.locale == locale)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_pointer(db: AsyncSession, question_set_id: uuid.UUID) -> QuestionSetPointer | None:
    result = await db.execute(
        select(QuestionSetPointer).where(QuestionSetPointer.question_set_id == question_set_id)
    )
    return result.scalar_one_or_none()


async def ensure_question_set(
    db: AsyncSession,
    assessment_type: str,
    assessment_version: str,
    locale: str | None,
    actor_id: uuid.UUID | None = None,
) -> tuple[QuestionSet, bool]:
    """Find or create the set identity and its pointer row. Returns (set, created)."""
    question_set = await find_question_set(db, assessment_type, assessment_version, locale)
    created = False
    if question_set is None:
        question_set = QuestionSet(
            assessment_type=assessment_type,
            assessment_version=str(assessment_version),
            locale=_normalize_locale(locale),
            status="active",
        )
        db.add(question_set)
        await db.flush()
        created = True

    if await get_pointer(db, question_set.id) is None:
        db.add(QuestionSetPointer(question_set_id=question_set.id, updated_by=actor_id))

    await db.commit()
    await db.refresh(question_set)
    if created:
        logger.info("question_set_created", slug=question_set.slug)
    return question_set, created


async def list_question_sets(db: AsyncSession) -> list[dict]:
    sets_result = await db.execute(
        select(QuestionSet).order_by(QuestionSet.assessment_type, QuestionSet.assessment_version)
    )
    question_sets = list(sets_result.scalars().all())

    pointers_result = await db.execute(select(QuestionSetPointer))
    pointers = {p.question_set_id: p for p in pointers_result.scalars().all()}

    latest_result = await db.execute(
        select(QuestionSetRevision.question_set_id, func.max(QuestionSetRevision.revision_number))
        .group_by(QuestionSetRevision.question_set_id)
    )
    latest = dict(latest_result.all())

    return [
        {
            "question_set": qs,
            "pointer": pointers.get(qs.id),
            "latest_revision_number": latest.get(qs.id),
        }
        for qs in question_sets
    ]


async def list_revisions(db: AsyncSession, question_set_id: uuid.UUID) -> list[QuestionSetRevision]:
    result = await db.execute(
        select(QuestionSetRevision)
        .where(QuestionSetRevision.question_set_id == question_set_id)
        .order_by(QuestionSetRevision.revision_number.desc())
    )
    return list(result.scalars().all())


async def get_revision(db: AsyncSession, revision_id: uuid.UUID) -> QuestionSetRevision | None:
    result = await db.execute(select(QuestionSetRevision).where(QuestionSetRevision.id == revision_id))
    return result.scalar_one_or_none()


async def create_draft_revision(
    db: AsyncSession,
    question_set: QuestionSet,
    content: dict,
    notes: str | None,
    actor_id: uuid.UUID | None,
    warnings: list[str] | None = None,
) -> QuestionSetRevision:
    """Insert the next-numbered draft. A concurrent draft that takes the number first causes one retry."""
    for attempt in range(2):
        result = await db.execute(
            select(func.max(QuestionSetRevision.revision_number))
            .where(QuestionSetRevision.question_set_id == question_set.id)
        )
        next_number = (result.scalar_one() or 0) + 1

        revision = QuestionSetRevision(
            question_set_id=question_set.id,
            revision_number=next_number,
            status="draft",
            schema_version=SCHEMA_VERSION,
            content_json=content,
            content_hash=hash_question_set(content),
            notes=notes,
            validation_errors=warnings or None,
            created_by=actor_id,
        )
        db.add(revision)
        try:
            await db.commit()
            break
        except IntegrityError:
            await db.rollback()
            if attempt:
                raise
            await db.refresh(question_set)
            logger.warning("question_set_revision_number_taken", revision_number=next_number)
    await db.refresh(revision)
    logger.info(
        "question_set_revision_created",
        question_set_id=str(question_set.id),
        revision_number=next_number,
    )
    return revision


async def _ensure_pointer(db: AsyncSession, question_set_id: uuid.UUID) -> QuestionSetPointer:
    pointer = await get_pointer(db, question_set_id)
    if pointer is None:
        pointer = QuestionSetPointer(question_set_id=question_set_id)
        db.add(pointer)
    return pointer


async def set_preview_revision(
    db: AsyncSession, question_set: QuestionSet, revision: QuestionSetRevision, actor_id: uuid.UUID | None,
) -> QuestionSetPointer:
    pointer = await _ensure_pointer(db, question_set.id)
    pointer.preview_revision_id = revision.id
    pointer.updated_by = actor_id
    pointer.updated_at = utcnow()
    await db.commit()
    await db.refresh(pointer)
    return pointer


async def publish_revision(
    db: AsyncSession, question_set: QuestionSet, revision: QuestionSetRevision, actor_id: uuid.UUID | None,
) -> QuestionSetPointer:
    pointer = await _ensure_pointer(db, question_set.id)
    pointer.published_revision_id = revision.id
    pointer.updated_by = actor_id
    pointer.updated_at = utcnow()
    revision.status = "published"
    await db.commit()
    await db.refresh(pointer)
    logger.info("question_set_published", slug=question_set.slug, revision_number=revision.revision_number)
    return pointer


async def archive_question_set(db: AsyncSession, question_set: QuestionSet, actor_id: uuid.UUID | None) -> QuestionSet:
    question_set.status = "archived"
    pointer = await get_pointer(db, question_set.id)
    if pointer is not None:
        pointer.published_revision_id = None
        pointer.preview_revision_id = None
        pointer.updated_by = actor_id
        pointer.updated_at = utcnow()
    await db.commit()
    await db.refresh(question_set)
    return question_set


async def unarchive_question_set(db: AsyncSession, question_set: QuestionSet) -> QuestionSet:
    question_set.status = "active"
    await db.commit()
    await db.refresh(question_set)
    return question_set


async def count_referencing_submissions(db: AsyncSession, question_set: QuestionSet) -> int:
    try:
        version = int(question_set.assessment_version)
    except ValueError:
        return 0
    result = await db.execute(
        select(func.count()).select_from(AssessmentSubmission).where(
            AssessmentSubmission.assessment_type == question_set.assessment_type,
            AssessmentSubmission.assessment_version == version,
        )
    )
    return result.scalar_one()


async def delete_question_set(db: AsyncSession, question_set: QuestionSet) -> str | None:
    """Remove the set with its revisions and pointer. Returns a warning when submissions still reference it."""
    submission_count = await count_referencing_submissions(db, question_set)

    await db.execute(delete(QuestionSetPointer).where(QuestionSetPointer.question_set_id == question_set.id))
    await db.execute(delete(QuestionSetRevision).where(QuestionSetRevision.question_set_id == question_set.id))
    await db.execute(delete(QuestionSet).where(QuestionSet.id == question_set.id))
    await db.commit()

    if submission_count:
        return (
            f"{submission_count} assessment submission(s) still reference this assessment "
            "type/version and were not deleted."
        )
    return None


def load_file_question_set(assessment_type: str, assessment_version: int | str) -> dict | None:
    if assessment_type != "gut-check" or str(assessment_version) not in ("2", "v2"):
        return None
    question_set = load_fallback("questions_gut_check_v2.json")
    if question_set.get("assessmentType") != assessment_type or question_set.get("version") != "2":
        return None
    return question_set


def _is_usable(content, assessment_type: str) -> bool:
    return (
        isinstance(content, dict)
        and content.get("version") == "2"
        and content.get("assessmentType") == assessment_type
    )


def _cms_result(
    revision: QuestionSetRevision,
    pointer_field: str,
    is_preview: bool,
) -> dict:
    return {
        "question_set": revision.content_json,
        "source": "cms",
        "content_hash": revision.content_hash,
        "schema_version": revision.schema_version,
        "published_at": revision.created_at,
        "is_preview": is_preview,
        "question_set_ref": {
            "source": "cms",
            "question_set_id": str(revision.question_set_id),
            pointer_field: str(revision.id),
            "content_hash": revision.content_hash,
            "resolved_at": utcnow().isoformat(),
        },
    }


async def resolve_question_set(
    db: AsyncSession,
    assessment_type: str,
    assessment_version: int | str,
    locale: str | None = None,
    allow_preview: bool = False,
    pinned_revision_id: uuid.UUID | None = None,
) -> dict:
    """Pinned revision, then preview (staff only), then published, then the bundled file.

    Raises QuestionSetNotResolved when nothing applies.
    """
    if pinned_revision_id is not None:
        pinned = await get_revision(db, pinned_revision_id)
        if pinned is not None and _is_usable(pinned.content_json, assessment_type):
            return _cms_result(pinned, "published_revision_id", False)
        logger.warning("question_set_pin_ignored", revision_id=str(pinned_revision_id))

    question_set = await find_question_set(db, assessment_type, str(assessment_version), locale)
    if question_set is not None:
        pointer = await get_pointer(db, question_set.id)
        candidates = []
        if allow_preview and pointer is not None and pointer.preview_revision_id:
            candidates.append((pointer.preview_revision_id, "preview_revision_id", True))
        if pointer is not None and pointer.published_revision_id:
            candidates.append((pointer.published_revision_id, "published_revision_id", False))

        for revision_id, pointer_field, is_preview in candidates:
            revision = await get_revision(db, revision_id)
            if revision is not None and _is_usable(revision.content_json, assessment_type):
                return _cms_result(revision, pointer_field, is_preview)

    file_set = load_file_question_set(assessment_type, assessment_version)
    if file_set is not None:
        return {
            "question_set": file_set,
            "source": "file",
            "content_hash": hash_question_set(file_set),
            "schema_version": SCHEMA_VERSION,
            "published_at": None,
            "is_preview": False,
            "question_set_ref": {"source": "file", "resolved_at": utcnow().isoformat()},
        }

    if question_set is not None:
        preview_note = " or preview" if allow_preview else ""
        raise QuestionSetNotResolved(
            f"Question set exists in CMS but has no published{preview_note} revision. "
            f"Please publish a revision for {assessment_type} v{assessment_version}."
        )
    raise QuestionSetNotResolved(
        f"Question set not found in CMS for {assessment_type} v{assessment_version}. "
        "File fallback only supports version 2. Please create and publish the question set in the CMS."
    )
