import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.fallbacks.loader import load_fallback
from finediet.models.base import utcnow
from finediet.results_packs.models import ResultsPack, ResultsPackPointer, ResultsPackRevision
from finediet.results_packs.validation import PACK_SCHEMA_VERSION, RESULTS_VERSION, hash_results_pack

logger = structlog.get_logger()

FILE_PACKS = {("gut-check", RESULTS_VERSION): "results_gut_check_v2.json"}


class ResultsPackNotResolved(Exception):
    pass


async def get_pack(db: AsyncSession, pack_id: uuid.UUID) -> ResultsPack | None:
    result = await db.execute(select(ResultsPack).where(ResultsPack.id == pack_id))
    return result.scalar_one_or_none()


async def find_pack(
    db: AsyncSession, assessment_type: str, results_version: str, level_id: str,
) -> ResultsPack | None:
    result = await db.execute(
        select(ResultsPack).where(
            ResultsPack.assessment_type == assessment_type,
            ResultsPack.results_version == results_version,
            ResultsPack.level_id == level_id,
        )
    )
    return result.scalar_one_or_none()


async def get_pointer(db: AsyncSession, pack_id: uuid.UUID) -> ResultsPackPointer | None:
    result = await db.execute(select(ResultsPackPointer).where(ResultsPackPointer.pack_id == pack_id))
    return result.scalar_one_or_none()


async def ensure_pack(
    db: AsyncSession,
    assessment_type: str,
    results_version: str,
    level_id: str,
    actor_id: uuid.UUID | None = None,
    commit: bool = True,
) -> tuple[ResultsPack, bool]:
    pack = await find_pack(db, assessment_type, results_version, level_id)
    created = False
    if pack is None:
        pack = ResultsPack(assessment_type=assessment_type, results_version=results_version, level_id=level_id)
        db.add(pack)
        await db.flush()
        created = True

    if await get_pointer(db, pack.id) is None:
        db.add(ResultsPackPointer(pack_id=pack.id, updated_by=actor_id))
        await db.flush()

    if commit:
        await db.commit()
        await db.refresh(pack)
    if created:
        logger.info("results_pack_created", slug=pack.slug)
    return pack, created


async def list_packs(db: AsyncSession, assessment_type: str | None = None) -> list[dict]:
    query = select(ResultsPack).order_by(
        ResultsPack.assessment_type, ResultsPack.results_version, ResultsPack.level_id,
    )
    if assessment_type:
        query = query.where(ResultsPack.assessment_type == assessment_type)
    packs = list((await db.execute(query)).scalars().all())

    pointers_result = await db.execute(select(ResultsPackPointer))
    pointers = {p.pack_id: p for p in pointers_result.scalars().all()}

    latest_result = await db.execute(
        select(ResultsPackRevision.pack_id, func.max(ResultsPackRevision.revision_number))
        .group_by(ResultsPackRevision.pack_id)
    )
    latest = dict(latest_result.all())

    return [
        {"pack": pack, "pointer": pointers.get(pack.id), "latest_revision_number": latest.get(pack.id)}
        for pack in packs
    ]


async def list_revisions(db: AsyncSession, pack_id: uuid.UUID) -> list[ResultsPackRevision]:
    result = await db.execute(
        select(ResultsPackRevision)
        .where(ResultsPackRevision.pack_id == pack_id)
        .order_by(ResultsPackRevision.revision_number.desc())
    )
    return list(result.scalars().all())


async def get_revision(db: AsyncSession, revision_id: uuid.UUID) -> ResultsPackRevision | None:
    result = await db.execute(select(ResultsPackRevision).where(ResultsPackRevision.id == revision_id))
    return result.scalar_one_or_none()


async def create_draft_revision(
    db: AsyncSession,
    pack: ResultsPack,
    content: dict,
    change_summary: str | None,
    actor_id: uuid.UUID | None,
    warnings: list[str] | None = None,
) -> ResultsPackRevision:
    """Insert the next-numbered draft, retrying once if a concurrent draft took the number."""
    for attempt in range(2):
        result = await db.execute(
            select(func.max(ResultsPackRevision.revision_number)).where(ResultsPackRevision.pack_id == pack.id)
        )
        next_number = (result.scalar_one() or 0) + 1

        revision = ResultsPackRevision(
            pack_id=pack.id,
            revision_number=next_number,
            status="draft",
            schema_version=PACK_SCHEMA_VERSION,
            content_json=content,
            content_hash=hash_results_pack(content),
            change_summary=change_summary,
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
            await db.refresh(pack)
            logger.warning("results_pack_revision_number_taken", revision_number=next_number)
    await db.refresh(revision)
    logger.info("results_pack_revision_created", pack_id=str(pack.id), revision_number=next_number)
    return revision


async def _ensure_pointer(db: AsyncSession, pack_id: uuid.UUID) -> ResultsPackPointer:
    pointer = await get_pointer(db, pack_id)
    if pointer is None:
        pointer = ResultsPackPointer(pack_id=pack_id)
        db.add(pointer)
    return pointer


async def set_preview_revision(
    db: AsyncSession, pack: ResultsPack, revision: ResultsPackRevision, actor_id: uuid.UUID | None,
) -> ResultsPackPointer:
    pointer = await _ensure_pointer(db, pack.id)
    pointer.preview_revision_id = revision.id
    pointer.updated_by = actor_id
    pointer.updated_at = utcnow()
    await db.commit()
    await db.refresh(pointer)
    return pointer


async def publish_revision(
    db: AsyncSession, pack: ResultsPack, revision: ResultsPackRevision, actor_id: uuid.UUID | None,
) -> ResultsPackPointer:
    """Point published at the revision and clear preview."""
    pointer = await _ensure_pointer(db, pack.id)
    pointer.published_revision_id = revision.id
    pointer.preview_revision_id = None
    pointer.updated_by = actor_id
    pointer.updated_at = utcnow()
    revision.status = "published"
    await db.commit()
    await db.refresh(pointer)
    logger.info("results_pack_published", slug=pack.slug, revision_number=revision.revision_number)
    return pointer


async def get_published_revision(
    db: AsyncSession, assessment_type: str, results_version: str, level_id: str,
) -> tuple[ResultsPack, ResultsPackRevision] | None:
    pack = await find_pack(db, assessment_type, results_version, level_id)
    if pack is None:
        return None
    pointer = await get_pointer(db, pack.id)
    if pointer is None or pointer.published_revision_id is None:
        return None
    revision = await get_revision(db, pointer.published_revision_id)
    if revision is None:
        return None
    return pack, revision


def load_file_pack(assessment_type: str, results_version: str, level_id: str) -> dict | None:
    filename = FILE_PACKS.get((assessment_type, results_version))
    if filename is None:
        return None
    return load_fallback(filename).get(level_id)


def _has_label(content) -> bool:
    return isinstance(content, dict) and bool(content.get("label"))


def _cms_result(
    pack_id: uuid.UUID, revision: ResultsPackRevision, pointer_field: str, is_preview: bool,
) -> dict:
    return {
        "pack": revision.content_json,
        "source": "cms",
        "content_hash": revision.content_hash,
        "schema_version": revision.schema_version,
        "published_at": revision.created_at,
        "is_preview": is_preview,
        "results_pack_ref": {
            "source": "cms",
            "pack_id": str(pack_id),
            pointer_field: str(revision.id),
            "content_hash": revision.content_hash,
            "resolved_at": utcnow().isoformat(),
        },
    }


async def resolve_results_pack(
    db: AsyncSession,
    assessment_type: str,
    results_version: str,
    level_id: str,
    allow_preview: bool = False,
    pinned_revision_id: uuid.UUID | None = None,
) -> dict:
    """Pinned revision, then preview (staff only), then published, then the bundled file packs.

    CMS revisions without a label are skipped. Raises ResultsPackNotResolved when nothing applies.
    """
    if pinned_revision_id is not None:
        pinned = await get_revision(db, pinned_revision_id)
        if pinned is not None and _has_label(pinned.content_json):
            return _cms_result(pinned.pack_id, pinned, "published_revision_id", False)
        logger.warning("results_pack_pin_ignored", revision_id=str(pinned_revision_id))

    pack = await find_pack(db, assessment_type, results_version, level_id)
    if pack is not None:
        pointer = await get_pointer(db, pack.id)
        candidates = []
        if allow_preview and pointer is not None and pointer.preview_revision_id:
            candidates.append((pointer.preview_revision_id, "preview_revision_id", True))
        if pointer is not None and pointer.published_revision_id:
            candidates.append((pointer.published_revision_id, "published_revision_id", False))

        for revision_id, pointer_field, is_preview in candidates:
            revision = await get_revision(db, revision_id)
            if revision is not None and _has_label(revision.content_json):
                return _cms_result(pack.id, revision, pointer_field, is_preview)

    file_pack = load_file_pack(assessment_type, results_version, level_id)
    if file_pack is not None:
        return {
            "pack": file_pack,
            "source": "file",
            "content_hash": None,
            "schema_version": None,
            "published_at": None,
            "is_preview": False,
            "results_pack_ref": {"source": "file", "resolved_at": utcnow().isoformat()},
        }

    raise ResultsPackNotResolved(
        f"Results pack not found: {assessment_type}/{results_version}/{level_id}"
    )
