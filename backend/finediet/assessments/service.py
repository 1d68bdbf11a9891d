import uuid
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.assessments.definitions import get_static_definition
from finediet.assessments.models import AssessmentEvent, AssessmentSession, AssessmentSubmission
from finediet.assessments.scoring import answers_to_responses, score_v1, score_v2
from finediet.models.base import utcnow
from finediet.question_sets.models import QuestionSet
from finediet.fallbacks.loader import load_fallback
from finediet.question_sets import service as question_sets_service
from finediet.question_sets.service import resolve_question_set
from finediet.question_sets.validation import validate_question_set
from finediet.results_packs.models import LEVEL_IDS, ResultsPack
from finediet.results_packs import service as results_packs_service
from finediet.results_packs.service import ensure_pack
from finediet.results_packs.validation import RESULTS_VERSION, validate_results_pack
from finediet.site_config.service import get_assessment_config, get_avatar_key

logger = structlog.get_logger()


class UnknownAssessment(Exception):
    pass


class ScaffoldTargetNotFound(Exception):
    pass


class StarterTemplateInvalid(Exception):
    def __init__(self, message: str, errors: list[str]):
        super().__init__(message)
        self.errors = errors


async def get_submission(db: AsyncSession, submission_id: uuid.UUID) -> AssessmentSubmission | None:
    result = await db.execute(select(AssessmentSubmission).where(AssessmentSubmission.id == submission_id))
    return result.scalar_one_or_none()


async def find_latest_submission(
    db: AsyncSession, session_id: str, assessment_type: str, assessment_version: int,
) -> AssessmentSubmission | None:
    result = await db.execute(
        select(AssessmentSubmission)
        .where(
            AssessmentSubmission.session_id == session_id,
            AssessmentSubmission.assessment_type == assessment_type,
            AssessmentSubmission.assessment_version == assessment_version,
        )
        .order_by(AssessmentSubmission.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_submission(db: AsyncSession, data) -> tuple[AssessmentSubmission, bool]:
    """Insert unless the client-supplied id already exists. Returns (submission, created)."""
    existing = await get_submission(db, data.submission_id)
    if existing is not None:
        return existing, False

    submission = AssessmentSubmission(
        id=data.submission_id,
        assessment_type=data.assessment_type,
        assessment_version=data.assessment_version,
        session_id=data.session_id,
        user_id=data.user_id,
        email=data.email or None,
        answers=data.answers,
        score_map=data.score_map,
        normalized_score_map=data.normalized_score_map,
        primary_avatar=data.primary_avatar,
        secondary_avatar=data.secondary_avatar or None,
        confidence_score=data.confidence_score,
        meta=data.metadata,
    )
    db.add(submission)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await get_submission(db, data.submission_id)
        if existing is None:
            raise
        return existing, False
    await db.refresh(submission)
    logger.info(
        "assessment_submitted",
        submission_id=str(submission.id),
        assessment_type=submission.assessment_type,
        primary_avatar=submission.primary_avatar,
    )
    return submission, True


async def upsert_session(
    db: AsyncSession,
    session_id: str,
    assessment_type: str,
    assessment_version: int,
    status: str,
    last_question_index: int,
    user_id: uuid.UUID | None = None,
) -> AssessmentSession:
    query = select(AssessmentSession).where(
        AssessmentSession.session_id == session_id,
        AssessmentSession.assessment_type == assessment_type,
        AssessmentSession.assessment_version == assessment_version,
    )
    session = (await db.execute(query)).scalar_one_or_none()
    if session is None:
        session = AssessmentSession(
            session_id=session_id,
            assessment_type=assessment_type,
            assessment_version=assessment_version,
        )
        db.add(session)
    session.status = status
    session.last_question_index = last_question_index
    session.updated_at = utcnow()
    if user_id is not None:
        session.user_id = user_id

    try:
        await db.commit()
    except IntegrityError:
        # Another request created the row first; update that one instead
        await db.rollback()
        session = (await db.execute(query)).scalar_one()
        session.status = status
        session.last_question_index = last_question_index
        session.updated_at = utcnow()
        await db.commit()
    await db.refresh(session)
    return session


async def complete_session(db: AsyncSession, submission: AssessmentSubmission) -> None:
    """Best effort; a failure here must not fail the submit."""
    try:
        await upsert_session(
            db,
            submission.session_id,
            submission.assessment_type,
            submission.assessment_version,
            "completed",
            max(len(submission.answers) - 1, 0),
            submission.user_id,
        )
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("assessment_session_update_failed", session_id=submission.session_id, error=str(exc))


async def insert_events(db: AsyncSession, events: list) -> int:
    """Returns how many rows were written; 0 when the insert failed."""
    rows = [
        AssessmentEvent(
            assessment_type=event.assessment_type,
            assessment_version=event.assessment_version or 1,
            session_id=event.session_id,
            event_type=event.event_type,
            primary_avatar=event.primary_avatar,
            properties=event.metadata or {},
        )
        for event in events
    ]
    try:
        db.add_all(rows)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("assessment_events_insert_failed", count=len(rows), error=str(exc))
        return 0
    return len(rows)


async def merge_metadata(
    db: AsyncSession, submission: AssessmentSubmission, extra: dict[str, Any], **fields,
) -> AssessmentSubmission:
    submission.meta = {**(submission.meta or {}), **extra}
    for name, value in fields.items():
        setattr(submission, name, value)
    await db.commit()
    await db.refresh(submission)
    return submission


async def claim_submission(
    db: AsyncSession, claim_token: str, user_id: uuid.UUID,
) -> AssessmentSubmission | None:
    result = await db.execute(
        select(AssessmentSubmission)
        .where(
            AssessmentSubmission.user_id.is_(None),
            AssessmentSubmission.meta["claimToken"].as_string() == claim_token,
        )
        .limit(1)
    )
    submission = result.scalar_one_or_none()
    if submission is None:
        return None

    submission = await merge_metadata(
        db, submission,
        {"claimedAt": utcnow().isoformat(), "claimedBy": str(user_id)},
        user_id=user_id,
    )
    logger.info("assessment_claimed", submission_id=str(submission.id), user_id=str(user_id))
    return submission


async def list_user_submissions(db: AsyncSession, user_id: uuid.UUID) -> list[AssessmentSubmission]:
    result = await db.execute(
        select(AssessmentSubmission)
        .where(AssessmentSubmission.user_id == user_id)
        .order_by(AssessmentSubmission.created_at.desc())
    )
    return list(result.scalars().all())


async def list_submissions(
    db: AsyncSession,
    assessment_type: str | None = None,
    assessment_version: int | None = None,
    primary_avatar: str | None = None,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[AssessmentSubmission], int]:
    query = select(AssessmentSubmission)
    count_query = select(func.count()).select_from(AssessmentSubmission)

    if assessment_type:
        query = query.where(AssessmentSubmission.assessment_type == assessment_type)
        count_query = count_query.where(AssessmentSubmission.assessment_type == assessment_type)
    if assessment_version is not None:
        query = query.where(AssessmentSubmission.assessment_version == assessment_version)
        count_query = count_query.where(AssessmentSubmission.assessment_version == assessment_version)
    if primary_avatar:
        query = query.where(AssessmentSubmission.primary_avatar == primary_avatar)
        count_query = count_query.where(AssessmentSubmission.primary_avatar == primary_avatar)

    total = (await db.execute(count_query)).scalar_one()
    query = query.order_by(AssessmentSubmission.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)
    return list(result.scalars().all()), total


def submission_webhook_payload(submission: AssessmentSubmission) -> dict:
    return {
        "submission_id": str(submission.id),
        "assessment_type": submission.assessment_type,
        "assessment_version": submission.assessment_version,
        "session_id": submission.session_id,
        "primary_avatar": submission.primary_avatar,
        "secondary_avatar": submission.secondary_avatar,
        "email": submission.email,
        "user_id": str(submission.user_id) if submission.user_id else None,
    }


def email_capture_payload(submission: AssessmentSubmission, data) -> dict:
    return {
        "submission_id": str(submission.id),
        "assessment_type": data.assessment_type,
        "assessment_version": data.assessment_version,
        "session_id": data.session_id,
        "email": submission.email,
        "levelId": data.level_id or submission.primary_avatar or None,
        "resultsVersion": data.results_version or RESULTS_VERSION,
        "event_type": "email_capture",
        "email_type": data.email_type,
    }


def _version_sort_key(entry: dict):
    version = entry["assessment_version"]
    try:
        numeric = (0, float(version), "")
    except ValueError:
        numeric = (1, 0.0, version)
    return entry["assessment_type"], numeric, entry["locale"] or ""


def build_assessment_index(question_sets: list, packs: list) -> list[dict]:
    """Group question sets and results packs by type:version:locale.

    Results packs carry no locale, so they join the null-locale entry.
    """
    entries: dict[str, dict] = {}

    def entry_for(assessment_type: str, version: str, locale: str | None) -> dict:
        key = f"{assessment_type}:{version}:{locale or 'null'}"
        if key not in entries:
            entries[key] = {
                "assessment_type": assessment_type,
                "assessment_version": version,
                "locale": locale,
                "question_set_id": None,
                "results_pack_ids": {level: None for level in LEVEL_IDS},
            }
        return entries[key]

    for question_set in question_sets:
        entry = entry_for(question_set.assessment_type, question_set.assessment_version, question_set.locale)
        entry["question_set_id"] = question_set.id

    for pack in packs:
        entry = entry_for(pack.assessment_type, pack.results_version, None)
        if pack.level_id in entry["results_pack_ids"]:
            entry["results_pack_ids"][pack.level_id] = pack.id

    return sorted(entries.values(), key=_version_sort_key)


async def get_assessment_index(db: AsyncSession) -> list[dict]:
    question_sets = (await db.execute(select(QuestionSet))).scalars().all()
    packs = (await db.execute(select(ResultsPack))).scalars().all()
    return build_assessment_index(list(question_sets), list(packs))


async def scaffold_results(
    db: AsyncSession, assessment_type: str, results_version: str, actor_id: uuid.UUID | None,
) -> tuple[dict[str, uuid.UUID], dict[str, bool]]:
    packs: dict[str, uuid.UUID] = {}
    created: dict[str, bool] = {}
    for level_id in LEVEL_IDS:
        pack, was_created = await ensure_pack(
            db, assessment_type, results_version, level_id, actor_id, commit=False,
        )
        packs[level_id] = pack.id
        created[level_id] = was_created
    await db.commit()
    return packs, created


STARTER_NOTE = "Starter draft created by scaffold"


def starter_question_set(assessment_type: str, assessment_version: str) -> dict:
    return {
        **load_fallback("questions_gut_check_v2.json"),
        "assessmentType": assessment_type,
        "version": str(assessment_version),
    }


def starter_results_pack(level_id: str) -> dict:
    body = ["(Draft) Body paragraph 1", "(Draft) Body paragraph 2"]
    return {
        "label": f"(Draft) {level_id.capitalize()} Title",
        "summary": "(Draft) Summary text...",
        "keyPatterns": ["(Draft) Pattern 1", "(Draft) Pattern 2"],
        "firstFocusAreas": ["(Draft) Focus area 1", "(Draft) Focus area 2"],
        "methodPositioning": "(Draft) Method positioning text...",
        "flow": {
            page: {"headline": f"(Draft) Page {number} Headline", "body": list(body)}
            for number, page in enumerate(("page1", "page2", "page3"), start=1)
        },
    }


async def _scaffold_question_draft(
    db: AsyncSession, question_set_id: uuid.UUID, actor_id: uuid.UUID | None,
) -> dict | None:
    question_set = await question_sets_service.get_question_set(db, question_set_id)
    if question_set is None:
        raise ScaffoldTargetNotFound("Question set not found")
    if await question_sets_service.list_revisions(db, question_set.id):
        return None

    content = starter_question_set(question_set.assessment_type, question_set.assessment_version)
    validation = validate_question_set(content)
    if not validation["ok"]:
        raise StarterTemplateInvalid("Invalid starter template", validation["errors"])

    revision = await question_sets_service.create_draft_revision(
        db, question_set, validation["normalized"], STARTER_NOTE, actor_id,
    )
    return {"revision_id": revision.id, "revision_number": revision.revision_number}


async def _scaffold_pack_draft(
    db: AsyncSession, pack_id: uuid.UUID, level_id: str, actor_id: uuid.UUID | None,
) -> dict | None:
    pack = await results_packs_service.get_pack(db, pack_id)
    if pack is None:
        raise ScaffoldTargetNotFound(f"Results pack not found for {level_id}")
    if await results_packs_service.list_revisions(db, pack.id):
        return None

    validation = validate_results_pack(starter_results_pack(level_id))
    if not validation["ok"]:
        raise StarterTemplateInvalid(f"Invalid starter template for {level_id}", validation["errors"])

    revision = await results_packs_service.create_draft_revision(
        db, pack, validation["normalized"], STARTER_NOTE, actor_id,
    )
    return {"revision_id": revision.id, "revision_number": revision.revision_number}


async def scaffold_drafts(
    db: AsyncSession,
    question_set_id: uuid.UUID | None,
    results_pack_ids: dict[str, uuid.UUID],
    actor_id: uuid.UUID | None,
) -> tuple[dict, dict]:
    """Give a starter draft to the question set and to each pack that has no revisions yet.

    Returns (created, skipped). Raises ScaffoldTargetNotFound or StarterTemplateInvalid.
    """
    created: dict[str, Any] = {}
    skipped: dict[str, Any] = {}

    if question_set_id is not None:
        draft = await _scaffold_question_draft(db, question_set_id, actor_id)
        if draft is None:
            skipped["question_set"] = True
        else:
            created["question_draft"] = draft

    if results_pack_ids:
        created["results_drafts"] = {}
        skipped_levels = []
        for level_id, pack_id in results_pack_ids.items():
            draft = await _scaffold_pack_draft(db, pack_id, level_id, actor_id)
            if draft is None:
                skipped_levels.append(level_id)
            else:
                created["results_drafts"][level_id] = draft
        if skipped_levels:
            skipped["results_packs"] = skipped_levels

    logger.info("assessment_drafts_scaffolded", created=sorted(created), skipped=sorted(skipped))
    return created, skipped


async def score_answers(
    db: AsyncSession,
    assessment_type: str,
    assessment_version: int,
    answers: list[dict],
    locale: str | None = None,
) -> dict:
    """Score answers server-side. Raises QuestionSetNotResolved or UnknownAssessment."""
    config = await get_assessment_config(db, assessment_type, assessment_version)
    thresholds = (config.get("scoring") or {}).get("thresholds") or {}

    if assessment_version == 1:
        definition = get_static_definition(assessment_type, 1)
        if definition is None:
            raise UnknownAssessment(f"No definition for {assessment_type} v1")
        result = score_v1(answers, definition, thresholds)
        primary = result["primary_avatar"]
        source = "file"
    else:
        resolved = await resolve_question_set(db, assessment_type, assessment_version, locale)
        responses = answers_to_responses(answers, resolved["question_set"])
        result = score_v2(responses, thresholds)
        primary = result["primary_level"]
        source = resolved["source"]

    return {
        "assessment_version": assessment_version,
        "result": result,
        "primary_avatar": primary,
        "avatar_key": await get_avatar_key(db, primary),
        "question_set_source": source,
    }
