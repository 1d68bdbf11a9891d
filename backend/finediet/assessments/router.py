import uuid

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.assessments.schemas import (
    AssessmentIndexEntry,
    AssessmentIndexResponse,
    ClaimRequest,
    EmailCaptureRequest,
    EventBatch,
    EventBatchResponse,
    ScaffoldDraftsRequest,
    ScaffoldDraftsResponse,
    ScaffoldQuestionsRequest,
    ScaffoldQuestionsResponse,
    ScaffoldResultsRequest,
    ScaffoldResultsResponse,
    ScoreRequest,
    ScoreResponse,
    SessionUpdate,
    SessionUpdateResponse,
    SubmissionListResponse,
    SubmissionResponse,
    SubmitRequest,
    SubmitResponse,
    SuccessResponse,
    UpdatePackRefRequest,
)
from finediet.assessments.service import (
    ScaffoldTargetNotFound,
    StarterTemplateInvalid,
    UnknownAssessment,
    claim_submission,
    complete_session,
    create_submission,
    email_capture_payload,
    find_latest_submission,
    get_assessment_index,
    get_submission,
    insert_events,
    list_submissions,
    list_user_submissions,
    merge_metadata,
    scaffold_drafts,
    scaffold_results,
    score_answers,
    submission_webhook_payload,
    upsert_session,
)
from finediet.audit.service import record_audit
from finediet.config import settings
from finediet.database import get_db
from finediet.dependencies import get_current_user, require_editor
from finediet.outbox.models import TARGET_EMAIL_CAPTURE, TARGET_N8N
from finediet.outbox.service import enqueue, fire_webhook
from finediet.question_sets.service import QuestionSetNotResolved, ensure_question_set
from finediet.site_config.service import webhooks_enabled
from finediet.users.models import User

logger = structlog.get_logger()

router = APIRouter(prefix="/assessments", tags=["assessments"])
account_router = APIRouter(prefix="/account", tags=["account"])
admin_router = APIRouter(prefix="/admin/assessments", tags=["assessments"])


@router.post("/submit", response_model=SubmitResponse)
async def submit(
    data: SubmitRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    submission, created = await create_submission(db, data)
    if not created:
        return SubmitResponse(success=True, submission_id=submission.id)

    await complete_session(db, submission)

    webhook_url = settings.N8N_WEBHOOK_URL
    if webhook_url and await webhooks_enabled(db):
        payload = submission_webhook_payload(submission)
        _, enqueued = await enqueue(db, submission.id, TARGET_N8N, webhook_url, payload)
        if enqueued:
            background_tasks.add_task(fire_webhook, webhook_url, payload)

    return SubmitResponse(success=True, submission_id=submission.id)


@router.post("/score", response_model=ScoreResponse)
async def score(
    data: ScoreRequest,
    db: AsyncSession = Depends(get_db),
):
    answers = [answer.model_dump() for answer in data.answers]
    try:
        return await score_answers(db, data.assessment_type, data.assessment_version, answers, data.locale)
    except (QuestionSetNotResolved, UnknownAssessment) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/email-capture", response_model=SuccessResponse)
async def email_capture(
    data: EmailCaptureRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    if data.submission_id is not None:
        submission = await get_submission(db, data.submission_id)
    else:
        submission = await find_latest_submission(
            db, data.session_id, data.assessment_type, data.assessment_version,
        )
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assessment submission not found")

    submission = await merge_metadata(db, submission, data.metadata, email=data.email.lower())

    webhook_url = settings.N8N_WEBHOOK_URL
    if webhook_url:
        payload = email_capture_payload(submission, data)
        _, enqueued = await enqueue(db, submission.id, TARGET_EMAIL_CAPTURE, webhook_url, payload)
        if enqueued:
            background_tasks.add_task(fire_webhook, webhook_url, payload)
        else:
            logger.info("email_capture_already_enqueued", submission_id=str(submission.id))

    return SuccessResponse(success=True)


@router.post("/session", response_model=SessionUpdateResponse)
async def update_session(
    data: SessionUpdate,
    db: AsyncSession = Depends(get_db),
):
    session = await upsert_session(
        db, data.session_id, data.assessment_type, data.assessment_version,
        data.status, data.last_question_index,
    )
    return SessionUpdateResponse(success=True, assessment_version=session.assessment_version)


@router.post("/events", response_model=EventBatchResponse)
async def record_events(
    data: EventBatch,
    db: AsyncSession = Depends(get_db),
):
    inserted = await insert_events(db, data.events)
    return EventBatchResponse(success=True, inserted=inserted)


@router.post("/claim", response_model=SubmitResponse, responses={204: {"description": "No matching submission"}})
async def claim(
    data: ClaimRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    submission = await claim_submission(db, data.claim_token, user.id)
    if submission is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return SubmitResponse(success=True, submission_id=submission.id)


@router.get("/submission", response_model=SubmissionResponse)
async def read_submission(
    submission_id: uuid.UUID = Query(...),
    db: AsyncSession = Depends(get_db),
):
    submission = await get_submission(db, submission_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    return SubmissionResponse.model_validate(submission)


@router.post("/update-pack-ref", response_model=SuccessResponse)
async def update_pack_ref(
    data: UpdatePackRefRequest,
    db: AsyncSession = Depends(get_db),
):
    submission = await get_submission(db, data.submission_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    await merge_metadata(db, submission, {"resultsPackRef": data.results_pack_ref})
    return SuccessResponse(success=True)


@account_router.get("/assessments", response_model=SubmissionListResponse)
async def my_assessments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await list_user_submissions(db, user.id)
    return SubmissionListResponse(
        items=[SubmissionResponse.model_validate(s) for s in items],
        total=len(items),
    )


@admin_router.get("/submissions", response_model=SubmissionListResponse)
async def admin_list_submissions(
    assessment_type: str | None = Query(None, alias="type"),
    assessment_version: int | None = Query(None, alias="version"),
    primary_avatar: str | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    items, total = await list_submissions(db, assessment_type, assessment_version, primary_avatar, page, per_page)
    return SubmissionListResponse(
        items=[SubmissionResponse.model_validate(s) for s in items],
        total=total,
    )


@admin_router.get("/index", response_model=AssessmentIndexResponse)
async def assessment_index(
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    entries = await get_assessment_index(db)
    return AssessmentIndexResponse(
        items=[AssessmentIndexEntry(**entry) for entry in entries],
        total=len(entries),
    )


@admin_router.post("/scaffold-questions", response_model=ScaffoldQuestionsResponse)
async def scaffold_questions(
    data: ScaffoldQuestionsRequest,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    question_set, created = await ensure_question_set(
        db, data.assessment_type, data.assessment_version, data.locale, user.id,
    )
    return ScaffoldQuestionsResponse(question_set_id=question_set.id, created=created)


@admin_router.post("/scaffold-results", response_model=ScaffoldResultsResponse)
async def scaffold_results_packs(
    data: ScaffoldResultsRequest,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    packs, created = await scaffold_results(db, data.assessment_type, data.results_version, user.id)
    await record_audit(
        db, user.id, "assessments.scaffold_results", "results_packs", None,
        {
            "assessment_type": data.assessment_type,
            "results_version": data.results_version,
            "packs": {level: str(pack_id) for level, pack_id in packs.items()},
            "created": created,
        },
    )
    return ScaffoldResultsResponse(packs=packs, created=created)


@admin_router.post("/scaffold-drafts", response_model=ScaffoldDraftsResponse, response_model_exclude_none=True)
async def scaffold_starter_drafts(
    data: ScaffoldDraftsRequest,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    if data.question_set_id is None and data.results_pack_ids is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="question_set_id or results_pack_ids required",
        )
    pack_ids = data.results_pack_ids.model_dump(exclude_none=True) if data.results_pack_ids else {}

    try:
        created, skipped = await scaffold_drafts(db, data.question_set_id, pack_ids, user.id)
    except ScaffoldTargetNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except StarterTemplateInvalid as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail={"message": str(exc), "errors": exc.errors},
        )

    response = ScaffoldDraftsResponse.model_validate({"created": created, "skipped": skipped})
    await record_audit(
        db, user.id, "assessments.scaffold_drafts", "assessment_scaffold", None,
        {
            "question_set_id": str(data.question_set_id) if data.question_set_id else None,
            "results_pack_ids": {level: str(pack_id) for level, pack_id in pack_ids.items()},
            **response.model_dump(mode="json", exclude_none=True),
        },
    )
    return response
