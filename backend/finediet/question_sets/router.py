import uuid

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.service import record_audit
from finediet.database import get_db
from finediet.dependencies import get_optional_user, require_admin, require_editor
from finediet.question_sets.csv_import import import_question_set_csv
from finediet.question_sets.models import QuestionSet, QuestionSetRevision
from finediet.question_sets.schemas import (
    CsvImportResponse,
    DeleteResponse,
    PointerResponse,
    PointerUpdate,
    QuestionSetCreate,
    QuestionSetCreateResponse,
    QuestionSetDetailResponse,
    QuestionSetListResponse,
    QuestionSetResponse,
    QuestionSetSummary,
    RevisionCreate,
    RevisionCreateResponse,
    RevisionResponse,
    RevisionSummary,
    ResolveResponse,
)
from finediet.question_sets.service import (
    QuestionSetNotResolved,
    archive_question_set,
    create_draft_revision,
    delete_question_set,
    ensure_question_set,
    get_pointer,
    get_question_set,
    get_revision,
    list_question_sets,
    list_revisions,
    parse_version,
    publish_revision,
    resolve_question_set,
    set_preview_revision,
    unarchive_question_set,
)
from finediet.question_sets.validation import validate_question_set
from finediet.users.models import User

router = APIRouter(prefix="/question-sets", tags=["question-sets"])
admin_router = APIRouter(prefix="/admin/question-sets", tags=["question-sets"])

ENTITY = "question_set"


async def _get_set_or_404(db: AsyncSession, question_set_id: uuid.UUID) -> QuestionSet:
    question_set = await get_question_set(db, question_set_id)
    if not question_set:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question set not found")
    return question_set


async def _get_revision_for_set(
    db: AsyncSession, question_set: QuestionSet, revision_id: uuid.UUID,
) -> QuestionSetRevision:
    revision = await get_revision(db, revision_id)
    if not revision:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Revision not found")
    if revision.question_set_id != question_set.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Revision does not belong to this question set",
        )
    return revision


def _validation_failed(result: dict) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": "Question set failed validation", "errors": result["errors"], "warnings": result["warnings"]},
    )


@router.get("/resolve", response_model=ResolveResponse)
async def resolve(
    assessment_type: str = Query("gut-check", alias="type"),
    version: str | None = Query(None),
    locale: str | None = Query(None),
    preview: bool = Query(False),
    revision_id: uuid.UUID | None = Query(None),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    allow_preview = preview and user is not None and user.can_edit_content
    try:
        return await resolve_question_set(
            db, assessment_type, parse_version(version), locale, allow_preview, revision_id,
        )
    except QuestionSetNotResolved as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@admin_router.get("", response_model=QuestionSetListResponse)
async def list_sets(
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_question_sets(db)
    items = [
        QuestionSetSummary(
            question_set=QuestionSetResponse.model_validate(row["question_set"]),
            pointer=PointerResponse.model_validate(row["pointer"]) if row["pointer"] else None,
            latest_revision_number=row["latest_revision_number"],
        )
        for row in rows
    ]
    return QuestionSetListResponse(items=items, total=len(items))


@admin_router.post("", response_model=QuestionSetCreateResponse)
async def create_set(
    data: QuestionSetCreate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    question_set, created = await ensure_question_set(
        db, data.assessment_type, data.assessment_version, data.locale, user.id,
    )
    if created:
        await record_audit(db, user.id, "questions.create_set", ENTITY, question_set.id, {"slug": question_set.slug})
    return QuestionSetCreateResponse(question_set=QuestionSetResponse.model_validate(question_set), created=created)


@admin_router.post("/import-csv", response_model=CsvImportResponse, status_code=status.HTTP_201_CREATED)
async def import_csv(
    meta: UploadFile = File(...),
    sections: UploadFile = File(...),
    questions: UploadFile = File(...),
    options: UploadFile = File(...),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    contents = []
    for upload in (meta, sections, questions, options):
        raw = await upload.read()
        try:
            contents.append(raw.decode("utf-8-sig"))
        except UnicodeDecodeError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{upload.filename or 'upload'} is not valid UTF-8",
            )

    built = import_question_set_csv(*contents)
    if built["errors"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "CSV import failed", "errors": built["errors"]},
        )

    validation = validate_question_set(built["question_set"])
    if not validation["ok"]:
        raise _validation_failed(validation)

    csv_meta = built["meta"]
    question_set, created = await ensure_question_set(
        db, csv_meta["assessment_type"], csv_meta["assessment_version"], csv_meta["locale"], user.id,
    )
    if question_set.status == "archived":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question set is archived")

    revision = await create_draft_revision(
        db, question_set, validation["normalized"], csv_meta["notes"] or "Imported from CSV", user.id,
        validation["warnings"],
    )
    await record_audit(
        db, user.id, "questions.import_csv", ENTITY, question_set.id,
        {"revision_id": str(revision.id), "revision_number": revision.revision_number},
    )
    return CsvImportResponse(
        question_set_id=question_set.id,
        revision_id=revision.id,
        revision_number=revision.revision_number,
        created_question_set=created,
        warnings=validation["warnings"],
    )


@admin_router.get("/{question_set_id}", response_model=QuestionSetDetailResponse)
async def get_set(
    question_set_id: uuid.UUID,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    pointer = await get_pointer(db, question_set.id)
    revisions = await list_revisions(db, question_set.id)
    return QuestionSetDetailResponse(
        question_set=QuestionSetResponse.model_validate(question_set),
        pointer=PointerResponse.model_validate(pointer) if pointer else None,
        revisions=[RevisionSummary.model_validate(r) for r in revisions],
    )


@admin_router.get("/{question_set_id}/revisions/{revision_id}", response_model=RevisionResponse)
async def get_set_revision(
    question_set_id: uuid.UUID,
    revision_id: uuid.UUID,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    revision = await _get_revision_for_set(db, question_set, revision_id)
    return RevisionResponse.model_validate(revision)


@admin_router.post(
    "/{question_set_id}/revisions",
    response_model=RevisionCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_revision(
    question_set_id: uuid.UUID,
    data: RevisionCreate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    if question_set.status == "archived":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question set is archived")

    validation = validate_question_set(data.content_json)
    if not validation["ok"]:
        raise _validation_failed(validation)

    revision = await create_draft_revision(
        db, question_set, validation["normalized"], data.notes, user.id, validation["warnings"],
    )
    await record_audit(
        db, user.id, "questions.create_draft", ENTITY, question_set.id,
        {"revision_id": str(revision.id), "revision_number": revision.revision_number},
    )
    return RevisionCreateResponse(
        revision=RevisionResponse.model_validate(revision),
        warnings=validation["warnings"],
    )


@admin_router.post("/{question_set_id}/preview", response_model=PointerResponse)
async def set_preview(
    question_set_id: uuid.UUID,
    data: PointerUpdate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    revision = await _get_revision_for_set(db, question_set, data.revision_id)
    pointer = await set_preview_revision(db, question_set, revision, user.id)
    await record_audit(
        db, user.id, "questions.set_preview", ENTITY, question_set.id,
        {"revision_id": str(revision.id), "revision_number": revision.revision_number},
    )
    return PointerResponse.model_validate(pointer)


@admin_router.post("/{question_set_id}/publish", status_code=status.HTTP_204_NO_CONTENT)
async def publish(
    question_set_id: uuid.UUID,
    data: PointerUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    if question_set.status == "archived":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question set is archived")
    revision = await _get_revision_for_set(db, question_set, data.revision_id)

    validation = validate_question_set(revision.content_json)
    if not validation["ok"]:
        raise _validation_failed(validation)

    await publish_revision(db, question_set, revision, admin.id)
    await record_audit(
        db, admin.id, "questions.publish", ENTITY, question_set.id,
        {"revision_id": str(revision.id), "revision_number": revision.revision_number},
    )


@admin_router.post("/{question_set_id}/archive", response_model=QuestionSetResponse)
async def archive(
    question_set_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    if question_set.status == "archived":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question set is already archived")
    question_set = await archive_question_set(db, question_set, admin.id)
    await record_audit(db, admin.id, "questions.archive", ENTITY, question_set.id, {"slug": question_set.slug})
    return QuestionSetResponse.model_validate(question_set)


@admin_router.post("/{question_set_id}/unarchive", response_model=QuestionSetResponse)
async def unarchive(
    question_set_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    if question_set.status != "archived":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Question set is not archived")
    question_set = await unarchive_question_set(db, question_set)
    await record_audit(db, admin.id, "questions.unarchive", ENTITY, question_set.id, {"slug": question_set.slug})
    return QuestionSetResponse.model_validate(question_set)


@admin_router.delete("/{question_set_id}", response_model=DeleteResponse)
async def delete(
    question_set_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    question_set = await _get_set_or_404(db, question_set_id)
    slug = question_set.slug
    warning = await delete_question_set(db, question_set)
    await record_audit(db, admin.id, "questions.delete", ENTITY, question_set_id, {"slug": slug, "warning": warning})
    return DeleteResponse(success=True, warning=warning)
