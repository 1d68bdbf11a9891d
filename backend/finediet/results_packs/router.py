import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.service import record_audit
from finediet.database import get_db
from finediet.dependencies import get_optional_user, require_admin, require_editor
from finediet.results_packs.models import ResultsPack, ResultsPackRevision
from finediet.results_packs.schemas import (
    PackPointerResponse,
    PackPointerUpdate,
    PackRevisionCreate,
    PackRevisionCreateResponse,
    PackRevisionResponse,
    PackRevisionSummary,
    PublishedPackResponse,
    ResultsPackCreate,
    ResultsPackCreateResponse,
    ResultsPackDetailResponse,
    ResultsPackListResponse,
    ResultsPackResolveResponse,
    ResultsPackResponse,
    ResultsPackSummary,
)
from finediet.results_packs.service import (
    ResultsPackNotResolved,
    create_draft_revision,
    ensure_pack,
    get_pack,
    get_pointer,
    get_published_revision,
    get_revision,
    list_packs,
    list_revisions,
    publish_revision,
    resolve_results_pack,
    set_preview_revision,
)
from finediet.results_packs.validation import RESULTS_VERSION, validate_results_pack
from finediet.users.models import User

router = APIRouter(prefix="/results-packs", tags=["results-packs"])
admin_router = APIRouter(prefix="/admin/results-packs", tags=["results-packs"])

ENTITY = "results_pack"


async def _get_pack_or_404(db: AsyncSession, pack_id: uuid.UUID) -> ResultsPack:
    pack = await get_pack(db, pack_id)
    if not pack:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Results pack not found")
    return pack


async def _get_revision_for_pack(
    db: AsyncSession, pack: ResultsPack, revision_id: uuid.UUID,
) -> ResultsPackRevision:
    revision = await get_revision(db, revision_id)
    if not revision:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Revision not found")
    if revision.pack_id != pack.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Revision does not belong to this pack",
        )
    return revision


def _validation_failed(result: dict) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"message": "Results pack failed validation", "errors": result["errors"], "warnings": result["warnings"]},
    )


@router.get("/resolve", response_model=ResultsPackResolveResponse)
async def resolve(
    assessment_type: str = Query("gut-check", alias="type"),
    results_version: str = Query(RESULTS_VERSION, alias="version"),
    level_id: str = Query(..., alias="level"),
    preview: bool = Query(False),
    revision_id: uuid.UUID | None = Query(None),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    allow_preview = preview and user is not None and user.can_edit_content
    try:
        return await resolve_results_pack(
            db, assessment_type, results_version, level_id, allow_preview, revision_id,
        )
    except ResultsPackNotResolved as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/{assessment_type}/{results_version}/{level_id}", response_model=PublishedPackResponse)
async def get_published(
    assessment_type: str,
    results_version: str,
    level_id: str,
    db: AsyncSession = Depends(get_db),
):
    found = await get_published_revision(db, assessment_type, results_version, level_id)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Published results pack not found")
    pack, revision = found
    return PublishedPackResponse(
        pack_id=pack.id,
        revision_id=revision.id,
        revision_number=revision.revision_number,
        content_hash=revision.content_hash,
        schema_version=revision.schema_version,
        published_at=revision.created_at,
        content_json=revision.content_json,
    )


@admin_router.get("", response_model=ResultsPackListResponse)
async def list_all(
    assessment_type: str | None = Query(None, alias="type"),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    rows = await list_packs(db, assessment_type)
    items = [
        ResultsPackSummary(
            pack=ResultsPackResponse.model_validate(row["pack"]),
            pointer=PackPointerResponse.model_validate(row["pointer"]) if row["pointer"] else None,
            latest_revision_number=row["latest_revision_number"],
        )
        for row in rows
    ]
    return ResultsPackListResponse(items=items, total=len(items))


@admin_router.post("", response_model=ResultsPackCreateResponse)
async def create(
    data: ResultsPackCreate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    pack, created = await ensure_pack(db, data.assessment_type, data.results_version, data.level_id, user.id)
    if created:
        await record_audit(db, user.id, "results.create_pack", ENTITY, pack.id, {"slug": pack.slug})
    return ResultsPackCreateResponse(pack=ResultsPackResponse.model_validate(pack), created=created)


@admin_router.get("/{pack_id}", response_model=ResultsPackDetailResponse)
async def get_detail(
    pack_id: uuid.UUID,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    pack = await _get_pack_or_404(db, pack_id)
    pointer = await get_pointer(db, pack.id)
    revisions = await list_revisions(db, pack.id)
    return ResultsPackDetailResponse(
        pack=ResultsPackResponse.model_validate(pack),
        pointer=PackPointerResponse.model_validate(pointer) if pointer else None,
        revisions=[PackRevisionSummary.model_validate(r) for r in revisions],
    )


@admin_router.get("/{pack_id}/revisions/{revision_id}", response_model=PackRevisionResponse)
async def get_pack_revision(
    pack_id: uuid.UUID,
    revision_id: uuid.UUID,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    pack = await _get_pack_or_404(db, pack_id)
    revision = await _get_revision_for_pack(db, pack, revision_id)
    return PackRevisionResponse.model_validate(revision)


@admin_router.post(
    "/{pack_id}/revisions",
    response_model=PackRevisionCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_revision(
    pack_id: uuid.UUID,
    data: PackRevisionCreate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    pack = await _get_pack_or_404(db, pack_id)
    validation = validate_results_pack(data.content_json)
    if not validation["ok"]:
        raise _validation_failed(validation)

    revision = await create_draft_revision(
        db, pack, validation["normalized"], data.change_summary, user.id, validation["warnings"],
    )
    await record_audit(
        db, user.id, "results.create_draft", ENTITY, pack.id,
        {"revision_id": str(revision.id), "revision_number": revision.revision_number},
    )
    return PackRevisionCreateResponse(
        revision=PackRevisionResponse.model_validate(revision),
        warnings=validation["warnings"],
    )


@admin_router.post("/{pack_id}/preview", response_model=PackPointerResponse)
async def set_preview(
    pack_id: uuid.UUID,
    data: PackPointerUpdate,
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    pack = await _get_pack_or_404(db, pack_id)
    revision = await _get_revision_for_pack(db, pack, data.revision_id)
    pointer = await set_preview_revision(db, pack, revision, user.id)
    await record_audit(
        db, user.id, "results.set_preview", ENTITY, pack.id,
        {"revision_id": str(revision.id), "revision_number": revision.revision_number},
    )
    return PackPointerResponse.model_validate(pointer)


@admin_router.post("/{pack_id}/publish", status_code=status.HTTP_204_NO_CONTENT)
async def publish(
    pack_id: uuid.UUID,
    data: PackPointerUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    pack = await _get_pack_or_404(db, pack_id)
    revision = await _get_revision_for_pack(db, pack, data.revision_id)

    validation = validate_results_pack(revision.content_json)
    if not validation["ok"]:
        raise _validation_failed(validation)

    await publish_revision(db, pack, revision, admin.id)
    await record_audit(
        db, admin.id, "results.publish", ENTITY, pack.id,
        {"revision_id": str(revision.id), "revision_number": revision.revision_number},
    )
