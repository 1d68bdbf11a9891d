import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.audit.service import record_audit
from finediet.database import get_db
from finediet.dependencies import require_admin
from finediet.users.models import User
from finediet.users.schemas import Role, RoleUpdate, UserListResponse, UserResponse
from finediet.users.service import get_user_by_id, get_user_list, set_user_role

router = APIRouter(prefix="/admin/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    role: Role | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items, total = await get_user_list(db, role, page, per_page)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in items],
        total=total,
    )


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: uuid.UUID,
    data: RoleUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await get_user_by_id(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    previous = user.effective_role
    user = await set_user_role(db, user, data.role)
    await record_audit(
        db, admin.id, "users.set_role", "user", user.id,
        {"from": previous, "to": data.role},
    )
    return UserResponse.model_validate(user)
