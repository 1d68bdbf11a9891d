import structlog
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.auth.jwt import create_access_token, create_refresh_token
from finediet.config import settings
from finediet.users.models import User
from finediet.users.schemas import UserCreate
from finediet.users.service import get_user_by_email

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def issue_tokens(user: User) -> tuple[str, str]:
    return (
        create_access_token(str(user.id), user.effective_role),
        create_refresh_token(str(user.id), user.effective_role),
    )


async def register_user(db: AsyncSession, data: UserCreate) -> tuple[User, str, str]:
    email = data.email.strip().lower()
    role = "admin" if email in settings.admin_emails else "user"
    user = User(
        email=email,
        full_name=data.full_name,
        password_hash=hash_password(data.password),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("user_registered", user_id=str(user.id), role=role)
    access_token, refresh_token = issue_tokens(user)
    return user, access_token, refresh_token


async def authenticate_user(db: AsyncSession, email: str, password: str) -> tuple[User, str, str] | None:
    user = await get_user_by_email(db, email)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        return None

    access_token, refresh_token = issue_tokens(user)
    return user, access_token, refresh_token
