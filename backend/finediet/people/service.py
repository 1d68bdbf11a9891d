import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.config import settings
from finediet.models.base import utcnow
from finediet.outbox.service import fire_webhook
from finediet.people.models import STATUS_PRIORITY, PeopleEvent, Person, Subscription, WaitlistSignup
from finediet.site_config.service import webhooks_enabled

logger = structlog.get_logger()


class DuplicateSignup(Exception):
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def split_name(name: str | None) -> tuple[str | None, str | None]:
    if not name or not name.strip():
        return None, None
    first, *rest = name.split()
    return first, " ".join(rest) or None


def _status_priority(status: str | None) -> int:
    return STATUS_PRIORITY.get(status or "", 0)


async def get_person_by_email(db: AsyncSession, email: str) -> Person | None:
    result = await db.execute(select(Person).where(Person.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def upsert_person(
    db: AsyncSession,
    email: str,
    *,
    first_name: str | None = None,
    last_name: str | None = None,
    phone: str | None = None,
    status: str = "marketing_only",
    source: str | None = None,
    utm_source: str | None = None,
    utm_medium: str | None = None,
    utm_campaign: str | None = None,
    email_opt_in: bool | None = None,
    sms_opt_in: bool | None = None,
    user_id: uuid.UUID | None = None,
    metadata: dict | None = None,
) -> Person:
    """Create or update the person for an email.

    Status only moves to a higher-priority value. primary_source is kept from
    the first write. Other fields are only overwritten when a value is given.
    """
    now = utcnow()
    person = await get_person_by_email(db, email)
    if person is None:
        person = Person(
            email=normalize_email(email),
            status=status,
            primary_source=source,
            email_marketing_opt_in=True,
            sms_marketing_opt_in=False,
            meta={},
        )
        db.add(person)
    elif _status_priority(status) > _status_priority(person.status):
        logger.info("person_status_upgraded", person_id=str(person.id), old=person.status, new=status)
        person.status = status

    person.last_source = source or person.last_source
    person.first_name = first_name or person.first_name
    person.last_name = last_name or person.last_name
    person.phone = phone or person.phone
    person.utm_source = utm_source or person.utm_source
    person.utm_medium = utm_medium or person.utm_medium
    person.utm_campaign = utm_campaign or person.utm_campaign
    person.user_id = user_id or person.user_id

    if email_opt_in is not None:
        person.email_marketing_opt_in = email_opt_in
        if email_opt_in and person.email_opt_in_at is None:
            person.email_opt_in_at = now
    if sms_opt_in is not None:
        person.sms_marketing_opt_in = sms_opt_in
        if sms_opt_in and person.sms_opt_in_at is None:
            person.sms_opt_in_at = now

    person.meta = {**(person.meta or {}), **(metadata or {})}
    person.updated_at = now

    await db.commit()
    await db.refresh(person)
    return person


async def ensure_subscription(
    db: AsyncSession, person_id: uuid.UUID, subscription_type: str, program_slug: str | None = None,
) -> Subscription:
    query = select(Subscription).where(
        Subscription.person_id == person_id,
        Subscription.subscription_type == subscription_type,
    )
    if program_slug is None:
        query = query.where(Subscription.program_slug.is_(None))
    else:
        query = query.where(Subscription.program_slug == program_slug)

    subscription = (await db.execute(query)).scalar_one_or_none()
    if subscription is None:
        subscription = Subscription(
            person_id=person_id, subscription_type=subscription_type, program_slug=program_slug,
        )
        db.add(subscription)
    subscription.is_active = True
    await db.commit()
    await db.refresh(subscription)
    return subscription


async def log_event(
    db: AsyncSession,
    person_id: uuid.UUID,
    event_type: str,
    source: str | None = None,
    channel: str | None = None,
    metadata: dict | None = None,
) -> PeopleEvent:
    event = PeopleEvent(
        person_id=person_id,
        event_type=event_type,
        source=source,
        channel=channel,
        meta=metadata or {},
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


async def people_webhook_url(db: AsyncSession) -> str | None:
    """The people webhook URL, or None when unset or switched off by the feature flag."""
    if not settings.N8N_PEOPLE_WEBHOOK_URL:
        return None
    if not await webhooks_enabled(db):
        return None
    return settings.N8N_PEOPLE_WEBHOOK_URL


def person_webhook_payload(kind: str, person: Person, **extra) -> dict:
    return {
        "kind": kind,
        "person": {
            "id": str(person.id),
            "email": person.email,
            "firstName": person.first_name,
            "lastName": person.last_name,
        },
        **extra,
    }


async def link_person_to_user(db: AsyncSession, user) -> Person:
    person = await upsert_person(db, user.email, status="active_user", source="account", user_id=user.id)
    await log_event(
        db, person.id, "profile_update", source="account", channel="web",
        metadata={"userId": str(user.id)},
    )
    return person


async def list_people(
    db: AsyncSession, status: str | None = None, page: int = 1, per_page: int = 50,
) -> tuple[list[Person], int]:
    query = select(Person)
    count_query = select(func.count()).select_from(Person)
    if status:
        query = query.where(Person.status == status)
        count_query = count_query.where(Person.status == status)

    total = (await db.execute(count_query)).scalar_one()
    query = query.order_by(Person.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def create_waitlist_signup(
    db: AsyncSession, email: str, name: str | None, goal: str | None,
) -> WaitlistSignup:
    """Raises DuplicateSignup when the email is already on the list."""
    existing = await db.execute(select(WaitlistSignup.id).where(WaitlistSignup.email == email))
    if existing.scalar_one_or_none() is not None:
        raise DuplicateSignup(email)

    signup = WaitlistSignup(email=email, name=name or None, goal=goal or None, source="journal")
    db.add(signup)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateSignup(email)
    await db.refresh(signup)
    logger.info("waitlist_signup_created", signup_id=str(signup.id))
    return signup


async def list_waitlist_signups(db: AsyncSession) -> list[WaitlistSignup]:
    result = await db.execute(select(WaitlistSignup).order_by(WaitlistSignup.created_at.desc()))
    return list(result.scalars().all())


async def notify_sheets(signup: WaitlistSignup) -> None:
    if not settings.SHEETS_WEBHOOK_URL:
        return
    await fire_webhook(
        settings.SHEETS_WEBHOOK_URL,
        {
            "email": signup.email,
            "name": signup.name or "",
            "goal": signup.goal or "",
            "source": signup.source,
            "timestamp": utcnow().isoformat(),
        },
    )
