from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finediet.database import get_db
from finediet.dependencies import get_current_user, require_editor
from finediet.outbox.service import fire_webhook
from finediet.people.models import STATUS_PRIORITY
from finediet.people.schemas import (
    LegacyWaitlistResponse,
    LegacyWaitlistSignup,
    NewsletterSignup,
    OkResponse,
    PersonListResponse,
    PersonResponse,
    WaitlistJoin,
    WaitlistSignupListResponse,
    WaitlistSignupResponse,
)
from finediet.people.service import (
    DuplicateSignup,
    create_waitlist_signup,
    ensure_subscription,
    link_person_to_user,
    list_people,
    list_waitlist_signups,
    log_event,
    normalize_email,
    notify_sheets,
    people_webhook_url,
    person_webhook_payload,
    split_name,
    upsert_person,
)
from finediet.users.models import User

router = APIRouter(prefix="/people", tags=["people"])
waitlist_router = APIRouter(prefix="/waitlist", tags=["people"])
account_router = APIRouter(prefix="/account", tags=["account"])
admin_router = APIRouter(prefix="/admin", tags=["people"])

DEFAULT_PROGRAM_SLUG = "journal"


@router.post("/newsletter", response_model=OkResponse)
async def newsletter_signup(
    data: NewsletterSignup,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    person = await upsert_person(
        db,
        data.email,
        first_name=data.first_name,
        status="marketing_only",
        source=data.source,
        email_opt_in=True,
        utm_source=data.utm_source,
        utm_medium=data.utm_medium,
        utm_campaign=data.utm_campaign,
    )
    await ensure_subscription(db, person.id, "email_marketing")
    await log_event(
        db, person.id, "newsletter_signup", source=data.source, channel="web",
        metadata={
            "utmSource": data.utm_source,
            "utmMedium": data.utm_medium,
            "utmCampaign": data.utm_campaign,
        },
    )

    webhook_url = await people_webhook_url(db)
    if webhook_url:
        payload = person_webhook_payload("newsletter_signup", person, source=data.source)
        background_tasks.add_task(fire_webhook, webhook_url, payload)
    return OkResponse(ok=True)


@router.post("/waitlist", response_model=OkResponse)
async def waitlist_join(
    data: WaitlistJoin,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    first_name, last_name = split_name(data.name)
    program_slug = data.program_slug or DEFAULT_PROGRAM_SLUG

    person = await upsert_person(
        db,
        data.email,
        first_name=first_name,
        last_name=last_name,
        phone=data.phone,
        status="waitlist",
        source=data.source,
        sms_opt_in=data.sms_opt_in,
        metadata={"goal": data.goal},
    )
    await ensure_subscription(db, person.id, "program_waitlist", program_slug)
    await log_event(
        db, person.id, "waitlist_join", source=data.source, channel="web",
        metadata={"goal": data.goal, "programSlug": program_slug},
    )

    webhook_url = await people_webhook_url(db)
    if webhook_url:
        payload = person_webhook_payload(
            "waitlist_join", person, goal=data.goal, programSlug=program_slug, source=data.source,
        )
        background_tasks.add_task(fire_webhook, webhook_url, payload)
    return OkResponse(ok=True)


@waitlist_router.post("", response_model=LegacyWaitlistResponse)
async def legacy_waitlist_signup(
    data: LegacyWaitlistSignup,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    try:
        signup = await create_waitlist_signup(db, normalize_email(data.email), data.name, data.goal)
    except DuplicateSignup:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This email is already on the waitlist.")

    background_tasks.add_task(notify_sheets, signup)
    return LegacyWaitlistResponse(success=True, message="Successfully added to waitlist")


@account_router.post("/link-person", response_model=PersonResponse)
async def link_person(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    person = await link_person_to_user(db, user)
    return PersonResponse.model_validate(person)


@admin_router.get("/people", response_model=PersonListResponse)
async def admin_list_people(
    person_status: str | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    if person_status and person_status not in STATUS_PRIORITY:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown status")
    items, total = await list_people(db, person_status, page, per_page)
    return PersonListResponse(
        items=[PersonResponse.model_validate(p) for p in items],
        total=total,
    )


@admin_router.get("/waitlist-signups", response_model=WaitlistSignupListResponse)
async def admin_list_waitlist_signups(
    user: User = Depends(require_editor),
    db: AsyncSession = Depends(get_db),
):
    items = await list_waitlist_signups(db)
    return WaitlistSignupListResponse(
        items=[WaitlistSignupResponse.model_validate(s) for s in items],
        total=len(items),
    )
