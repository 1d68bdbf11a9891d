import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from finediet.config import settings
from finediet.models.base import Base
from finediet.users.models import User  # noqa: F401
from finediet.audit.models import ContentAuditLog  # noqa: F401
from finediet.content.models import SiteContent  # noqa: F401
from finediet.assessments.models import AssessmentSubmission, AssessmentSession, AssessmentEvent  # noqa: F401
from finediet.outbox.models import WebhookOutbox  # noqa: F401
from finediet.question_sets.models import QuestionSet, QuestionSetRevision, QuestionSetPointer  # noqa: F401
from finediet.results_packs.models import ResultsPack, ResultsPackRevision, ResultsPackPointer  # noqa: F401
from finediet.people.models import Person, Subscription, PeopleEvent, WaitlistSignup  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations():
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
