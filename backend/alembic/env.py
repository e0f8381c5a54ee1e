import sys
from logging.config import fileConfig

from alembic import context
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, text

sys.path.append(".")

from quotedesk.config import settings  # noqa: E402
from quotedesk.database import Base  # noqa: E402
from quotedesk import models  # noqa: E402,F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=settings.database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def _stamp_head_if_bootstrapped(connection) -> None:
    # Local SQLite databases are often created with Base.metadata.create_all();
    # the schema exists but alembic_version is empty, so stamp head.
    if connection.dialect.name != "sqlite":
        return
    has_version_table = bool(
        connection.execute(
            text("select 1 from sqlite_master where type='table' and name='alembic_version'")
        ).scalar()
    )
    quotes_exists = bool(
        connection.execute(
            text("select 1 from sqlite_master where type='table' and name='quotes' limit 1")
        ).scalar()
    )
    if not quotes_exists:
        return
    if has_version_table:
        count = int(connection.execute(text("select count(*) from alembic_version")).scalar() or 0)
        if count:
            return
    else:
        connection.execute(
            text(
                "CREATE TABLE alembic_version (version_num VARCHAR(128) NOT NULL, "
                "CONSTRAINT alembic_version_pkc PRIMARY KEY (version_num))"
            )
        )

    head = ScriptDirectory.from_config(config).get_current_head()
    if head:
        connection.execute(
            text("insert into alembic_version(version_num) values (:v)"), {"v": head}
        )
        connection.commit()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    provided_connection = config.attributes.get("connection")

    if provided_connection is not None:
        connection = provided_connection
        should_close = False
    else:
        connectable = create_engine(settings.database_url, future=True)
        connection = connectable.connect()
        should_close = True

    try:
        _stamp_head_if_bootstrapped(connection)

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()
    finally:
        if should_close:
            connection.close()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
