"""Database engine creation and schema initialization."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from ..config import BaseConfig
from ..logging_config import get_logger

logger = get_logger("infra.database")

# Execution option naming the SQLite BEGIN flavour for a unit (e.g. "IMMEDIATE")
BEGIN_MODE_OPTION = "finhigh_begin_mode"


def _install_sqlite_transactions(engine: Engine, pragmas: dict[str, Any]) -> None:
    """Make pysqlite honour SQLAlchemy transaction boundaries.

    The driver only issues BEGIN before DML by default, which would let the
    SELECTs of a unit run outside its transaction. We take over BEGIN so reads
    and writes of one unit share a single snapshot. Write units ask for
    BEGIN IMMEDIATE so they queue on the write lock instead of failing on a
    stale read snapshot.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            for name, value in pragmas.items():
                cursor.execute(f"PRAGMA {name}={value}")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # pragma: no cover - driver hook
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION)
        conn.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")


def create_db_engine(config: BaseConfig) -> Engine:
    """Create SQLModel engine from configuration."""

    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    if engine.dialect.name == "sqlite":
        _install_sqlite_transactions(engine, config.SQLITE_PRAGMAS)
    return engine


def init_database(engine: Engine) -> None:
    """Create every ledger table that does not exist yet."""

    from .. import models  # noqa: F401  # register tables with SQLModel metadata

    SQLModel.metadata.create_all(engine)
    logger.debug("Schema initialized", extra={"url": str(engine.url)})


def bootstrap_database(config: BaseConfig | None = None) -> Engine:
    """Create the engine and make sure the schema exists."""

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine
