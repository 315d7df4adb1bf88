# campusnet/infrastructure/database/session.py

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from campusnet.config.settings import settings

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # sqlite em memória: uma única conexão compartilhada entre threads/greenlets
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)

        # pysqlite: BEGIN explícito pra SAVEPOINT (begin_nested) funcionar
        @event.listens_for(engine, "connect")
        def _sqlite_connect(dbapi_connection, _record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def init_engine(database_url: str | None = None, *, echo: bool | None = None) -> Engine:
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = build_engine(
        database_url or settings.database_url,
        echo=settings.db_echo if echo is None else echo,
    )
    _SessionLocal = sessionmaker(
        bind=_engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    return _engine


@contextmanager
def db_session() -> Iterator[Session]:
    if _SessionLocal is None:
        init_engine()

    session: Session = _SessionLocal()  # type: ignore[misc]
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
