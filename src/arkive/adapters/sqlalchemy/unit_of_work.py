"""Engine lifecycle and the unit of work over the record tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from arkive.adapters.sqlalchemy.mappings import create_all_tables
from arkive.adapters.sqlalchemy.repositories import (
    SqlAlchemyActivityRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyDocumentRepository,
    SqlAlchemyExpenseRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyReceiptRepository,
    SqlAlchemyRecordRepository,
)
from arkive.config import get_database_config
from arkive.domain.errors import StoreError
from arkive.domain.model import EntityType, Record

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(StoreError):
    """Raised when the local store is used before ``startup()`` or started twice."""


@dataclass(slots=True)
class _EngineSlot:
    """The process-wide engine and the session factory bound to it."""

    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = field(default=None, repr=False)

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def release(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError(
                "Local store not started. Call "
                "arkive.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        return self.sessions()


_SLOT = _EngineSlot()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the local store to ``engine`` (or a new one) and create missing tables.

    Without ``engine`` the URI comes from ``database_uri`` or the storage
    configuration. Restarting an already started store requires ``force=True``.
    """

    if _SLOT.engine is not None and not force:
        raise StartupError("Local store already started. Pass force=True to rebind it.")

    if engine is None:
        engine = create_engine(database_uri or get_database_config().uri, future=True)
    create_all_tables(engine)
    _SLOT.bind(engine)
    log.debug(f"Local store bound to {engine.url.render_as_string(hide_password=True)}")


def configured_engine() -> Engine | None:
    return _SLOT.engine


def is_started() -> bool:
    return _SLOT.engine is not None


def shutdown() -> None:
    """Dispose the engine; the next unit of work needs a new ``startup()``."""

    _SLOT.release()


@dataclass(slots=True)
class RecordRepositories:
    """One repository per entity type, all sharing a session."""

    clients: SqlAlchemyClientRepository
    receipts: SqlAlchemyReceiptRepository
    expenses: SqlAlchemyExpenseRepository
    notifications: SqlAlchemyNotificationRepository
    documents: SqlAlchemyDocumentRepository
    activities: SqlAlchemyActivityRepository

    @classmethod
    def open(cls, session: Session) -> RecordRepositories:
        return cls(
            clients=SqlAlchemyClientRepository(session),
            receipts=SqlAlchemyReceiptRepository(session),
            expenses=SqlAlchemyExpenseRepository(session),
            notifications=SqlAlchemyNotificationRepository(session),
            documents=SqlAlchemyDocumentRepository(session),
            activities=SqlAlchemyActivityRepository(session),
        )

    def for_type(self, entity_type: EntityType) -> SqlAlchemyRecordRepository[Record]:
        # attribute names match the EntityType values
        return getattr(self, entity_type.value)


class SqlAlchemyUnitOfWork:
    """Scopes one session: commit explicitly, roll back on any exception."""

    def __init__(self) -> None:
        if not is_started():
            raise StartupError("Local store not started; no unit of work available.")
        self._session: Session | None = None
        self._repositories: RecordRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already entered")
        self._session = _SLOT.open_session()
        self._repositories = RecordRepositories.open(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> RecordRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work used outside its with-block")
        return self._session
