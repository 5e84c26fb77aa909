from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from arkive.adapters.sqlalchemy import RecordStores, build_record_stores
from arkive.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(autouse=True)
def isolated_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    monkeypatch.setenv("ARKIVE_DATA_DIR", str(tmp_path_factory.mktemp("arkive-data")))
    for name in (
        "ARKIVE_LOG_LEVEL",
        "ARKIVE_MERGE_POLICY",
        "ARKIVE_ROLLBACK_ON_FAILURE",
        "ARKIVE_FEED_RECONNECT_SECONDS",
        "FIREBASE_DATABASE_URL",
        "FIREBASE_AUTH_TOKEN",
        "FIREBASE_ROOT_PATH",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def sqlite_stores(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> RecordStores:
    _ = sqlite_unit_of_work
    return build_record_stores()
