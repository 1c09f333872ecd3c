# sql_identity/db/actor.py
"""
Asynchronous gateway to the `identities` table.

One `SqlActor` owns the engine (and so the connection pool) for a single
backend. Callers await its operations instead of blocking a worker; at most
`pool_size` operations are in flight at once and each checks out its own
pooled connection, so concurrent requests only contend on the pool.

Races on the same token (two creates, create vs delete) are left to the
store's unique index and row counts.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import ArgumentError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from sql_identity.core.errors import (
    IdentityConflict,
    IdentityNotFound,
    StoreUnavailable,
    VariantNotSupported,
)
from sql_identity.core.tokens import mask
from sql_identity.db.models import Base, Identity, IdentityRecord
from sql_identity.db.variants import Variant, async_url, engine_options

logger = logging.getLogger(__name__)

_STORE_FAILURES = (SQLAlchemyError, OSError)


class SqlActor:
    def __init__(self, variant: Variant, engine: AsyncEngine, pool_size: int):
        self.variant = variant
        self.engine = engine
        self.pool_size = pool_size
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        self._slots = asyncio.Semaphore(pool_size)

    @classmethod
    def connect(cls, variant: Variant, pool_size: int, uri: str) -> "SqlActor":
        url = async_url(variant, uri)
        try:
            engine = create_async_engine(url, echo=False, **engine_options(variant, pool_size))
        except ImportError as e:
            raise VariantNotSupported(f"driver for {variant.value} is not installed: {e}") from e
        except ArgumentError as e:
            raise VariantNotSupported(f"invalid connection URL: {e}") from e
        return cls(variant, engine, pool_size)

    @classmethod
    def sqlite(cls, pool_size: int, uri: str) -> "SqlActor":
        return cls.connect(Variant.SQLITE, pool_size, uri)

    @classmethod
    def mysql(cls, pool_size: int, uri: str) -> "SqlActor":
        return cls.connect(Variant.MYSQL, pool_size, uri)

    @classmethod
    def pg(cls, pool_size: int, uri: str) -> "SqlActor":
        return cls.connect(Variant.PG, pool_size, uri)

    @asynccontextmanager
    async def _session(self, op: str, token: str | None):
        async with self._slots:
            try:
                async with self._sessions() as s:
                    yield s
            except IntegrityError as e:
                raise IdentityConflict() from e
            except _STORE_FAILURES as e:
                logger.debug("identity_store_error op=%s token=%s", op, mask(token), exc_info=True)
                raise StoreUnavailable(f"{op} failed: {e.__class__.__name__}") from e

    async def find(self, token: str | None) -> IdentityRecord | None:
        if not token:
            return None
        async with self._session("find", token) as s:
            row = (
                await s.execute(select(Identity).where(Identity.token == token))
            ).scalar_one_or_none()
            if row is None:
                return None
            return IdentityRecord.model_validate(row)

    async def create(self, record: IdentityRecord) -> IdentityRecord:
        async with self._session("create", record.token) as s:
            row = Identity(
                token=record.token,
                userid=record.userid,
                created=record.created,
                ip=record.ip,
                user_agent=record.user_agent,
            )
            s.add(row)
            await s.commit()
            return record.model_copy(update={"id": row.id})

    async def update(self, record: IdentityRecord) -> None:
        if record.id is not None:
            match = Identity.id == record.id
        else:
            match = Identity.token == record.token

        stmt = (
            update(Identity)
            .where(match)
            .values(
                token=record.token,
                userid=record.userid,
                ip=record.ip,
                user_agent=record.user_agent,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session("update", record.token) as s:
            res = await s.execute(stmt)
            await s.commit()
            if res.rowcount == 0:
                raise IdentityNotFound()

    async def delete(self, token: str) -> None:
        stmt = (
            delete(Identity)
            .where(Identity.token == token)
            .execution_options(synchronize_session=False)
        )
        async with self._session("delete", token) as s:
            await s.execute(stmt)
            await s.commit()

    async def ping(self) -> None:
        async with self._slots:
            try:
                async with self.engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except _STORE_FAILURES as e:
                raise StoreUnavailable(f"cannot connect to {self.variant.value}: {e}") from e

    async def create_tables(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except _STORE_FAILURES as e:
            raise StoreUnavailable(f"cannot create tables: {e}") from e

    async def close(self) -> None:
        await self.engine.dispose()
