# sql_identity/core/identity.py
"""
Per-request identity.

A `SqlIdentity` is built by the policy when a request starts, mutated by the
handler (`remember`, `forget`, `touch`) and consumed once by `write` when the
response is produced. `write` translates the final state into at most one
store operation:

    CREATED   -> create (or update when a row was loaded), token header added
    UPDATED   -> update
    DELETED   -> delete by token
    UNCHANGED -> nothing

The state goes back to UNCHANGED before the operation is dispatched, so
writing twice never touches the store twice.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, TypeVar

from starlette.responses import Response

from sql_identity.core.errors import TokenNotFound, TokenRequired
from sql_identity.core.tokens import generate_token
from sql_identity.db.models import IdentityRecord, utcnow

if TYPE_CHECKING:
    from sql_identity.core.policy import SqlIdentityInner

R = TypeVar("R", bound=Response)


class SqlIdentityState(Enum):
    UNCHANGED = "unchanged"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class SqlIdentity:
    def __init__(
        self,
        inner: "SqlIdentityInner",
        record: IdentityRecord | None = None,
        *,
        ip: str | None = None,
        user_agent: str | None = None,
    ):
        self._inner = inner
        self.state = SqlIdentityState.UNCHANGED
        self.ip = ip
        self.user_agent = user_agent

        if record is not None:
            self.id: int | None = record.id
            self._identity: str | None = record.userid
            self.token: str | None = record.token
            self._loaded_token: str | None = record.token
            self.created = record.created
        else:
            self.id = None
            self._identity = None
            self.token = None
            self._loaded_token = None
            self.created = utcnow()

    def __repr__(self) -> str:
        return f"<SqlIdentity state={self.state.value} bound={self._identity is not None}>"

    def identity(self) -> str | None:
        """The remembered user for this request, or None when anonymous."""
        return self._identity

    def remember(self, userid: str) -> None:
        """
        Log `userid` in. A new token is always issued, even if the request
        arrived with a valid one, so an old token cannot be replayed.
        """
        self._identity = userid
        self.token = generate_token()
        self.state = SqlIdentityState.CREATED

    def forget(self) -> None:
        # the token stays: it addresses the row to delete
        self._identity = None
        self.state = SqlIdentityState.DELETED

    def touch(self) -> None:
        """Re-save the loaded identity (provenance refresh) without a new token."""
        if self.state is SqlIdentityState.CREATED:
            # the pending save already writes everything, new token included
            return
        self.state = SqlIdentityState.UPDATED

    def record(self) -> IdentityRecord:
        return IdentityRecord(
            id=self.id,
            token=self.token or "",
            userid=self._identity or "",
            created=self.created,
            ip=self.ip,
            user_agent=self.user_agent,
        )

    async def write(self, response: R) -> R:
        state, self.state = self.state, SqlIdentityState.UNCHANGED

        if state is SqlIdentityState.CREATED:
            if not self.token:
                raise TokenNotFound()
            # header goes on the draft response first; any failure below
            # propagates and the draft is discarded by the caller
            self._inner.attach(self.token, response)
            if self.id is None:
                saved = await self._inner.create(self.record())
                self.id = saved.id
            else:
                await self._inner.save(self.record())
            return response

        if state is SqlIdentityState.UPDATED and self.token and self._identity is not None:
            await self._inner.save(self.record())
            return response

        if state is SqlIdentityState.DELETED and self.token:
            # a remember() earlier in this request only minted an unsaved
            # token; the live row is still keyed by the one that was loaded
            await self._inner.remove(self._loaded_token or self.token)
            return response

        if state in (SqlIdentityState.DELETED, SqlIdentityState.UPDATED):
            # not logged in, or the login failed
            raise TokenRequired()

        return response
