# sql_identity/api/middleware.py
from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from sql_identity.core.errors import SqlIdentityError
from sql_identity.core.policy import SqlIdentityPolicy

logger = logging.getLogger(__name__)


class IdentityMiddleware(BaseHTTPMiddleware):
    """
    Resolves `request.state.identity` before the handler runs and persists
    whatever the handler did with it before the response leaves.
    Nothing is persisted when the handler answers with a 5xx; 4xx answers
    are written like any other.

    The policy is taken from the constructor, or from
    `app.state.identity_policy` when the app builds it during lifespan.
    """

    def __init__(self, app: ASGIApp, policy: SqlIdentityPolicy | None = None):
        super().__init__(app)
        self.policy = policy

    def _policy(self, request: Request) -> SqlIdentityPolicy:
        policy = self.policy or getattr(request.app.state, "identity_policy", None)
        if policy is None:
            raise RuntimeError("IdentityMiddleware has no identity policy configured")
        return policy

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        identity = await self._policy(request).from_request(request)
        request.state.identity = identity

        response = await call_next(request)
        if response.status_code >= 500:
            # the handler failed; whatever it did to the identity is dropped
            logger.debug("identity_write_skipped status=%s", response.status_code)
            return response

        try:
            return await identity.write(response)
        except SqlIdentityError as e:
            # drop the draft response, token header included
            return JSONResponse({"detail": e.detail}, status_code=e.status_code)
