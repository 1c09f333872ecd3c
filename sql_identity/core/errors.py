# sql_identity/core/errors.py
"""
Failure cases of the identity layer.

Every error carries the HTTP status it maps to, so the middleware can turn a
failed write into a response without knowing the individual types.
"""


class SqlIdentityError(Exception):
    status_code = 500
    detail = "identity error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class VariantNotSupported(SqlIdentityError):
    detail = "sql variant not supported"


class TokenNotFound(SqlIdentityError):
    status_code = 401
    detail = "token not found"


class TokenNotSet(SqlIdentityError):
    detail = "token failed to set in header"


class TokenRequired(SqlIdentityError):
    status_code = 400
    detail = "token not provided but required, bad request"


class StoreError(SqlIdentityError):
    """Any failure reported by the backing store."""

    detail = "identity store error"


class StoreUnavailable(StoreError):
    detail = "identity store unavailable"


class IdentityConflict(StoreError):
    detail = "identity token already exists"


class IdentityNotFound(StoreError):
    detail = "identity row not found"
