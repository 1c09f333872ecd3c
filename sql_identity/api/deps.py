# sql_identity/api/deps.py
from fastapi import HTTPException, Request

from sql_identity.core.identity import SqlIdentity


def get_identity(request: Request) -> SqlIdentity:
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise HTTPException(status_code=500, detail="identity middleware not installed")
    return identity
