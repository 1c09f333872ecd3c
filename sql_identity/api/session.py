# sql_identity/api/session.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from sql_identity.api.deps import get_identity
from sql_identity.core.identity import SqlIdentity

router = APIRouter()


class LoginInput(BaseModel):
    # should come from a verified credential; taken as-is here
    userid: str = Field(min_length=1, max_length=255)


@router.post("/login")
async def login(body: LoginInput, identity: SqlIdentity = Depends(get_identity)):
    identity.remember(body.userid)
    return {"ok": True, "userid": body.userid}


@router.get("/profile")
async def profile(identity: SqlIdentity = Depends(get_identity)):
    user = identity.identity()
    if user is None:
        return {"authenticated": False, "message": "Hello, anonymous user!"}
    return {"authenticated": True, "userid": user, "message": f"Hello, {user}!"}


@router.post("/refresh")
async def refresh(identity: SqlIdentity = Depends(get_identity)):
    identity.touch()
    return {"ok": True}


@router.post("/logout")
async def logout(identity: SqlIdentity = Depends(get_identity)):
    identity.forget()
    return {"ok": True}
