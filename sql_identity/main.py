# sql_identity/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from sql_identity.api.middleware import IdentityMiddleware
from sql_identity.api.session import router as session_router
from sql_identity.core.config import settings
from sql_identity.core.policy import SqlIdentityBuilder


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === STARTUP ===
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    policy = await SqlIdentityBuilder.from_settings(settings).finish()
    if settings.create_tables:
        await policy.create_tables()
    app.state.identity_policy = policy
    yield
    # === SHUTDOWN ===
    await policy.close()


app = FastAPI(title="SQL Identity", lifespan=lifespan)
app.add_middleware(IdentityMiddleware)

app.include_router(session_router, tags=["session"])


@app.get("/")
def root():
    return {"ok": True}
