# tools/init_db.py
# Usage: python tools/init_db.py [URL] [TOKEN USERID]
#   Creates the identities table and optionally seeds one row.
import asyncio
import sys

from sql_identity.core.config import settings
from sql_identity.db.actor import SqlActor
from sql_identity.db.models import IdentityRecord
from sql_identity.db.variants import detect_variant


async def main(url: str, seed: list[str]) -> None:
    actor = SqlActor.connect(detect_variant(url), 1, url)
    try:
        await actor.create_tables()
        if len(seed) == 2:
            token, userid = seed
            if await actor.find(token) is None:
                await actor.create(IdentityRecord(token=token, userid=userid))
        print(f"identities table ready ({actor.variant.value})")
    finally:
        await actor.close()


args = sys.argv[1:]
url = args[0] if args else settings.db_url
asyncio.run(main(url, args[1:3]))
