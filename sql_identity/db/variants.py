# sql_identity/db/variants.py
"""
Backend selection from a connection string.

The set of backends is closed: SQLite (default, file based), MySQL and
PostgreSQL, each reached through an asyncio driver so the actor never blocks
the event loop.

    my.db                        -> sqlite+aiosqlite:///my.db
    sqlite://my.db               -> sqlite+aiosqlite:///my.db
    mysql://user@host/db         -> mysql+aiomysql://user@host/db
    postgres://user@host/db      -> postgresql+asyncpg://user@host/db
"""
from __future__ import annotations

from enum import Enum

from sql_identity.core.errors import VariantNotSupported


class Variant(str, Enum):
    SQLITE = "sqlite"
    MYSQL = "mysql"
    PG = "postgresql"

    @classmethod
    def parse(cls, name: str) -> "Variant":
        key = (name or "").strip().lower()
        if key not in _ALIASES:
            raise VariantNotSupported(f"unknown backend: {name!r}")
        return _ALIASES[key]


_ALIASES = {
    "sqlite": Variant.SQLITE,
    "sqlite3": Variant.SQLITE,
    "mysql": Variant.MYSQL,
    "pg": Variant.PG,
    "postgres": Variant.PG,
    "postgresql": Variant.PG,
}

# URL dialect names per backend family
_FAMILIES = {
    "sqlite": Variant.SQLITE,
    "mysql": Variant.MYSQL,
    "postgres": Variant.PG,
    "postgresql": Variant.PG,
}

_ASYNC_DRIVERS = {
    Variant.SQLITE: ("aiosqlite",),
    Variant.MYSQL: ("aiomysql", "asyncmy"),
    Variant.PG: ("asyncpg", "psycopg"),
}


def _split_scheme(uri: str) -> tuple[str | None, str]:
    if "://" not in uri:
        return None, uri
    scheme, rest = uri.split("://", 1)
    return scheme.lower(), rest


def _family(scheme: str) -> tuple[Variant, str | None]:
    dialect, _, driver = scheme.partition("+")
    variant = _FAMILIES.get(dialect)
    if variant is None:
        raise VariantNotSupported(f"unsupported database scheme: {dialect!r}")
    return variant, driver or None


def detect_variant(uri: str) -> Variant:
    """Pick the backend from the URL scheme; a bare path means SQLite."""
    scheme, _ = _split_scheme(uri)
    if scheme is None:
        return Variant.SQLITE
    return _family(scheme)[0]


def async_url(variant: Variant, uri: str) -> str:
    """Rewrite `uri` into a SQLAlchemy URL using an asyncio driver for `variant`."""
    scheme, rest = _split_scheme(uri)

    if scheme is None:
        if variant is not Variant.SQLITE:
            raise VariantNotSupported(f"{variant.value} needs a connection URL, got a path")
        if rest in ("", ":memory:"):
            return "sqlite+aiosqlite://"
        return f"sqlite+aiosqlite:///{rest}"

    family, driver = _family(scheme)
    if family is not variant:
        raise VariantNotSupported(
            f"backend {variant.value} cannot use a {family.value} connection URL"
        )

    supported = _ASYNC_DRIVERS[variant]
    if driver is None:
        driver = supported[0]
    elif driver not in supported:
        raise VariantNotSupported(
            f"driver {driver!r} is not an asyncio driver for {variant.value}"
        )

    if variant is Variant.SQLITE:
        # short form "sqlite://my.db" names a relative file
        if rest and not rest.startswith("/"):
            rest = f"/{rest}"
        return f"sqlite+{driver}://{rest}"

    return f"{variant.value}+{driver}://{rest}"


def engine_options(variant: Variant, pool_size: int) -> dict:
    if variant is Variant.SQLITE:
        # SQLAlchemy picks the pool for SQLite (static for :memory:)
        return {}
    return {"pool_size": pool_size, "max_overflow": 0, "pool_pre_ping": True}
