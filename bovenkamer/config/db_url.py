from __future__ import annotations

import os
from typing import Any
from urllib.parse import urlsplit, urlunsplit


DEFAULT_SQLITE_PATH = os.path.join("data", "bovenkamer.db")


def build_database_url(
    *,
    user: str,
    password: str | None,
    host: str,
    port: str,
    name: str,
) -> str:
    auth = f"{user}:{password}" if password else f"{user}"
    return f"postgresql+asyncpg://{auth}@{host}:{port}/{name}"


def build_sqlite_url(path: str) -> str:
    return f"sqlite+aiosqlite:///{os.path.abspath(path)}"


def sanitize_url_for_log(url: str) -> str:
    """Drop the password from a database URL before it is logged."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<unparseable url>"
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def resolve_database_url(db: Any) -> str:
    """Resolve the async database URL from a database settings object.

    Precedence: explicit ``url``, then user/name composed into a
    PostgreSQL URL, then the SQLite file at ``sqlite_path``.
    """
    url = getattr(db, "url", None)
    if url:
        return url

    user = getattr(db, "user", None)
    name = getattr(db, "name", None)
    if user and name:
        return build_database_url(
            user=user,
            password=getattr(db, "password", None) or "",
            host=getattr(db, "host", None) or "127.0.0.1",
            port=str(getattr(db, "port", None) or 5432),
            name=name,
        )

    return build_sqlite_url(getattr(db, "sqlite_path", None) or DEFAULT_SQLITE_PATH)


def ensure_env_database_url() -> dict[str, Any]:
    """Ensure a composed database URL is exported for tools reading the environment."""
    existing_url = os.getenv("BOVENKAMER_DATABASE__URL") or os.getenv("DATABASE_URL")
    if existing_url:
        return {"composed": False, "url_already_set": True}

    user = os.getenv("BOVENKAMER_DATABASE__USER")
    name = os.getenv("BOVENKAMER_DATABASE__NAME")
    if user and name:
        url = build_database_url(
            user=user,
            password=os.getenv("BOVENKAMER_DATABASE__PASSWORD") or "",
            host=os.getenv("BOVENKAMER_DATABASE__HOST") or "127.0.0.1",
            port=os.getenv("BOVENKAMER_DATABASE__PORT") or "5432",
            name=name,
        )
        os.environ["BOVENKAMER_DATABASE__URL"] = url
        os.environ["DATABASE_URL"] = url
        return {"composed": True, "reason": "missing_url"}

    return {"composed": False, "reason": "missing_fields"}


__all__ = [
    "DEFAULT_SQLITE_PATH",
    "build_database_url",
    "build_sqlite_url",
    "sanitize_url_for_log",
    "resolve_database_url",
    "ensure_env_database_url",
]
