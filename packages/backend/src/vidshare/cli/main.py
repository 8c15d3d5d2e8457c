"""VidShare management CLI.

Usage:
    vidshare serve --port 8000 --reload     # Run the API with uvicorn
    vidshare init-db                        # Create tables from the models
    vidshare revoke-session alice           # Force-logout a user
    vidshare health                         # Ping a running server
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from vidshare import __version__

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("VIDSHARE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(api_url: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the VidShare backend."""
    return httpx.AsyncClient(base_url=api_url or _api_url(), timeout=10.0)


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _database_url(database_url: Optional[str]) -> str:
    from vidshare.config import settings

    return database_url or settings.database_url


@click.group()
@click.version_option(version=__version__, prog_name="vidshare")
def main():
    """VidShare — video-sharing platform backend."""


# ---------------------------------------------------------------------------
# vidshare serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: VIDSHARE_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: VIDSHARE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from vidshare.config import settings

    uvicorn.run(
        "vidshare.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# vidshare init-db
# ---------------------------------------------------------------------------


@main.command("init-db")
@click.option("--database-url", help="Override VIDSHARE_DATABASE_URL")
def init_db(database_url: Optional[str]):
    """Create all tables that don't exist yet.

    For schema changes on an existing database use alembic instead.
    """
    _run(_init_db_impl(_database_url(database_url)))
    click.secho("Tables created", fg="green")


async def _init_db_impl(url: str) -> None:
    from sqlalchemy.ext.asyncio import create_async_engine

    from vidshare.db.models import Base

    engine = create_async_engine(url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# vidshare revoke-session
# ---------------------------------------------------------------------------


@main.command("revoke-session")
@click.argument("username")
@click.option("--database-url", help="Override VIDSHARE_DATABASE_URL")
def revoke_session(username: str, database_url: Optional[str]):
    """Clear USERNAME's refresh token so every device must log in again.

    Access tokens already issued stay valid until they expire.
    """
    found = _run(_revoke_impl(username, _database_url(database_url)))
    if not found:
        click.secho(f"No user named {username!r}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Session revoked for {username}", fg="green")


async def _revoke_impl(username: str, url: str) -> bool:
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

    from vidshare.errors import NotFoundError
    from vidshare.services.session_authority import SessionTokenAuthority
    from vidshare.services.user_service import UserService

    engine = create_async_engine(url)
    try:
        async with AsyncSession(engine, expire_on_commit=False) as db:
            try:
                user = await UserService(db).get_by_username(username)
            except NotFoundError:
                return False
            return await SessionTokenAuthority(db).logout(user.id)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# vidshare health
# ---------------------------------------------------------------------------


@main.command()
@click.option("--api-url", help=f"Server URL (default: VIDSHARE_API_URL or {DEFAULT_API_URL})")
def health(api_url: Optional[str]):
    """Query /api/v1/health on a running server."""
    data = _run(_health_impl(api_url))
    click.echo(json.dumps(data, indent=2))
    if data.get("status") != "healthy":
        sys.exit(1)


async def _health_impl(api_url: Optional[str]) -> dict:
    async with _client(api_url) as c:
        try:
            r = await c.get("/api/v1/health")
            r.raise_for_status()
        except httpx.HTTPError as e:
            click.secho(f"Server unreachable: {e}", fg="red", err=True)
            sys.exit(1)
        return r.json()


if __name__ == "__main__":
    main()
