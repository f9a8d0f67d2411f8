"""Inkpress CLI — run the server and look after the database.

Usage:
    inkpress serve                      # Run the API with uvicorn
    inkpress serve --reload             # ...restarting on code changes
    inkpress init-db                    # Create tables (dev / SQLite)
    inkpress purge-reset-tokens         # Drop expired reset-token ledger rows

Configuration comes from INKPRESS_* env vars (or .env), same as the app.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import click

from inkpress.config import get_settings


def _run(coro):
    """Run an async coroutine from a synchronous Click handler."""
    return asyncio.run(coro)


@click.group()
def cli():
    """Inkpress — blogging platform backend."""


@cli.command()
@click.option("--host", default=None, help="Bind address (default: INKPRESS_HOST).")
@click.option("--port", default=None, type=int, help="Port (default: INKPRESS_PORT).")
@click.option("--reload", is_flag=True, help="Restart on code changes.")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "inkpress.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


async def _init_db() -> None:
    from inkpress.db.engine import build_engine
    from inkpress.db.models import Base

    engine = build_engine(get_settings())
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


@cli.command("init-db")
def init_db():
    """Create all tables. Production databases should use alembic instead."""
    _run(_init_db())
    click.secho("Tables created.", fg="green")


async def _purge_reset_tokens() -> int:
    from inkpress.db.engine import build_engine, build_session_factory
    from inkpress.services.reset_ledger import ResetTokenLedger

    engine = build_engine(get_settings())
    try:
        async with build_session_factory(engine)() as session:
            return await ResetTokenLedger(session).purge_expired()
    finally:
        await engine.dispose()


@cli.command("purge-reset-tokens")
def purge_reset_tokens():
    """Delete reset-token ledger rows whose tokens have expired."""
    removed = _run(_purge_reset_tokens())
    click.echo(f"Removed {removed} expired reset token(s).")


def main():
    cli()


if __name__ == "__main__":
    main()
