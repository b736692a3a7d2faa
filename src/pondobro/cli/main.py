"""PondoBro CLI: run the server, administer accounts, talk to the API.

Usage:
    pondobro serve                              # Run the API with uvicorn
    pondobro init-db                            # Create missing tables
    pondobro delete-user alice@example.com      # Remove an account and all its data
    pondobro purge-sessions                     # Delete expired refresh sessions
    pondobro login alice@example.com            # Print an access token
    pondobro transactions                       # List your transactions
    pondobro add -d "Salary" -c income 50000    # Record a transaction
    pondobro summary                            # Income / expenses / balance

Admin commands open the database directly (--database-url, defaulting
to PONDOBRO_DATABASE_URL). Client commands call a running API
(PONDOBRO_API_URL) with a bearer token (--token or PONDOBRO_TOKEN).
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

from pondobro import __version__
from pondobro.config import settings

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("PONDOBRO_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the PondoBro API."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

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


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("PONDOBRO_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set PONDOBRO_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _fail_on_error(resp: httpx.Response) -> None:
    """Print the API's {"error": ...} message and exit on a non-2xx response."""
    if resp.is_success:
        return
    try:
        message = resp.json().get("error", resp.text)
    except ValueError:
        message = resp.text
    click.secho(f"Error ({resp.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _amount_color(amount: int) -> str:
    return "green" if amount > 0 else "red" if amount < 0 else "white"


async def _with_session(database_url: str, fn):
    """Open an engine + session for one admin command, then dispose."""
    from pondobro.db.engine import build_engine, build_session_factory

    engine = build_engine(database_url)
    try:
        async with build_session_factory(engine)() as session:
            return await fn(session)
    finally:
        await engine.dispose()


database_url_option = click.option(
    "--database-url",
    default=lambda: settings.database_url,
    show_default="PONDOBRO_DATABASE_URL",
    help="SQLAlchemy async database URL",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="pondobro")
def main():
    """PondoBro: personal finance tracker backend."""


# ---------------------------------------------------------------------------
# Server / admin
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=lambda: settings.host, show_default="PONDOBRO_HOST")
@click.option("--port", default=lambda: settings.port, type=int, show_default="PONDOBRO_PORT")
@click.option("--reload", is_flag=True, help="Restart on code changes (development)")
def serve(host: str, port: int, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("pondobro.main:app", host=host, port=port, reload=reload)


@main.command("init-db")
@database_url_option
def init_db(database_url: str):
    """Create any missing tables."""
    from pondobro.db.engine import build_engine, create_tables, ensure_sqlite_directory

    async def _impl():
        ensure_sqlite_directory(database_url)
        engine = build_engine(database_url)
        try:
            await create_tables(engine)
        finally:
            await engine.dispose()

    _run(_impl())
    click.secho("Database ready", fg="green")


@main.command("delete-user")
@click.argument("email")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@database_url_option
def delete_user(email: str, yes: bool, database_url: str):
    """Delete the account EMAIL with all of its sessions and transactions."""
    from pondobro.db.stores import UserStore

    if not yes:
        click.confirm(f"Delete {email} and all of its data?", abort=True)

    async def _impl(session):
        users = UserStore(session)
        user = await users.get_by_email(email)
        if user is None:
            return False
        await users.delete(user)
        return True

    if not _run(_with_session(database_url, _impl)):
        click.secho(f"No account for {email}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Deleted {email}", fg="green")


@main.command("purge-sessions")
@database_url_option
def purge_sessions(database_url: str):
    """Delete refresh sessions whose expiry has passed."""
    from pondobro.db.stores import SessionStore

    async def _impl(session):
        return await SessionStore(session).delete_expired()

    removed = _run(_with_session(database_url, _impl))
    click.echo(f"Removed {removed} expired session(s)")


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email: str, password: str):
    """Log in and print an access token (export it as PONDOBRO_TOKEN)."""

    async def _impl():
        async with _client() as c:
            r = await c.post("/api/auth/login", json={"email": email, "password": password})
            _fail_on_error(r)
            return r.json()

    data = _run(_impl())
    click.echo(data["access_token"])


@main.command()
@click.option("--token", help="Access token (or set PONDOBRO_TOKEN)")
@click.option("--json", "as_json", is_flag=True, help="Output raw JSON")
def transactions(token: Optional[str], as_json: bool):
    """List your transactions, newest first."""
    tok = _require_token(token)

    async def _impl():
        async with _client(tok) as c:
            r = await c.get("/api/transactions")
            _fail_on_error(r)
            return r.json()

    rows = _run(_impl())
    if as_json:
        click.echo(_pretty_json(rows))
        return
    if not rows:
        click.echo("No transactions yet.")
        return
    _print_table(rows, [
        ("ID", "id", 6),
        ("DATE", "date", 20),
        ("CATEGORY", "category", 14),
        ("AMOUNT", "amount", 10),
        ("DESCRIPTION", "description", 40),
    ])


@main.command()
@click.argument("amount", type=int)
@click.option("--description", "-d", default="", help="What it was")
@click.option("--category", "-c", default="", help="Free-text category")
@click.option("--date", default=None, help="ISO date/time (default: now)")
@click.option("--token", help="Access token (or set PONDOBRO_TOKEN)")
def add(amount: int, description: str, category: str, date: Optional[str], token: Optional[str]):
    """Record a transaction. Positive AMOUNT is income, negative is expense."""
    tok = _require_token(token)

    async def _impl():
        async with _client(tok) as c:
            r = await c.post("/api/transactions", json={
                "date": date,
                "description": description,
                "category": category,
                "amount": amount,
            })
            _fail_on_error(r)
            return r.json()

    tx = _run(_impl())
    click.secho(f"Transaction #{tx['id']} recorded ({tx['amount']})", fg=_amount_color(tx["amount"]))


@main.command()
@click.option("--token", help="Access token (or set PONDOBRO_TOKEN)")
def summary(token: Optional[str]):
    """Show income, expenses and balance."""
    tok = _require_token(token)

    async def _impl():
        async with _client(tok) as c:
            r = await c.get("/api/dashboard/summary")
            _fail_on_error(r)
            return r.json()

    data = _run(_impl())
    click.secho(f"Income:   {data['total_income']}", fg="green")
    click.secho(f"Expenses: {data['total_expenses']}", fg="red")
    click.secho(f"Balance:  {data['balance']}", fg=_amount_color(data["balance"]), bold=True)


if __name__ == "__main__":
    main()
