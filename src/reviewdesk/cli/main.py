"""ReviewDesk CLI: run the server and manage accounts from the shell.

Usage:
    reviewdesk serve --reload                        # Run the API with uvicorn
    reviewdesk seed-admin                            # Create/repair the default admin
    reviewdesk create-user a@x.com --role admin      # Approved account, any role
    reviewdesk approve a@x.com                       # Approve a pending registration

Account commands talk to the database directly (same REVIEWDESK_* env vars
as the server), so they work before any admin exists.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from reviewdesk import __version__
from reviewdesk.config import settings
from reviewdesk.db.models import Role
from reviewdesk.errors import ReviewDeskError

CLI_REGISTRATION_DETAILS = "Created from the reviewdesk command line"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


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


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


async def _with_directory(action):
    """Open a session, make sure tables exist, and run `action(directory)`."""
    from reviewdesk.db.engine import async_session_factory, create_schema, engine
    from reviewdesk.services.accounts import AccountDirectory

    await create_schema()
    try:
        async with async_session_factory() as db:
            return await action(AccountDirectory(db))
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="reviewdesk")
def cli():
    """ReviewDesk: access control and document delivery for PDF review."""


# ---------------------------------------------------------------------------
# reviewdesk serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", default=None, help="Bind address (default: REVIEWDESK_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: REVIEWDESK_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes (development)")
def serve(host, port, reload):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "reviewdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# reviewdesk seed-admin
# ---------------------------------------------------------------------------


@cli.command("seed-admin")
def seed_admin():
    """Create or repair the default administrator from REVIEWDESK_DEFAULT_ADMIN_*."""
    from reviewdesk.services.seed import ensure_default_admin

    if not settings.default_admin_password:
        _fail("REVIEWDESK_DEFAULT_ADMIN_PASSWORD is not set")

    admin = _run(_with_directory(lambda d: ensure_default_admin(d, settings)))
    click.secho(f"Default admin ready: {admin.email}", fg="green")


# ---------------------------------------------------------------------------
# reviewdesk create-user
# ---------------------------------------------------------------------------


@cli.command("create-user")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.USER.value,
    show_default=True,
)
@click.option("--first-name", default="")
@click.option("--last-name", default="")
def create_user(email, password, role, first_name, last_name):
    """Create an approved account. The only way besides seeding to mint an admin."""
    from reviewdesk.auth.password import hash_password
    from reviewdesk.db.models import Account, RegistrationStatus
    from reviewdesk.services.accounts import normalize_email, validate_new_password
    from reviewdesk.services.registration import EMAIL_PATTERN

    email = normalize_email(email)
    try:
        if not EMAIL_PATTERN.match(email):
            _fail("Invalid email format")
        validate_new_password(password)
    except ReviewDeskError as e:
        _fail(e.message)

    async def _create(directory):
        if await directory.find_by_email(email) is not None:
            return None
        return await directory.insert(
            Account(
                email=email,
                password_hash=hash_password(password),
                role=Role(role),
                registration_status=RegistrationStatus.APPROVED,
                registration_details=CLI_REGISTRATION_DETAILS,
                first_name=first_name,
                last_name=last_name,
            )
        )

    account = _run(_with_directory(_create))
    if account is None:
        _fail(f"An account with email {email} already exists")
    click.secho(f"Created {account.role.value} {account.email} ({account.id})", fg="green")


# ---------------------------------------------------------------------------
# reviewdesk approve
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("email")
def approve(email):
    """Approve a pending (or rejected) registration by email."""
    from reviewdesk.auth.jwt import get_token_codec
    from reviewdesk.services.registration import RegistrationService

    async def _approve(directory):
        account = await directory.find_by_email(email)
        if account is None:
            return None
        service = RegistrationService(directory, get_token_codec())
        return await service.approve(str(account.id))

    try:
        account = _run(_with_directory(_approve))
    except ReviewDeskError as e:
        _fail(e.message)
    if account is None:
        _fail(f"No account with email {email}")
    click.secho(f"Approved {account.email}", fg="green")


if __name__ == "__main__":
    cli()
