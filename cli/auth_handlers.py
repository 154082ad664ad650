"""Authentication handlers for CLI"""

import logging
from typing import Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

import settings
from errors import AuthError
from graph_oauth import SessionManager
from utils.profile import UserProfile
from utils.storage import KeyringCredentialStore

logger = logging.getLogger(__name__)

UNKNOWN_TENANT = "Unknown Tenant"


def session_tenant(explicit: Optional[str] = None) -> str:
    """
    Tenant used for a session

    An explicit tenant wins, then the tenant recorded at the last login,
    then the configured default.
    """
    if explicit:
        return explicit
    profile = UserProfile.load()
    if profile and profile.tenant_id and profile.tenant_id != UNKNOWN_TENANT:
        return profile.tenant_id
    return settings.DEFAULT_TENANT


def build_session(console: Optional[Console] = None, tenant: Optional[str] = None) -> SessionManager:
    """
    Create a SessionManager backed by the system keyring

    Args:
        console: Where to print the authorization URL (omitted when None)
        tenant: Tenant override
    """
    def show_url(url: str) -> None:
        if console is not None:
            console.print("\n[bold]Opening browser to sign in.[/bold] If it does not open, visit:")
            console.print(f"[cyan]{url}[/cyan]\n")

    return SessionManager(
        KeyringCredentialStore(),
        tenant=session_tenant(tenant),
        url_sink=show_url,
    )


def perform_login(console: Console, tenant: Optional[str] = None) -> bool:
    """
    Run the browser login and report the outcome

    Returns:
        True on success
    """
    session = build_session(console, tenant)
    console.print(f"[cyan]🚀 Authenticating with tenant: {session.tenant}...[/cyan]")
    console.print("Waiting for authentication in the browser...")

    try:
        session.login()
    except AuthError as e:
        logger.error(f"Login failed: {type(e).__name__}")
        console.print(f"[red]✗ Login failed:[/red] {e}")
        return False

    console.print("\n[bold green]✓ Login successful! Token stored securely.[/bold green]")
    profile = UserProfile.load()
    if profile:
        console.print(f"[dim]Signed in as {profile.name} <{profile.email}> (tenant {profile.tenant_id})[/dim]")
    return True


def interactive_login(console: Console) -> bool:
    """Prompt for an optional tenant, then log in"""
    tenant = Prompt.ask(
        "Tenant ID [dim](optional, press Enter for common)[/dim]",
        default="",
        show_default=False,
        console=console,
    ).strip()
    return perform_login(console, tenant or "common")


def perform_logout(console: Console, confirm: bool = False) -> bool:
    """Clear the stored credential and cached profile"""
    if confirm and not Confirm.ask("Logout and clear stored credentials?", console=console):
        return False

    try:
        build_session().logout()
    except AuthError as e:
        console.print(f"[red]✗ Logout failed:[/red] {e}")
        return False

    console.print("[green]✓ Logged out. Stored credentials cleared.[/green]")
    return True


def acquire_access_token(console: Console) -> Optional[str]:
    """
    Refresh an access token for a task run

    Returns:
        The access token, or None after printing the failure
    """
    console.print("[dim]🔑 Refreshing access token...[/dim]")
    try:
        return build_session().get_access_token()
    except AuthError as e:
        logger.error(f"Token refresh failed: {type(e).__name__}")
        console.print(f"[red]✗ Authentication error:[/red] {e}")
        return None
