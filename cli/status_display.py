"""Status display functionality for CLI"""

from rich.table import Table

from graph_oauth import SessionStatus


def get_auth_status(status: SessionStatus) -> tuple[str, str]:
    """
    Short authentication label for the menu header

    Returns:
        Tuple of (status, detail_message)
    """
    if status.error:
        return "ERROR", "Keyring unavailable"
    if not status.has_credential:
        return "NO AUTH", "Not connected"
    if status.profile:
        return "CONNECTED", status.profile.email
    return "CONNECTED", "Profile unknown"


def show_session_status(status: SessionStatus, console):
    """
    Display detailed session status

    Args:
        status: Offline session snapshot
        console: Rich console for output
    """
    table = Table(title="Session Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Stored Credential", "Yes" if status.has_credential else "No")
    if status.error:
        table.add_row("Keyring Error", f"[red]{status.error}[/red]")

    profile = status.profile
    if profile:
        domain = profile.email.split("@")[1] if "@" in profile.email else "Unknown Domain"
        table.add_row("Name", profile.name)
        table.add_row("Email", profile.email)
        table.add_row("Tenant ID", profile.tenant_id)
        table.add_row("Tenant Name", domain)
        table.add_row("Last Login", profile.last_login)
        table.add_row("Scopes", ", ".join(profile.scopes) or "-")
    else:
        table.add_row("Profile", "[dim]No cached profile[/dim]")

    console.print(table)
