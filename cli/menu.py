"""Menu display functionality for CLI"""

from rich.panel import Panel

from cli.status_display import get_auth_status


def clear_screen(console):
    """Clear the terminal screen"""
    console.clear()


def display_header(console):
    """Display the application header"""
    console.print(Panel.fit(
        "[bold cyan]O365 Admin CLI[/bold cyan]\n"
        "[dim]Microsoft Entra ID administration via Microsoft Graph[/dim]",
        border_style="cyan"
    ))


def display_menu(status, dry_run: bool, console):
    """
    Display the main menu

    Args:
        status: SessionStatus snapshot
        dry_run: Whether shadow-IT remediation is disabled
        console: Rich console for output
    """
    auth_status, auth_detail = get_auth_status(status)
    status_style = "green" if auth_status == "CONNECTED" else "red"

    console.print(f" Session: [{status_style}]{auth_status}[/{status_style}] ({auth_detail})")
    console.print(f" Dry Run: [{'green' if dry_run else 'yellow'}]{'Enabled' if dry_run else 'Disabled'}[/]")
    console.print("-" * 50)
    console.print(" 1. Login")
    console.print(" 2. Security Tasks")
    console.print(" 3. IAM Tasks")
    console.print(" 4. Session Status")
    console.print(" 5. Export Last Result")
    console.print(" 6. Logout")
    console.print(" 7. Exit")
    console.print("=" * 50)


def display_security_menu(console):
    """Display security task submenu"""
    console.print("\n" + "=" * 50)
    console.print("    Security Tasks", style="bold")
    console.print("=" * 50)
    console.print(" 1. Shadow IT Audit (dry run)")
    console.print(" 2. Shadow IT Remediation (revoke risky grants)")
    console.print(" 3. Toggle Dry Run")
    console.print(" 4. Back to Main Menu")
    console.print("=" * 50)


def display_iam_menu(console):
    """Display IAM task submenu"""
    console.print("\n" + "=" * 50)
    console.print("    IAM Tasks", style="bold")
    console.print("=" * 50)
    console.print(" 1. Offboard User")
    console.print(" 2. Test Graph Connectivity")
    console.print(" 3. Back to Main Menu")
    console.print("=" * 50)
