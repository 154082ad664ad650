"""Main interactive CLI application"""

from typing import Optional

from rich.prompt import Confirm, Prompt

from cli.auth_handlers import build_session, interactive_login, perform_logout
from cli.debug_setup import setup_debug_console
from cli.menu import (
    clear_screen,
    display_header,
    display_iam_menu,
    display_menu,
    display_security_menu,
)
from cli.status_display import show_session_status
from cli.task_handlers import execute_task, export_result
from runner import TaskOutput


class AdminCLI:
    """Interactive menu over login, worker tasks and session status"""

    def __init__(self, debug: bool = False, console=None):
        self.debug = debug
        self.console = console or setup_debug_console(debug)
        self.last_output: Optional[TaskOutput] = None
        self.dry_run = True

    def pause(self):
        self.console.input("\nPress Enter to continue...")

    def run_task(self, task_name: str, args=()):
        output = execute_task(self.console, task_name, args)
        if output is not None:
            self.last_output = output

    def security_menu(self):
        while True:
            display_security_menu(self.console)
            choice = Prompt.ask("Select option", choices=["1", "2", "3", "4"], console=self.console)

            if choice == "1":
                self.run_task("sec:shadow-it")
                self.pause()
            elif choice == "2":
                if self.dry_run:
                    self.console.print("[yellow]Dry run is enabled. Disable it to revoke grants.[/yellow]")
                elif Confirm.ask(
                    "[bold red]Revoke all risky permission grants?[/bold red] This cannot be undone",
                    console=self.console,
                ):
                    self.run_task("sec:shadow-it", ["--dry-run", "false"])
                self.pause()
            elif choice == "3":
                self.dry_run = not self.dry_run
                state = "enabled" if self.dry_run else "disabled"
                self.console.print(f"[cyan]Dry run {state}[/cyan]")
            else:
                return

    def iam_menu(self):
        while True:
            display_iam_menu(self.console)
            choice = Prompt.ask("Select option", choices=["1", "2", "3"], console=self.console)

            if choice == "1":
                email = Prompt.ask("User email to offboard", console=self.console).strip()
                if email:
                    self.run_task("iam:offboard", ["--user", email])
                else:
                    self.console.print("[yellow]No email entered[/yellow]")
                self.pause()
            elif choice == "2":
                self.run_task("iam:test")
                self.pause()
            else:
                return

    def run(self):
        """Main CLI loop"""
        while True:
            clear_screen(self.console)
            display_header(self.console)
            display_menu(build_session().status(), self.dry_run, self.console)

            choice = Prompt.ask(
                "Select option",
                choices=["1", "2", "3", "4", "5", "6", "7"],
                console=self.console,
            )

            if choice == "1":
                interactive_login(self.console)
                self.pause()
            elif choice == "2":
                self.security_menu()
            elif choice == "3":
                self.iam_menu()
            elif choice == "4":
                show_session_status(build_session().status(), self.console)
                self.pause()
            elif choice == "5":
                export_result(self.console, self.last_output)
                self.pause()
            elif choice == "6":
                perform_logout(self.console, confirm=True)
                self.pause()
            elif choice == "7":
                self.console.print("\n[cyan]Goodbye![/cyan]\n")
                break
