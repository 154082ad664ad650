"""CLI entry point and argument parsing"""

import argparse
import logging
import sys
import traceback

from rich.console import Console

from cli.auth_handlers import build_session, perform_login, perform_logout
from cli.cli_app import AdminCLI
from cli.debug_setup import setup_debug_console
from cli.status_display import show_session_status
from cli.task_handlers import execute_task

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="o365-cli",
        description="Office 365 / Microsoft Entra ID administration CLI",
    )
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")

    login = subparsers.add_parser("login", help="Sign in through the browser")
    login.add_argument("--tenant", "-t", default="common", help="Tenant ID or domain (default: common)")

    run = subparsers.add_parser("run", help="Run a worker task, e.g. iam:test")
    run.add_argument("task", help="Task name, e.g. iam:offboard")
    run.add_argument("args", nargs=argparse.REMAINDER, help="Arguments passed to the task")

    subparsers.add_parser("logout", help="Clear stored credentials")
    subparsers.add_parser("status", help="Show the stored session without contacting the network")

    return parser


def dispatch(args: argparse.Namespace, console: Console) -> int:
    """Run one sub-command. Returns the process exit code."""
    if args.command == "login":
        return 0 if perform_login(console, args.tenant) else 1

    if args.command == "run":
        task_args = list(args.args)
        if task_args and task_args[0] == "--":
            task_args = task_args[1:]
        return 0 if execute_task(console, args.task, task_args) is not None else 1

    if args.command == "logout":
        return 0 if perform_logout(console) else 1

    if args.command == "status":
        status = build_session().status()
        show_session_status(status, console)
        return 0 if status.has_credential else 1

    AdminCLI(debug=args.debug, console=console).run()
    return 0


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)
    console = setup_debug_console(args.debug)

    try:
        code = dispatch(args, console)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        console.print("Goodbye!")
        code = 130
    except Exception as e:
        logger.exception("Fatal error")
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            traceback.print_exc()
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
