#!/usr/bin/env python3
"""
StudentHub Portal CLI - Main Entry Point

Usage:
    studenthub login                        # Login (prompts for email / password)
    studenthub menu                         # Sections available to your role
    studenthub list courses --search math   # Show a section as a table
    studenthub export students -o out.csv   # Export visible rows to CSV
    studenthub review 42 reject --note "..."
    studenthub --help
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.prompt import Prompt

from studenthub import __version__
from studenthub.api import PortalAPIClient
from studenthub.config import PortalConfig
from studenthub.exceptions import PortalError, ValidationError
from studenthub.export import default_filename, export_csv
from studenthub.logging_config import get_logger, setup_logging
from studenthub.navigation import menu_for, open_section
from studenthub.notifications import Notifier
from studenthub.render import render_menu, render_summary, render_view
from studenthub.session import SessionStore, SessionUser
from studenthub.views import (
    DashboardView,
    ProfileCompletion,
    RequestsView,
    SettingsView,
    ViewContext,
)

logger = get_logger(__name__)

# Section key -> export format
EXPORTABLE = {
    "students": "students",
    "courses": "courses",
    "hostel": "hostels",
    "library": "books",
    "requests": "requests",
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="studenthub",
        description="StudentHub - university portal client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  studenthub login                                Login to the portal
  studenthub status                               Show who is logged in
  studenthub list announcements                   Announcements, newest first
  studenthub list courses -f category=science     Filter on a field
  studenthub list requests --pending              Pending requests only
  studenthub export students -o students.csv      Export to CSV
  studenthub review 17 approve --note "ok"        Approve a request
  studenthub suggest-password                     Strong password ideas
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    login_parser = subparsers.add_parser("login", help="Login to the portal")
    login_parser.add_argument("--email", "-e", help="Account email")
    login_parser.add_argument("--password", "-p", help="Password (prompted if omitted)")

    subparsers.add_parser("logout", help="Forget the stored session")
    subparsers.add_parser("status", help="Show session status")
    subparsers.add_parser("whoami", help="Show current user info")
    subparsers.add_parser("menu", help="Show sections for your role")

    for name, help_text in (("list", "Show a section"), ("export", "Export a section to CSV")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("section", help="Section key, e.g. courses, library, requests")
        sub.add_argument("--search", "-s", help="Free-text search")
        sub.add_argument(
            "--filter", "-f",
            action="append",
            default=[],
            metavar="KEY=VALUE",
            help="Equality filter; repeatable"
        )
        sub.add_argument("--pending", action="store_true", help="Pending items only (requests)")
        if name == "export":
            sub.add_argument("--output", "-o", help="Output CSV path")

    review_parser = subparsers.add_parser("review", help="Approve or reject a request")
    review_parser.add_argument("request_id", help="Request id")
    review_parser.add_argument("decision", choices=["approve", "reject"])
    review_parser.add_argument("--note", "-n", default="", help="Admin note (required to reject)")

    suggest_parser = subparsers.add_parser("suggest-password", help="Suggest strong passwords")
    suggest_parser.add_argument("--count", type=int, default=3)
    suggest_parser.add_argument("--length", type=int, default=16)

    parser.add_argument(
        "--api-url",
        type=str,
        help="Backend API root (default: STUDENTHUB_API_URL or http://localhost:5002/api)"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to config file"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write logs to this file"
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Structured JSON log lines"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> PortalConfig:
    config = PortalConfig.load_default()
    if args.config:
        config.load_from_file(args.config)
    if args.api_url:
        config.api_base_url = args.api_url.rstrip("/")
    if args.verbose:
        config.verbose = True
    if args.log_file:
        config.log_file = args.log_file
    if args.json_logs:
        config.json_logs = True
    return config


def parse_filters(pairs: List[str]) -> Dict[str, str]:
    filters = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValidationError(f"Filter must look like KEY=VALUE, got '{pair}'", field="filter")
        filters[key.strip()] = value.strip()
    return filters


async def load_section(ctx: ViewContext, args: argparse.Namespace):
    view = open_section(args.section, ctx)
    if isinstance(view, SettingsView):
        raise ValidationError("Settings has nothing to list", field="section")

    if args.pending and isinstance(view, RequestsView):
        view.filters["scope"] = "pending"
    for key, value in parse_filters(args.filter).items():
        view.filters[key] = value
    if args.search:
        view.filters["search"] = args.search

    if hasattr(view, "refresh"):
        await view.refresh()
    else:
        await view.load()
    return view


async def login(ctx: ViewContext, args: argparse.Namespace, console: Console) -> bool:
    email = args.email or Prompt.ask("Email")
    password = args.password or Prompt.ask("Password", password=True)

    data = await ctx.api.auth.login(email, password)
    user = SessionUser.from_dict(data["user"])
    ctx.session.login(user, data["token"])

    console.print("\n[green]✓ Login successful![/green]")
    console.print(f"Welcome, [bold]{user.name}[/bold] ({user.role})")
    return True


def show_status(session: SessionStore, console: Console) -> None:
    if not session.is_authenticated:
        console.print("[yellow]Not logged in[/yellow]")
        return
    user = session.user
    render_summary(console, "Session", {
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "student_id": user.student_id,
        "read_announcements": len(session.read_announcements),
    })


async def review(ctx: ViewContext, args: argparse.Namespace, console: Console) -> bool:
    view = RequestsView(ctx)
    view.filters["scope"] = "pending"
    await view.load()
    request = next((r for r in view.items if r.id == args.request_id), None)
    if request is None:
        ctx.notifier.error(f"No pending request with id {args.request_id}")
        return False

    if args.decision == "reject":
        return await view.reject(request, args.note)

    outcome = await view.approve(request, args.note)
    if isinstance(outcome, ProfileCompletion):
        console.print(
            f"Create the student profile for [bold]{outcome.name}[/bold] <{outcome.email}> "
            "with `studenthub list students`, then approve again from the portal."
        )
        return True
    return bool(outcome)


async def run_command(args: argparse.Namespace, config: PortalConfig, console: Console) -> int:
    session = SessionStore(config.session_file)
    notifier = Notifier(Console(stderr=True))

    if args.command == "logout":
        session.logout()
        console.print("[green]✓ Logged out[/green]")
        return 0
    if args.command in ("status", "whoami"):
        show_status(session, console)
        return 0

    async with PortalAPIClient(config, token=session.token) as api:
        ctx = ViewContext(api=api, session=session, notifier=notifier)

        if args.command == "login":
            return 0 if await login(ctx, args, console) else 1

        if args.command == "suggest-password":
            for suggestion in await SettingsView(ctx).suggestions(args.count, args.length):
                console.print(f"  [cyan]{suggestion}[/cyan]")
            return 0

        if not session.is_authenticated:
            console.print("\n[red]✗ Authentication required[/red]")
            console.print("Please login first:  [cyan]studenthub login[/cyan]")
            return 1

        if args.command == "menu":
            render_menu(console, menu_for(session.is_admin), session.user.name)
            return 0

        if args.command == "list" and args.section == "dashboard":
            dashboard = DashboardView(ctx)
            if not await dashboard.load():
                return 1
            render_summary(console, f"Welcome back, {session.user.name}!", dashboard.summary())
            return 0

        if args.command == "list":
            view = await load_section(ctx, args)
            render_view(console, view)
            return 0

        if args.command == "export":
            resource = EXPORTABLE.get(args.section)
            if resource is None:
                raise ValidationError(
                    f"Export supports: {', '.join(EXPORTABLE)}", field="section"
                )
            view = await load_section(ctx, args)
            rows = view.visible()
            output = args.output or str(Path(config.export_dir) / default_filename(resource))
            path = await export_csv(resource, rows, output)
            console.print(f"[green]✓ Exported {len(rows)} rows to {path}[/green]")
            return 0

        if args.command == "review":
            return 0 if await review(ctx, args, console) else 1

    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    console = Console()
    config = build_config(args)
    setup_logging(
        level="DEBUG" if config.verbose else config.log_level,
        log_file=config.log_file,
        json_logs=config.json_logs,
        verbose=config.verbose,
    )

    if not args.command:
        parser.print_help()
        sys.exit(0)

    try:
        code = asyncio.run(run_command(args, config, console))
    except PortalError as e:
        logger.debug(f"Command failed: {e.to_dict()}")
        console.print(f"[red]✗ {e.message}[/red]")
        code = 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
