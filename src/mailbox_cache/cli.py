"""Command-line interface for Mailbox Cache.

The ``demo`` command drives a session against the in-memory gateway so the
paging, growth and push behaviour can be observed from a terminal.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from mailbox_cache import __version__
from mailbox_cache.config import get_settings
from mailbox_cache.exceptions import ConfigurationError
from mailbox_cache.gateway import InMemoryGateway
from mailbox_cache.logging_config import configure_logging
from mailbox_cache.session import MailboxSession

logger = structlog.get_logger()

STEP_NAMES = ("jump", "grow", "push", "refresh", "select-all", "delete")


def _parse_step(value: str) -> tuple[str, int | None]:
    name, _, arg = value.partition(":")
    if name not in STEP_NAMES:
        raise argparse.ArgumentTypeError(f"unknown step {name!r}; expected one of {', '.join(STEP_NAMES)}")
    if name in ("jump", "push"):
        if not arg.isdigit():
            raise argparse.ArgumentTypeError(f"step {name!r} needs a number, e.g. {name}:3")
        return name, int(arg)
    return name, None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mailbox-cache", description="Mailbox Cache")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    demo_parser = subparsers.add_parser(
        "demo",
        help="Page through a synthetic mailbox held by the in-memory gateway",
    )
    demo_parser.add_argument("--account", default="demo@example.com", help="Account identifier")
    demo_parser.add_argument("--mailbox", default="INBOX", help="Mailbox path")
    demo_parser.add_argument("--total", type=int, default=120, help="Messages in the mailbox")
    demo_parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Page size (default: settings page_size)",
    )
    demo_parser.add_argument(
        "steps",
        nargs="*",
        type=_parse_step,
        help="Steps to run in order: jump:N, grow, push:N, refresh, select-all, delete",
    )

    return parser


def _describe(session: MailboxSession) -> str:
    rows = session.rows
    uid_range = f"{rows[0].uid}..{rows[-1].uid}" if rows else "-"
    selected = len(session.selection.selected_uids)
    error = session.error
    line = (
        f"page {session.current_page}/{session.total_pages}  rows {len(rows)}  "
        f"uids {uid_range}  has_more {session.has_more}  selected {selected}"
    )
    if error is not None:
        line += f"  error {error.kind.value}: {error.guidance}"
    return line


async def _cmd_demo(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.page_size is not None:
        if args.page_size < 1:
            raise ConfigurationError(f"--page-size must be at least 1, got {args.page_size}")
        settings = settings.model_copy(update={"page_size": args.page_size})
    if args.total < 0:
        raise ConfigurationError(f"--total must not be negative, got {args.total}")

    gateway = InMemoryGateway()
    gateway.seed(args.account, args.mailbox, args.total)

    async with MailboxSession(gateway, settings=settings) as session:
        session.select(args.account, args.mailbox)
        outcome = await session.open_mailbox()
        print(f"open      [{outcome.value}] {_describe(session)}")

        for name, arg in args.steps:
            if name == "jump":
                outcome = await session.jump(arg)
            elif name == "grow":
                outcome = await session.grow_by_scroll()
            elif name == "refresh":
                outcome = await session.refresh()
            elif name == "push":
                gateway.deliver_new_mail(args.account, args.mailbox, arg)
                await session.push_listener.drain()
            elif name == "select-all":
                session.select_all()
            elif name == "delete":
                await session.delete_selected()

            label = f"{name}:{arg}" if arg is not None else name
            status = f"[{outcome.value}] " if name in ("jump", "grow", "refresh") else ""
            print(f"{label:<9} {status}{_describe(session)}")

    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Mailbox Cache CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    configure_logging(settings)

    logger.debug("mailbox_cache_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    if parsed.command == "demo":
        try:
            return asyncio.run(_cmd_demo(parsed))
        except ConfigurationError as exc:
            logger.error("invalid_demo_options", error=str(exc))
            return 1

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
