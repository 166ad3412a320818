"""voltline-watch: follow admin notifications from a terminal."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from voltline.client.api import NotificationsApi
from voltline.client.capabilities import ConsoleCapabilities
from voltline.client.error_reporter import ErrorReporter
from voltline.client.toasts import ToastQueue
from voltline.client.watcher import NotificationWatcher, WatcherOptions
from voltline.core.config import settings
from voltline.core.logging import configure_logging
from voltline.schemas.notification import NotificationOut

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("form_submission", "content_published", "reminder", "system")


def format_notification(notification: NotificationOut) -> str:
    marker = " " if notification.is_read else "*"
    line = (
        f"{marker} [{notification.priority:<6}] {notification.timestamp:%Y-%m-%d %H:%M} "
        f"{notification.title} - {notification.message}"
    )
    if notification.action_url:
        line += f" ({notification.action_url})"
    return line


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voltline-watch", description=__doc__)
    parser.add_argument("--api-url", default=settings.api_base_url, help="Admin API base URL")
    parser.add_argument("--token", default=settings.api_token, help="Admin bearer token")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.poll_interval_seconds,
        help="Seconds between polls (default: %(default)s)",
    )
    parser.add_argument("--no-sound", action="store_true", help="Never ring the terminal bell")
    parser.add_argument("--no-native", action="store_true", help="Do not raise native notifications")
    parser.add_argument("--test", choices=NOTIFICATION_TYPES, help="Send a test notification first")
    parser.add_argument("--once", action="store_true", help="Print the current notifications and exit")
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


async def _watch(args: argparse.Namespace) -> int:
    options = WatcherOptions(
        poll_interval=args.interval,
        auto_mark_as_read=settings.auto_mark_as_read,
        enable_sound=settings.enable_sound and not args.no_sound,
        enable_browser_notifications=settings.enable_browser_notifications and not args.no_native,
    )

    async with NotificationsApi(args.api_url, token=args.token) as api:
        watcher = NotificationWatcher(api, options=options, capabilities=ConsoleCapabilities())

        if args.once:
            await watcher.load_initial()
            if watcher.state.error:
                print(f"error: {watcher.state.error}", file=sys.stderr)
                return 1
            print(f"{watcher.state.unread_count} unread")
            for notification in watcher.state.notifications:
                print(format_notification(notification))
            return 0

        reporter = ErrorReporter(api)
        toasts = ToastQueue(
            max_toasts=settings.toast_max,
            hide_delay=settings.toast_hide_delay_ms / 1000,
            preferences=watcher.preference_store,
        )

        def on_new(added: list[NotificationOut]) -> None:
            toasts.retain(n.id for n in watcher.state.notifications)
            for notification in toasts.offer(added):
                print(format_notification(notification))

        watcher.add_listener(on_new)
        reporter.start()
        try:
            await watcher.start()
            if args.test and not await watcher.test_notification(args.test):
                reporter.log_error(watcher.state.error or "test notification failed", context={"command": "test"})
            logger.info("Watching %s every %ss", args.api_url, args.interval)
            await asyncio.Event().wait()
        finally:
            await watcher.stop()
            toasts.close()
            await reporter.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return asyncio.run(_watch(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
