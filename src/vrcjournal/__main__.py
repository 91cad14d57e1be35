"""Main entry point: run the journal state layer against a backend.

Connects to the backend, wires the state layer and logs what it observes
(readiness, instance list changes, notifications) until interrupted or the
backend goes away.
"""

import argparse
import asyncio
import logging
import sys

from vrcjournal.api.client import JournalClient
from vrcjournal.core.config import ConfigManager
from vrcjournal.core.context import AppContext
from vrcjournal.core.notifications import Notification

logger = logging.getLogger(__name__)


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="vrcjournal",
        description="VRCJournal client state layer",
    )
    parser.add_argument("--host", default=None, help="backend hostname or IP")
    parser.add_argument("--port", type=int, default=None, help="backend TCP port")
    parser.add_argument(
        "--save", action="store_true", help="remember --host/--port for next time"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, config: ConfigManager) -> int:
    """Connect and keep the state layer running.

    Returns:
        Exit code (0 for a clean stop, 1 if the backend is unreachable).
    """
    host: str = args.host or config.get_backend_host()
    port: int = args.port if args.port is not None else config.get_backend_port()
    if args.save:
        config.set_backend_host(host)
        config.set_backend_port(port)

    client = JournalClient(host, port)
    try:
        await client.connect()
    except ConnectionError as e:
        logger.error("%s", e)
        return 1

    closed = asyncio.Event()
    client.set_event_handlers(
        on_disconnect=closed.set,
        on_error=lambda e: logger.warning("Backend connection error: %s", e),
    )

    context = AppContext.create(client, config)

    shown: set[int] = set()

    def on_notifications(items: tuple[Notification, ...]) -> None:
        for item in items:
            if item.id not in shown:
                shown.add(item.id)
                logger.info("[%s] %s", item.kind, item.message)

    def on_instances(items: tuple[object, ...]) -> None:
        logger.info("%d instances (user filter %d)", len(items), context.instances.user_filter)

    def on_stale(stale: bool) -> None:
        if stale:
            logger.info("Instance list is out of date")

    context.notifications.notifications_changed.connect(on_notifications)
    context.instances.instances_changed.connect(on_instances)
    context.instances.stale_changed.connect(on_stale)
    context.on_ready(lambda: logger.info("Backend is ready"))

    try:
        await context.start()
        logger.info(
            "Locale %s, theme %s, user filter %d",
            context.locale.locale,
            context.theme.theme,
            context.users.selected_user_id,
        )
        await closed.wait()
        logger.info("Backend closed the connection")
    finally:
        context.stop()
        await client.disconnect()
        config.sync()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the application.

    Returns:
        Exit code (0 for success).
    """
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(run(args, ConfigManager()))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
