"""
Interactive console client.

Connects a WebSocketClient to a server, prints every inbound message to
stdout and sends each line typed on stdin. Client options come from the
environment (see Config), so reconnection, queuing and heartbeat behaviour
can be tried out without writing code:

    WS_QUEUE_MESSAGES=true WS_HEARTBEAT_INTERVAL_MS=5000 resilient-ws wss://example.org/ws
"""

import argparse
import asyncio
import sys
import threading
from typing import List, Optional

from resilient_ws.config.config import ClientOptions, Config
from resilient_ws.exceptions import ConfigurationError
from resilient_ws.utils.logger import configure_logging, get_logger
from resilient_ws.websocket.connection import WebSocketClient
from resilient_ws.websocket.events.events import TransportEvent

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resilient-ws",
        description="Interactive client for a self-healing WebSocket connection.",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=Config.WS_SERVER_URL,
        help="WebSocket URL (defaults to WS_SERVER_URL)",
    )
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Extra handshake header; may be repeated",
    )
    parser.add_argument(
        "--no-console-log",
        action="store_true",
        help="Only log to the log file",
    )
    return parser


def parse_headers(values: List[str]) -> dict:
    headers = {}
    for value in values:
        name, sep, header_value = value.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header {value!r}, expected NAME:VALUE")
        headers[name.strip()] = header_value.strip()
    return headers


async def run(url: str, options: ClientOptions) -> int:
    """
    Run the console client until stdin closes or reconnection gives up.

    Returns:
        int: Process exit code
    """
    loop = asyncio.get_running_loop()
    client = WebSocketClient(url, options)
    done = loop.create_future()

    def finish(exit_code: int) -> None:
        if not done.done():
            done.set_result(exit_code)

    client.on(TransportEvent.OPEN, lambda: logger.info(f"Connected to {url}"))
    client.on(TransportEvent.MESSAGE, lambda data: print(data, flush=True))
    client.on(TransportEvent.ERROR, lambda err: logger.error(f"Transport error: {err}"))
    client.on(
        TransportEvent.CLOSE,
        lambda code, reason: logger.info(f"Disconnected (code={code}, reason={reason!r})"),
    )
    client.on(
        TransportEvent.RECONNECTING,
        lambda attempt, delay: logger.info(f"Reconnect attempt {attempt} in {delay}ms"),
    )
    client.on(
        TransportEvent.HEARTBEAT_TIMEOUT,
        lambda: logger.warning("No traffic within the heartbeat timeout"),
    )
    client.on(TransportEvent.RECONNECT_FAILED, lambda attempts: finish(1))

    def report_send(error: Optional[Exception]) -> None:
        if error is not None:
            logger.warning(f"Message not delivered: {error}")

    def pump_stdin() -> None:
        # Runs in a daemon thread; all client calls are marshalled to the loop.
        for line in sys.stdin:
            loop.call_soon_threadsafe(client.send, line.rstrip("\n"), report_send)
        loop.call_soon_threadsafe(finish, 0)

    client.connect()
    threading.Thread(target=pump_stdin, name="stdin-reader", daemon=True).start()
    try:
        return await done
    finally:
        client.close()
        logger.info(f"Final stats: {client.get_connection_stats().to_dict()}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(console=not args.no_console_log)

    if not args.url:
        logger.error("No URL given and WS_SERVER_URL is not set.")
        return 2

    try:
        options = ClientOptions.from_config(headers=parse_headers(args.header))
    except (ValueError, ConfigurationError) as e:
        logger.error(str(e))
        return 2

    try:
        return asyncio.run(run(args.url, options))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
