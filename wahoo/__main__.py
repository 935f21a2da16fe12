"""Command line entry point: ``python -m wahoo`` or ``wahoo``."""

import argparse
import asyncio
import logging
import sys
import webbrowser

import uvicorn

from wahoo.config import Settings
from wahoo.context import build_context
from wahoo.core.exceptions import SessionError, StoreError
from wahoo.main import create_app

logger = logging.getLogger("wahoo")

BROWSER_DELAY = 0.5


def parse_addr(addr: str) -> tuple[str, int]:
    """Split ``host:port``; an empty host binds all interfaces.

    Raises:
        ValueError: If the address is not ``host:port`` with a valid port
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address {addr!r}, expected host:port")
    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"invalid port {port_number} in {addr!r}")
    return host.strip("[]") or "0.0.0.0", port_number


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment settings overridden by command line flags."""
    host, port = parse_addr(args.addr)
    overrides = {"STORE_DIR": args.store_dir, "HOST": host, "PORT": port}
    if args.no_browser:
        overrides["OPEN_BROWSER"] = False
    return Settings().model_copy(update=overrides)


async def open_browser(url: str, delay: float = BROWSER_DELAY) -> None:
    await asyncio.sleep(delay)
    try:
        opened = await asyncio.to_thread(webbrowser.open, url)
    except webbrowser.Error as e:
        logger.warning(f"Could not open browser: {e}")
        return
    if not opened:
        logger.info(f"Open {url} in your browser")


async def serve(settings: Settings) -> int:
    """Open the store, build the session and run the HTTP server until stopped."""
    try:
        context = build_context(settings)
        await context.store.init()
    except (StoreError, SessionError) as e:
        print(f"wahoo: {e}", file=sys.stderr)
        return 1

    app = create_app(context)
    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.HOST, port=settings.PORT, log_config=None)
    )

    browser_task = None
    if settings.OPEN_BROWSER:
        host = "localhost" if settings.HOST in ("0.0.0.0", "::") else settings.HOST
        browser_task = asyncio.create_task(open_browser(f"http://{host}:{settings.PORT}"))

    logger.info(f"Serving on {settings.server_url}")
    try:
        await server.serve()
    finally:
        if browser_task is not None and not browser_task.done():
            browser_task.cancel()

    return 0 if server.started else 1


def main(argv: list[str] | None = None) -> int:
    """Entry point for the wahoo server."""
    parser = argparse.ArgumentParser(
        prog="wahoo",
        description="Local query and command API for a single WhatsApp account",
    )
    parser.add_argument("--store-dir", default="store", help="Directory holding the message database")
    parser.add_argument("--addr", default="localhost:8080", help="Address to serve on, host:port")
    parser.add_argument("--no-browser", action="store_true", help="Do not open the UI in a browser")
    args = parser.parse_args(argv)

    try:
        settings = build_settings(args)
    except ValueError as e:
        print(f"wahoo: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
