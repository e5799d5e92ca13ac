"""aiohttp server: payment API, static pages and health check."""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

from aiohttp import web
from google.cloud.firestore import AsyncClient

from paywall.config.settings import AppConfig, get_config
from paywall.payments.provider import StripeProvider
from paywall.payments.routes import add_routes
from paywall.store.client import create_firestore_client

logger = logging.getLogger(__name__)

HEALTH_CHECK_AGENTS = ("GoogleHC", "health")


def is_health_check(request: web.Request) -> bool:
    """True for load-balancer health checks (by User-Agent or X-Health-Check header)."""
    user_agent = request.headers.get("User-Agent", "")
    if any(agent in user_agent for agent in HEALTH_CHECK_AGENTS):
        return True
    return bool(request.headers.get("X-Health-Check"))


async def index(request: web.Request) -> web.StreamResponse:
    """Handle GET /: the app page, or a bare OK for health checks."""
    if is_health_check(request):
        return web.Response(status=200, text="OK")
    return web.FileResponse(Path(request.app["config"].static_dir) / "app.html")


async def serve_test_page(request: web.Request) -> web.StreamResponse:
    """Handle GET /test."""
    return web.FileResponse(Path(request.app["config"].static_dir) / "test.html")


def create_app(
    config: AppConfig,
    provider: StripeProvider,
    db: AsyncClient,
) -> web.Application:
    """Create aiohttp application with API, page and static routes.

    Args:
        config: Application configuration
        provider: Stripe handle
        db: Firestore async client

    Returns:
        Configured aiohttp Application
    """
    app = web.Application()
    app["config"] = config
    app["provider"] = provider
    app["db"] = db

    add_routes(app)
    app.router.add_get("/", index)
    app.router.add_get("/test", serve_test_page)

    static_dir = Path(config.static_dir)
    if static_dir.is_dir():
        app.router.add_static("/", static_dir)
    else:
        logger.warning(f"Static directory {static_dir} not found - static files disabled")

    return app


async def run_server(
    config: AppConfig,
    shutdown_event: Optional[asyncio.Event] = None,
) -> None:
    """Run the HTTP server until shutdown signal.

    Args:
        config: Application configuration
        shutdown_event: Optional event to signal shutdown
    """
    app = create_app(
        config,
        StripeProvider.from_config(config),
        create_firestore_client(config),
    )

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, config.host, config.port)
    await site.start()

    logger.info(f"Server running at http://{config.host}:{config.port}")

    # Wait for shutdown signal
    if shutdown_event:
        await shutdown_event.wait()
    else:
        # Run forever if no shutdown event provided
        await asyncio.Event().wait()

    # Cleanup
    logger.info("Shutting down server...")
    await runner.cleanup()


def main() -> None:
    """Run the server as a standalone process.

    Blocks until SIGTERM/SIGINT received.
    """
    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    shutdown_event = asyncio.Event()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        loop.run_until_complete(run_server(config, shutdown_event=shutdown_event))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.close()
        logger.info("Server stopped")


if __name__ == "__main__":
    main()
