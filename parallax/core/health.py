"""
Parallax Discord Bot - Health Check Server
==========================================

HTTP health check endpoint for external monitoring.

DESIGN:
    A lightweight aiohttp server inside the bot's event loop. /health
    reports connection state and the size of the interaction core
    without exposing anything sensitive; /ping answers unconditionally
    so load balancers can tell the process is alive.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from aiohttp import web

from parallax.core.logger import logger, LOG_TZ

if TYPE_CHECKING:
    import discord

    from parallax.core.context import BotContext


# =============================================================================
# Health Check Server
# =============================================================================

class HealthCheckServer:
    """
    Simple HTTP health check server for monitoring.

    Attributes:
        context: Bot context for status queries.
        host: Bind address.
        port: Port number for the HTTP server.
        app: aiohttp Application instance.
        runner: aiohttp AppRunner for lifecycle management.
    """

    def __init__(self, context: "BotContext", host: str = "0.0.0.0", port: int = 8080) -> None:
        self.context = context
        self.host = host
        self.port = port
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None

        self.app.router.add_get("/health", self.health_handler)
        self.app.router.add_get("/ping", self.ping_handler)

    # =========================================================================
    # Request Handlers
    # =========================================================================

    async def health_handler(self, request: web.Request) -> web.Response:
        """Bot status: "healthy" once connected, "starting" before."""
        try:
            client: Optional["discord.Client"] = self.context.client
            is_connected = client.is_ready() if client is not None else False
            guild_count = len(client.guilds) if client is not None else 0

            status = {
                "status": "healthy" if is_connected else "starting",
                "bot": "Parallax",
                "connected": is_connected,
                "guilds": guild_count,
                "commands": len(self.context.commands),
                "components": len(self.context.components),
                "modals": len(self.context.modals),
                "active_queues": self.context.queues.active,
                "timestamp": datetime.now(LOG_TZ).isoformat(),
            }

            logger.debug(f"Health check: {status['status']}")
            return web.json_response(status)

        except Exception as e:
            logger.error("Health Check Error", [
                ("Error", str(e)[:100]),
            ])
            return web.json_response(
                {"status": "error", "error": str(e)},
                status=500,
            )

    async def ping_handler(self, request: web.Request) -> web.Response:
        return web.json_response({"message": "pong"})

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def start(self) -> None:
        """Start serving; a bind failure is logged, not raised."""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()

            logger.tree("Health Server Started", [
                ("Port", str(self.port)),
                ("Endpoint", f"http://{self.host}:{self.port}/health"),
            ], emoji="🏥")

        except Exception as e:
            logger.error("Health Server Startup Failed", [
                ("Port", str(self.port)),
                ("Error", str(e)[:100]),
            ])

    async def stop(self) -> None:
        """Stop the server; safe to call when it never started."""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Health check server stopped")


__all__ = ["HealthCheckServer"]
