"""
Executive Assistant Slack Bot

aiohttp web server receiving Slack slash commands.

Features:
- POST /slack/webhook for slash commands (form-encoded or JSON)
- GET /health for liveness checks
- Conversation log persisted to a JSON context file on every command
- Provider context (Airtable, GitHub) fetched under a strict deadline

Usage:
    python -m exec_assistant.app
"""

import os
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from aiohttp import web
from dotenv import load_dotenv

from .config import AppConfig, get_config
from .context_store import ContextStore, ConversationRecord
from .command_handler import CommandDispatcher
from .providers import default_providers
from .response_builder import truncate_for_slack

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/slack/webhook"
HEALTH_PATH = "/health"


class WebhookServer:
    """
    HTTP server for the slash command webhook.

    Usage:
        server = WebhookServer(config)
        await server.start()
        ...
        await server.stop()
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[ContextStore] = None,
        dispatcher: Optional[CommandDispatcher] = None,
    ):
        self.config = config or get_config()
        self.store = store or ContextStore(self.config.context_file)
        self.dispatcher = dispatcher or CommandDispatcher(
            providers=default_providers(self.config),
        )
        self._runner: Optional[web.AppRunner] = None

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all routes."""
        app = web.Application()
        app.router.add_get(HEALTH_PATH, self._handle_health)
        app.router.add_post(WEBHOOK_PATH, self._handle_webhook)
        app.on_startup.append(self._on_startup)
        return app

    async def _on_startup(self, app: web.Application):
        """Make sure the context file exists before serving requests."""
        await self.store.initialize()

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def _read_body(self, request: web.Request) -> Dict[str, Any]:
        """Slack posts form data; JSON is accepted for manual testing."""
        if request.content_type == "application/json":
            body = await request.json()
            return body if isinstance(body, dict) else {}
        form = await request.post()
        return dict(form)

    async def _handle_webhook(self, request: web.Request) -> web.Response:
        """
        Handle a slash command.

        Loads the context, dispatches the command, then appends the
        conversation record and stamps the analysis time before replying.
        """
        try:
            body = await self._read_body(request)
            logger.info(f"Slack webhook received: {body}")

            command = body.get("command")
            if not isinstance(command, str):
                command = None
            text = body.get("text")
            if not isinstance(text, str) or not text:
                text = None

            context = await self.store.load()
            record = ConversationRecord.create(
                command=command,
                text=text,
                user=body.get("user_name"),
                channel=body.get("channel_name"),
            )
            context.conversations.append(record)

            response = await self.dispatcher.dispatch(command, text, context)

            await self.store.append_conversation(record)

            return web.json_response({
                "text": truncate_for_slack(response),
                "response_type": "in_channel",
            })

        except Exception as e:
            logger.error(f"Webhook error: {e}", exc_info=True)
            return web.json_response({"error": "Internal server error"}, status=500)

    async def start(self):
        """Start the HTTP server."""
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, "0.0.0.0", self.config.port)
        await site.start()

        stats = await self.store.get_stats()
        logger.info(f"🚀 Executive Assistant running on port {self.config.port}")
        logger.info(f"📊 Context file: {stats['path']} ({stats['total_conversations']} conversations)")
        logger.info(f"🔗 Webhook endpoint: {WEBHOOK_PATH}")
        logger.info(f"💚 Health check: {HEALTH_PATH}")
        logger.info(f"Providers: airtable={'configured' if self.config.airtable_available else 'missing key'}, "
                    f"github={'configured' if self.config.github_available else 'missing token'}")

    async def stop(self):
        """Stop the HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Executive Assistant stopped")


# =============================================================================
# Main Entry Point
# =============================================================================

async def main():
    """Main entry point for running the webhook server."""
    server = WebhookServer()
    await server.start()

    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
