"""
Slash Command Dispatcher

Routes a Slack slash command to its handler.

Flow:
1. Exact, case-sensitive lookup of the command name
2. Unknown or missing commands get the help text
3. Handler runs (only /morning-focus aggregates provider context)
4. Any handler exception is logged and replaced by that handler's fallback reply

Handlers never touch the context document; the webhook owns persistence.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, List, Dict, Callable, Awaitable

from .aggregator import AggregatedContext, aggregate, PROVIDER_DEADLINE_SECONDS
from .context_store import ContextDocument
from .provider_client import ProviderConfig
from . import response_builder

logger = logging.getLogger(__name__)

MORNING_FOCUS = "/morning-focus"
EVENING_CLOSE = "/evening-close"
VISION_ALIGNMENT = "/vision-alignment"
WEEKLY_REVIEW = "/weekly-review"

NO_REFLECTION = "No reflection provided"

HELP_TEXT = (
    "Hello! I'm your executive assistant. Try commands like:\n"
    "• `/morning-focus` - Daily strategic guidance\n"
    "• `/evening-close` - Reflect on your day\n"
    "• `/vision-alignment` - Check goal alignment\n"
    "• `/weekly-review` - Weekly analysis"
)

Aggregator = Callable[[List[ProviderConfig], float], Awaitable[AggregatedContext]]


@dataclass
class CommandHandler:
    """A registered slash command."""
    command: str
    description: str
    run: Callable[[Optional[str], ContextDocument], Awaitable[str]]
    fallback: Callable[[Optional[str]], str]


class CommandDispatcher:
    """
    Maps slash commands to handlers.

    Usage:
        dispatcher = CommandDispatcher(providers=default_providers(config))
        text = await dispatcher.dispatch("/morning-focus", None, context)
    """

    def __init__(
        self,
        providers: Optional[List[ProviderConfig]] = None,
        deadline: float = PROVIDER_DEADLINE_SECONDS,
        aggregator: Aggregator = aggregate,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Initialize dispatcher.

        Args:
            providers: Providers queried by /morning-focus
            deadline: Per-provider deadline in seconds
            aggregator: Coroutine function (providers, deadline) -> AggregatedContext
            clock: Source of the UTC date for reply headers
        """
        self.providers = providers or []
        self.deadline = deadline
        self._aggregate = aggregator
        self._clock = clock

        handlers = [
            CommandHandler(
                MORNING_FOCUS, "Daily strategic guidance",
                self._morning_focus, lambda _text: response_builder.morning_focus_fallback(self._clock()),
            ),
            CommandHandler(
                EVENING_CLOSE, "Reflect on your day",
                self._evening_close, lambda _text: response_builder.evening_close(NO_REFLECTION),
            ),
            CommandHandler(
                VISION_ALIGNMENT, "Check goal alignment",
                self._vision_alignment, lambda _text: response_builder.VISION_ALIGNMENT,
            ),
            CommandHandler(
                WEEKLY_REVIEW, "Weekly analysis",
                self._weekly_review, lambda _text: response_builder.WEEKLY_REVIEW,
            ),
        ]
        self.handlers: Dict[str, CommandHandler] = {h.command: h for h in handlers}

    @property
    def commands(self) -> List[str]:
        return list(self.handlers)

    async def dispatch(
        self,
        command: Optional[str],
        text: Optional[str],
        context: ContextDocument,
    ) -> str:
        """
        Run the handler for a slash command.

        Args:
            command: Slash command name, e.g. "/morning-focus"
            text: Free-form argument text (may be None)
            context: Current context document (read-only)

        Returns:
            Reply text; never raises
        """
        logger.info(f"Processing command: {command} with text: {text}")

        handler = self.handlers.get(command) if isinstance(command, str) else None
        if handler is None:
            return HELP_TEXT

        try:
            return await handler.run(text, context)
        except Exception as e:
            logger.error(f"{handler.command} failed, using fallback reply: {e}", exc_info=True)
            return handler.fallback(text)

    async def _morning_focus(self, text: Optional[str], context: ContextDocument) -> str:
        now = self._clock()
        aggregated = await self._aggregate(self.providers, self.deadline)
        return response_builder.build_morning_focus(aggregated, now)

    async def _evening_close(self, text: Optional[str], context: ContextDocument) -> str:
        return response_builder.evening_close(text or NO_REFLECTION)

    async def _vision_alignment(self, text: Optional[str], context: ContextDocument) -> str:
        return response_builder.VISION_ALIGNMENT

    async def _weekly_review(self, text: Optional[str], context: ContextDocument) -> str:
        return response_builder.WEEKLY_REVIEW
