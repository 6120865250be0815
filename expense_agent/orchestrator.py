"""
Main Orchestrator for Expense Agent

This module ties together all the components and runs the bot:
1. Connect the transport (with retries)
2. Feed every inbound message to the conversation state machine
3. On disconnect, drop all sessions and reconnect
4. On logout or end of stream, drop all sessions and stop

DESIGN DECISION: A reconnect always clears the session table.
A confirmation that was pending when the connection dropped is
discarded; the user re-sends the expense.
"""

import asyncio
from typing import Optional

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_agent.audit import AuditLogger
from expense_agent.config import Settings, get_settings
from expense_agent.conversation import ConversationStateMachine
from expense_agent.ledger import LedgerBook
from expense_agent.parsing import (
    DEFAULT_CATEGORY_KEYWORDS,
    ExpenseParser,
    keyword_lookup,
    load_category_keywords,
)
from expense_agent.services.storage import FileLedgerStorage, JsonlAuditStorage
from expense_agent.services.transport import (
    ConsoleTransport,
    InboundMessage,
    LoggedOutError,
    TransportDisconnected,
    TransportError,
    TransportInterface,
)


logger = structlog.get_logger(__name__)


class ExpenseBot:
    """
    Runs the receive loop of one transport.

    Messages are dispatched as independent tasks so different
    conversations are processed concurrently; the state machine
    serializes messages of the same conversation.
    """

    def __init__(
        self,
        transport: TransportInterface,
        state_machine: ConversationStateMachine,
        reconnect_attempts: int = 5,
        reconnect_wait_min: float = 1.0,
        reconnect_wait_max: float = 30.0,
    ):
        self._transport = transport
        self._state_machine = state_machine
        self._reconnect_attempts = reconnect_attempts
        self._reconnect_wait_min = reconnect_wait_min
        self._reconnect_wait_max = reconnect_wait_max
        self._tasks: set[asyncio.Task] = set()

    @property
    def state_machine(self) -> ConversationStateMachine:
        return self._state_machine

    async def connect(self) -> None:
        """
        Connect the transport, retrying with exponential backoff.

        Raises:
            LoggedOutError: Immediately, without retrying
            TransportError: When every attempt failed
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._reconnect_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self._reconnect_wait_min,
                max=self._reconnect_wait_max,
            ),
            retry=(
                retry_if_exception_type(TransportError)
                & retry_if_not_exception_type(LoggedOutError)
            ),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self._transport.connect()
        logger.info("transport_connected")

    async def run(self) -> None:
        """Receive and dispatch messages until logout or end of stream."""
        try:
            while True:
                await self.connect()
                try:
                    async for message in self._transport.receive():
                        self.dispatch(message)
                except TransportDisconnected as e:
                    logger.warning("transport_disconnected", error=str(e))
                    await self._drain()
                    await self._state_machine.reset_sessions(reason="disconnected")
                    continue
                except LoggedOutError as e:
                    logger.warning("transport_logged_out", error=str(e))
                    await self._drain()
                    await self._state_machine.reset_sessions(reason="logged_out")
                    break
                logger.info("transport_stream_ended")
                break
        finally:
            await self._drain()
            await self._transport.close()

    def dispatch(self, message: InboundMessage) -> Optional[asyncio.Task]:
        """Schedule one message for processing (outgoing echoes are dropped)."""
        if message.is_outgoing_echo:
            return None
        task = asyncio.create_task(self._state_machine.handle_message(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def create_app_components(
    settings: Optional[Settings] = None,
    transport: Optional[TransportInterface] = None,
) -> ExpenseBot:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to the cached global settings)
        transport: Transport to run on (defaults to the console)

    Returns:
        A ready-to-run ExpenseBot
    """
    settings = settings or get_settings()
    ledger_settings = settings.ledger
    bot_settings = settings.bot
    transport_settings = settings.transport
    app_settings = settings.app

    audit_storage = (
        JsonlAuditStorage(app_settings.audit_log_path)
        if app_settings.audit_log_path
        else None
    )
    audit_logger = AuditLogger(audit_storage)

    keywords = DEFAULT_CATEGORY_KEYWORDS
    if bot_settings.category_map_path:
        try:
            keywords = load_category_keywords(bot_settings.category_map_path)
        except (OSError, ValueError) as e:
            # Bad category map - continue with the built-in table
            logger.warning(
                "category_map_not_loaded",
                path=bot_settings.category_map_path,
                error=str(e),
            )

    transport = transport or ConsoleTransport(
        conversation_id=transport_settings.conversation_id,
    )

    state_machine = ConversationStateMachine(
        ledger=LedgerBook(FileLedgerStorage(ledger_settings.ledger_path)),
        transport=transport,
        parser=ExpenseParser(
            trigger_words=bot_settings.trigger_words_list,
            connectors=bot_settings.connectors_list,
        ),
        category_lookup=keyword_lookup(keywords),
        audit_logger=audit_logger,
        tz=bot_settings.tz,
        currency_symbol=bot_settings.currency_symbol,
        week_days=bot_settings.week_days,
    )

    return ExpenseBot(
        transport=transport,
        state_machine=state_machine,
        reconnect_attempts=transport_settings.reconnect_attempts,
        reconnect_wait_min=transport_settings.reconnect_wait_min,
        reconnect_wait_max=transport_settings.reconnect_wait_max,
    )
