"""
Conversation State Machine

This module drives the per-conversation confirmation dialogue:

    Idle ── expense text ──▶ AwaitingExpenseConfirmation
         ── /clear ───────▶ AwaitingClearConfirmation
    AwaitingExpenseConfirmation ── sim ──▶ (append) AwaitingCategoryConfirmation
    AwaitingCategoryConfirmation ── sim ──▶ (rewrite category) Idle

DESIGN DECISION: The state machine enforces the boundaries:
- Nothing reaches the ledger without an explicit "sim"
- A suggested category is never applied without a second "sim"
- Every error ends as exactly one reply; nothing reaches the transport

Events for the same conversation are serialized with a per-conversation
lock. All ledger I/O goes through a single ledger lock.
"""

import asyncio
from datetime import datetime, tzinfo
from enum import Enum
from typing import Callable, Optional, TypeVar

import structlog

from expense_agent.audit import AuditLogger
from expense_agent.conversation import messages
from expense_agent.ledger import LedgerBook
from expense_agent.models.audit import AuditEventBuilder
from expense_agent.models.expense import ExpenseRecord, PendingCommit, utc_now
from expense_agent.models.session import (
    AwaitingCategoryConfirmation,
    AwaitingClearConfirmation,
    AwaitingExpenseConfirmation,
    SessionState,
)
from expense_agent.parsing import (
    CategoryLookup,
    ExpenseParser,
    ParseError,
    suggest_category,
)
from expense_agent.reports import engine
from expense_agent.reports.formatting import (
    render_full_report,
    render_period,
    render_today,
    render_total,
)
from expense_agent.services.storage import ClearOutcome, LedgerIOError
from expense_agent.services.transport import (
    InboundMessage,
    TransportError,
    TransportInterface,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")

YES_ANSWERS = frozenset({"sim", "s"})
NO_ANSWERS = frozenset({"não", "nao", "n"})

COMMANDS = {
    "/help": "help",
    "/ajuda": "help",
    "/total": "total",
    "/today": "today",
    "/hoje": "today",
    "/week": "week",
    "/semana": "week",
    "/report": "report",
    "/relatorio": "report",
    "/clear": "clear",
    "/limpar": "clear",
}


class Answer(str, Enum):
    YES = "yes"
    NO = "no"
    INVALID = "invalid"


def classify_answer(text: str) -> Answer:
    normalized = text.strip().lower()
    if normalized in YES_ANSWERS:
        return Answer.YES
    if normalized in NO_ANSWERS:
        return Answer.NO
    return Answer.INVALID


class StateInconsistencyError(Exception):
    """A session was found in a state the machine cannot handle."""
    pass


class ConversationStateMachine:
    """
    Owns every conversation session and turns inbound texts into replies.

    Sessions are private to this class. "Idle" is the absence of an
    entry in the session table.
    """

    def __init__(
        self,
        ledger: LedgerBook,
        transport: TransportInterface,
        parser: Optional[ExpenseParser] = None,
        category_lookup: CategoryLookup = suggest_category,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utc_now,
        tz: Optional[tzinfo] = None,
        currency_symbol: str = "R$",
        week_days: int = 7,
    ):
        self._ledger = ledger
        self._transport = transport
        self._parser = parser or ExpenseParser()
        self._category_lookup = category_lookup
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self._tz = tz
        self._currency = currency_symbol
        self._week_days = week_days

        self._sessions: dict[str, SessionState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Handlers holding or waiting on each lock; the lock is dropped at zero
        self._lock_users: dict[str, int] = {}
        self._ledger_lock = asyncio.Lock()
        # Bumped by reset_sessions() so in-flight handlers cannot
        # resurrect a session that was dropped while they were running.
        self._epoch = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def session_for(self, conversation_id: str) -> Optional[SessionState]:
        """Current session of a conversation (None = Idle)."""
        return self._sessions.get(conversation_id)

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    @property
    def tracked_conversations(self) -> int:
        """Conversations with a handler currently running or queued."""
        return len(self._locks)

    async def handle_message(self, message: InboundMessage) -> None:
        """
        Process one inbound message.

        Never raises: every failure is logged and turned into a reply.
        """
        if message.is_outgoing_echo:
            return

        text = message.text.strip()
        if not text:
            return

        conversation_id = message.conversation_id
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                epoch = self._epoch
                try:
                    await self._dispatch(conversation_id, text, epoch)
                except Exception:
                    logger.exception("message_handling_failed", conversation_id=conversation_id)
                    self._sessions.pop(conversation_id, None)
                    await self._reply(conversation_id, messages.STATE_LOST)
        finally:
            self._release_lock(conversation_id)

    async def reset_sessions(self, reason: str = "transport_reset") -> int:
        """
        Drop every session (transport reconnect or logout).

        In-flight confirmations are discarded.

        Returns:
            Number of sessions dropped
        """
        dropped = len(self._sessions)
        self._sessions.clear()
        self._epoch += 1
        await self._audit_logger.log_sessions_reset(dropped=dropped, reason=reason)
        return dropped

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    async def _dispatch(self, conversation_id: str, text: str, epoch: int) -> None:
        session = self._sessions.get(conversation_id)
        if session is not None:
            await self._handle_pending(conversation_id, session, text, epoch)
            return

        command = COMMANDS.get(text.lower())
        if command == "help":
            await self._reply(conversation_id, messages.HELP)
        elif command == "total":
            await self._command_total(conversation_id)
        elif command == "today":
            await self._command_today(conversation_id)
        elif command == "week":
            await self._command_week(conversation_id)
        elif command == "report":
            await self._command_report(conversation_id)
        elif command == "clear":
            await self._command_clear(conversation_id, epoch)
        elif self._parser.is_expense_attempt(text):
            await self._start_expense(conversation_id, text, epoch)
        # Anything else is not for us: no reply.

    async def _handle_pending(
        self,
        conversation_id: str,
        session: SessionState,
        text: str,
        epoch: int,
    ) -> None:
        answer = classify_answer(text)
        try:
            if isinstance(session, AwaitingExpenseConfirmation):
                await self._resolve_expense(conversation_id, session, answer, epoch)
            elif isinstance(session, AwaitingCategoryConfirmation):
                await self._resolve_category(conversation_id, session, answer)
            elif isinstance(session, AwaitingClearConfirmation):
                await self._resolve_clear(conversation_id, answer)
            else:
                raise StateInconsistencyError(
                    f"Unrecognized session type: {type(session).__name__}"
                )
        except StateInconsistencyError as e:
            logger.error(
                "session_inconsistent",
                conversation_id=conversation_id,
                error=str(e),
            )
            self._sessions.pop(conversation_id, None)
            await self._audit_logger.log(
                AuditEventBuilder.state_inconsistency(conversation_id, str(e))
            )
            await self._reply(conversation_id, messages.STATE_LOST)

    # -------------------------------------------------------------------------
    # Expense entry
    # -------------------------------------------------------------------------

    async def _start_expense(self, conversation_id: str, text: str, epoch: int) -> None:
        try:
            parsed = self._parser.require(text)
        except ParseError as e:
            await self._audit_logger.log(
                AuditEventBuilder.expense_rejected_format(conversation_id, str(e))
            )
            await self._reply(conversation_id, messages.INVALID_FORMAT)
            return

        suggestion = self._category_lookup(parsed.description)
        if not self._set_session(
            conversation_id,
            AwaitingExpenseConfirmation(
                value=parsed.value,
                description=parsed.description,
                suggested_category=suggestion,
            ),
            epoch,
        ):
            return

        await self._audit_logger.log(
            AuditEventBuilder.expense_proposed(
                conversation_id=conversation_id,
                value=str(parsed.value),
                description=parsed.description,
                suggested_category=suggestion,
            )
        )
        prompt = messages.expense_confirmation(
            parsed.value,
            parsed.description,
            engine.local_date(self._clock(), self._tz),
            self._currency,
        )
        if not await self._reply(conversation_id, prompt):
            # The user never saw the question, so there is nothing to answer.
            self._sessions.pop(conversation_id, None)

    async def _resolve_expense(
        self,
        conversation_id: str,
        session: AwaitingExpenseConfirmation,
        answer: Answer,
        epoch: int,
    ) -> None:
        if answer is Answer.INVALID:
            await self._reply(conversation_id, messages.INVALID_EXPENSE_ANSWER)
            return

        self._sessions.pop(conversation_id, None)

        if answer is Answer.NO:
            await self._audit_logger.log(
                AuditEventBuilder.expense_cancelled(conversation_id)
            )
            await self._reply(conversation_id, messages.EXPENSE_CANCELLED)
            return

        try:
            record: ExpenseRecord = await self._with_ledger(
                self._ledger.record_expense,
                session.value,
                session.description,
                self._clock(),
            )
        except LedgerIOError as e:
            logger.error("expense_save_failed", conversation_id=conversation_id, error=str(e))
            await self._audit_logger.log_storage_error(conversation_id, "append", str(e))
            await self._reply(conversation_id, messages.SAVE_FAILED)
            return

        await self._audit_logger.log(
            AuditEventBuilder.expense_saved(
                conversation_id=conversation_id,
                record_id=record.record_id,
                value=str(record.value),
                description=record.description,
            )
        )

        commit = PendingCommit.from_record(record, session.suggested_category)
        if not self._set_session(
            conversation_id,
            AwaitingCategoryConfirmation(commit=commit),
            epoch,
        ):
            await self._reply(
                conversation_id,
                messages.saved_without_category(record.value, record.description, self._currency),
            )
            return

        prompt = messages.category_prompt(
            record.value,
            record.description,
            session.suggested_category,
            self._currency,
        )
        try:
            await self._transport.send_text(conversation_id, prompt)
        except TransportError as e:
            # The expense stays committed as "Other"; no rollback.
            self._sessions.pop(conversation_id, None)
            logger.error(
                "category_prompt_failed",
                conversation_id=conversation_id,
                record_id=record.record_id,
                error=str(e),
            )
            await self._audit_logger.log_notification_failed(conversation_id, str(e))
            await self._reply(
                conversation_id,
                messages.saved_without_category(record.value, record.description, self._currency),
            )

    async def _resolve_category(
        self,
        conversation_id: str,
        session: AwaitingCategoryConfirmation,
        answer: Answer,
    ) -> None:
        if answer is Answer.INVALID:
            await self._reply(conversation_id, messages.INVALID_CATEGORY_ANSWER)
            return

        self._sessions.pop(conversation_id, None)
        commit = session.commit

        if answer is Answer.NO:
            await self._audit_logger.log(
                AuditEventBuilder.category_kept(conversation_id, commit.record_id)
            )
            await self._reply(conversation_id, messages.CATEGORY_KEPT)
            return

        try:
            updated = await self._with_ledger(self._ledger.apply_category, commit)
        except LedgerIOError as e:
            logger.error("category_save_failed", conversation_id=conversation_id, error=str(e))
            await self._audit_logger.log_storage_error(conversation_id, "rewrite", str(e))
            await self._reply(conversation_id, messages.CATEGORY_SAVE_FAILED)
            return

        if updated:
            await self._audit_logger.log(
                AuditEventBuilder.category_updated(
                    conversation_id, commit.record_id, commit.suggested_category
                )
            )
            await self._reply(conversation_id, messages.category_updated(commit.suggested_category))
        else:
            await self._audit_logger.log(
                AuditEventBuilder.category_not_found(conversation_id, commit.record_id)
            )
            await self._reply(conversation_id, messages.CATEGORY_NOT_FOUND)

    # -------------------------------------------------------------------------
    # Ledger clearing
    # -------------------------------------------------------------------------

    async def _command_clear(self, conversation_id: str, epoch: int) -> None:
        records = await self._read_records(conversation_id)
        if records is None:
            return
        if not records:
            await self._reply(conversation_id, messages.NOTHING_TO_CLEAR)
            return

        if not self._set_session(conversation_id, AwaitingClearConfirmation(), epoch):
            return
        if not await self._reply(conversation_id, messages.CLEAR_PROMPT):
            self._sessions.pop(conversation_id, None)

    async def _resolve_clear(self, conversation_id: str, answer: Answer) -> None:
        if answer is Answer.INVALID:
            await self._reply(conversation_id, messages.INVALID_CLEAR_ANSWER)
            return

        self._sessions.pop(conversation_id, None)

        if answer is Answer.NO:
            await self._audit_logger.log(AuditEventBuilder.clear_cancelled(conversation_id))
            await self._reply(conversation_id, messages.CLEAR_CANCELLED)
            return

        try:
            outcome = await self._with_ledger(self._ledger.clear)
        except LedgerIOError as e:
            logger.error("ledger_clear_failed", conversation_id=conversation_id, error=str(e))
            await self._audit_logger.log_storage_error(conversation_id, "clear", str(e))
            await self._reply(conversation_id, messages.CLEAR_FAILED)
            return

        await self._audit_logger.log(
            AuditEventBuilder.ledger_cleared(conversation_id, outcome.value)
        )
        if outcome is ClearOutcome.REMOVED:
            await self._reply(conversation_id, messages.CLEAR_DONE)
        else:
            await self._reply(conversation_id, messages.CLEAR_ALREADY_EMPTY)

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    async def _command_total(self, conversation_id: str) -> None:
        records = await self._read_records(conversation_id)
        if records is None:
            return
        if not records:
            await self._reply(conversation_id, messages.NO_EXPENSES)
            return

        await self._audit_report(conversation_id, "total", len(records))
        await self._reply(conversation_id, render_total(engine.total(records), self._currency))

    async def _command_today(self, conversation_id: str) -> None:
        records = await self._read_records(conversation_id)
        if records is None:
            return
        if not records:
            await self._reply(conversation_id, messages.NO_EXPENSES)
            return

        now = self._clock()
        todays = engine.today(records, now, self._tz)
        if not todays:
            await self._reply(conversation_id, messages.NO_EXPENSES_TODAY)
            return

        await self._audit_report(conversation_id, "today", len(todays))
        await self._reply(
            conversation_id,
            render_today(todays, engine.local_date(now, self._tz), self._currency),
        )

    async def _command_week(self, conversation_id: str) -> None:
        records = await self._read_records(conversation_id)
        if records is None:
            return
        if not records:
            await self._reply(conversation_id, messages.NO_EXPENSES)
            return

        report = engine.last_n_days(records, self._clock(), self._week_days, self._tz)
        if report.is_empty:
            await self._reply(
                conversation_id,
                messages.NO_EXPENSES_PERIOD.format(days=self._week_days),
            )
            return

        await self._audit_report(
            conversation_id, "week", sum(len(day.records) for day in report.days)
        )
        await self._reply(conversation_id, render_period(report, self._currency))

    async def _command_report(self, conversation_id: str) -> None:
        records = await self._read_records(conversation_id)
        if records is None:
            return
        if not records:
            await self._reply(conversation_id, messages.NO_EXPENSES)
            return

        report = engine.full_report(records, self._tz)
        await self._audit_report(conversation_id, "report", len(records))
        await self._reply(conversation_id, render_full_report(report, self._currency))

    async def _audit_report(self, conversation_id: str, report: str, count: int) -> None:
        await self._audit_logger.log(
            AuditEventBuilder.report_generated(conversation_id, report, count)
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _release_lock(self, conversation_id: str) -> None:
        remaining = self._lock_users[conversation_id] - 1
        if remaining:
            self._lock_users[conversation_id] = remaining
        else:
            del self._lock_users[conversation_id]
            del self._locks[conversation_id]

    def _set_session(self, conversation_id: str, state: SessionState, epoch: int) -> bool:
        """Store a session unless the table was reset since `epoch`."""
        if epoch != self._epoch:
            logger.info("session_dropped_after_reset", conversation_id=conversation_id)
            return False
        self._sessions[conversation_id] = state
        return True

    async def _with_ledger(self, fn: Callable[..., T], *args) -> T:
        """Run a blocking ledger call off the event loop, one at a time."""
        async with self._ledger_lock:
            return await asyncio.to_thread(fn, *args)

    async def _read_records(self, conversation_id: str) -> Optional[list[ExpenseRecord]]:
        """Snapshot of the ledger, or None after replying with an apology."""
        try:
            return await self._with_ledger(self._ledger.records)
        except LedgerIOError as e:
            logger.error("ledger_read_failed", conversation_id=conversation_id, error=str(e))
            await self._audit_logger.log_storage_error(conversation_id, "read", str(e))
            await self._reply(conversation_id, messages.READ_FAILED)
            return None

    async def _reply(self, conversation_id: str, text: str) -> bool:
        """Send a reply; delivery failures are logged, never raised."""
        try:
            await self._transport.send_text(conversation_id, text)
        except TransportError as e:
            logger.error("reply_failed", conversation_id=conversation_id, error=str(e))
            await self._audit_logger.log_notification_failed(conversation_id, str(e))
            return False
        return True
