"""
Console Transport

Talks to a single conversation over stdin/stdout. Handy for trying the
bot locally; every line typed is one inbound message.
"""

import asyncio
import sys
from typing import AsyncIterator, Optional, TextIO

from expense_agent.services.transport.interface import (
    InboundMessage,
    TransportError,
    TransportInterface,
)


class ConsoleTransport(TransportInterface):
    """stdin/stdout transport bound to one conversation id."""

    def __init__(
        self,
        conversation_id: str = "console",
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
    ):
        self._conversation_id = conversation_id
        self._input = input_stream or sys.stdin
        self._output = output_stream or sys.stdout
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def receive(self) -> AsyncIterator[InboundMessage]:
        while self._connected:
            line = await asyncio.to_thread(self._input.readline)
            if not line:
                # EOF ends the stream
                return
            yield InboundMessage(
                conversation_id=self._conversation_id,
                text=line.rstrip("\n"),
            )

    async def send_text(self, conversation_id: str, text: str) -> None:
        if not self._connected:
            raise TransportError("console transport is not connected")
        try:
            self._output.write(f"[{conversation_id}] {text}\n\n")
            self._output.flush()
        except (OSError, ValueError) as e:
            raise TransportError(f"Could not write to console: {e}") from e

    async def close(self) -> None:
        self._connected = False
