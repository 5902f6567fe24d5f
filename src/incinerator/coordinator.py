from __future__ import annotations

from types import TracebackType
from typing import Callable

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosedError

from incinerator.config import DEFAULT_HOST
from incinerator.rewrite.model import PendingSet
from incinerator.runtime.env_policy import DEFAULT_PORT


def _noop_report(tag: int) -> None:
    return None


def _noop_connect() -> None:
    return None


def parse_report(message: str | bytes) -> int | None:
    """Tag carried by a report frame, or None when the frame is not a number."""
    if isinstance(message, bytes):
        try:
            message = message.decode("utf-8")
        except UnicodeDecodeError:
            return None
    text = message.strip()
    if not text:
        return None
    try:
        return int(text, 10)
    except ValueError:
        return None


class ReportingCoordinator:
    """WebSocket listener that clears reported tags from the pending set.

    Runs on the caller's event loop, which is what keeps it the only writer of
    the pending set while the pipeline waits for confirmation.
    """

    def __init__(
        self,
        pending: PendingSet,
        *,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        on_report: Callable[[int], None] = _noop_report,
        on_connect: Callable[[], None] = _noop_connect,
    ) -> None:
        self.pending = pending
        self.host = host
        self.port = port
        self.on_report = on_report
        self.on_connect = on_connect
        self.received = 0
        self._server: Server | None = None

    @property
    def bound_port(self) -> int:
        if self._server is None:
            raise RuntimeError("coordinator is not listening")
        for sock in self._server.sockets:
            return int(sock.getsockname()[1])
        return self.port

    def receive(self, message: str | bytes) -> bool:
        tag = parse_report(message)
        if tag is None:
            return False
        self.received += 1
        self.on_report(tag)
        return self.pending.discard(tag)

    async def _handle(self, connection: ServerConnection) -> None:
        self.on_connect()
        try:
            async for message in connection:
                self.receive(message)
        except ConnectionClosedError:
            # Instrumented programs often exit without a closing handshake.
            return

    async def start(self) -> None:
        if self._server is not None:
            return
        self._server = await serve(self._handle, self.host, self.port)

    async def close(self) -> None:
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        await server.wait_closed()

    async def __aenter__(self) -> ReportingCoordinator:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
