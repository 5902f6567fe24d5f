"""Client side of the reporting channel, imported by probes at runtime.

Every probe in a process shares one :class:`ReportChannel`, kept on
``builtins`` so that it survives module reloads. A tag is reported at most
once per process. Tags reported before the connection is open are queued and
flushed by the thread that opens it.
"""

from __future__ import annotations

import atexit
import builtins
import threading
from typing import Callable, Protocol

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect

SHARED_CHANNEL_ATTR = "__incinerator__"
DEFAULT_SETTLE_TIMEOUT_SECONDS = 2.0

_shared_lock = threading.Lock()


class _Connection(Protocol):
    def send(self, message: str) -> None: ...

    def close(self) -> None: ...


Connector = Callable[[str], _Connection]


class ReportChannel:
    def __init__(self, uri: str, *, connector: Connector | None = None) -> None:
        self.uri = uri
        self._connector: Connector = connector or connect
        self._lock = threading.Lock()
        self._connection: _Connection | None = None
        self._queued: list[int] = []
        self._reported: set[int] = set()
        self._settled = threading.Event()
        self._thread: threading.Thread | None = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def queued(self) -> tuple[int, ...]:
        return tuple(self._queued)

    def open(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._open,
            name="incinerator-channel",
            daemon=True,
        )
        self._thread.start()

    def _open(self) -> None:
        try:
            connection = self._connector(self.uri)
        except (OSError, WebSocketException):
            # Nobody is listening; queued tags stay unreported, which is
            # exactly what the coordinator would conclude anyway.
            self._settled.set()
            return
        with self._lock:
            if self._closed:
                connection.close()
            else:
                self._connection = connection
                queued, self._queued = self._queued, []
                for tag in queued:
                    self._send(tag)
        self._settled.set()

    def _send(self, tag: int) -> None:
        assert self._connection is not None
        try:
            self._connection.send(str(tag))
        except ConnectionClosed:
            # The coordinator shut down; the observation window is over.
            self._connection = None
            self._closed = True

    def report(self, tag: int) -> None:
        with self._lock:
            if tag in self._reported or self._closed:
                return
            self._reported.add(tag)
            if self._connection is None:
                self._queued.append(tag)
                return
            self._send(tag)

    def wait_settled(self, timeout: float | None = None) -> bool:
        return self._settled.wait(timeout)

    def close(self, timeout: float = DEFAULT_SETTLE_TIMEOUT_SECONDS) -> None:
        if self._thread is not None:
            self._settled.wait(timeout)
        with self._lock:
            self._closed = True
            connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()


def shared_channel(host: str, port: int) -> ReportChannel:
    """Process-wide channel, created and opened on first use."""
    channel = getattr(builtins, SHARED_CHANNEL_ATTR, None)
    if channel is not None:
        return channel
    with _shared_lock:
        channel = getattr(builtins, SHARED_CHANNEL_ATTR, None)
        if channel is None:
            channel = ReportChannel(f"ws://{host}:{port}")
            setattr(builtins, SHARED_CHANNEL_ATTR, channel)
            channel.open()
            atexit.register(channel.close)
    return channel
