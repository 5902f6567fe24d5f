from __future__ import annotations

import asyncio

import pytest
from websockets.asyncio.client import connect

from incinerator.coordinator import ReportingCoordinator, parse_report
from incinerator.rewrite.model import PendingSet


def test_parse_report() -> None:
    assert parse_report("12") == 12
    assert parse_report(b" 7\n") == 7
    assert parse_report("seven") is None
    assert parse_report("") is None
    assert parse_report(b"\xff") is None


def test_receive_tolerates_duplicates_and_unknown_tags() -> None:
    pending = PendingSet([0, 1])
    seen: list[int] = []
    coordinator = ReportingCoordinator(pending, on_report=seen.append)

    assert coordinator.receive("1") is True
    assert coordinator.receive("1") is False
    assert coordinator.receive("99") is False
    assert coordinator.receive("oops") is False

    assert list(pending) == [0]
    assert seen == [1, 1, 99]
    assert coordinator.received == 3


def test_reports_over_websocket_clear_pending_tags() -> None:
    pending = PendingSet([0, 1, 2])
    connections: list[str] = []

    async def scenario() -> int:
        async with ReportingCoordinator(
            pending,
            host="127.0.0.1",
            port=0,
            on_connect=lambda: connections.append("connected"),
        ) as coordinator:
            async with connect(f"ws://127.0.0.1:{coordinator.bound_port}") as websocket:
                for message in ("2", "2", "not-a-number", "40"):
                    await websocket.send(message)
            for _ in range(500):
                if coordinator.received >= 3:
                    break
                await asyncio.sleep(0.01)
            return coordinator.received

    received = asyncio.run(scenario())

    assert received == 3
    assert list(pending) == [0, 1]
    assert connections == ["connected"]


def test_pending_set_never_revives_reported_tags() -> None:
    pending = PendingSet()
    pending.track([0, 1])
    assert pending.discard(0) is True
    with pytest.raises(ValueError):
        pending.track([0])
    assert list(pending) == [1]
