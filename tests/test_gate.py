from __future__ import annotations

import asyncio

import pytest

from incinerator.exceptions import ConfirmationAborted
from incinerator.gate import Confirmation, classify_confirmation, wait_for_confirmation


def _reader(lines: list[str | None]):
    pending = iter(lines)
    return lambda: next(pending)


def test_classify_confirmation() -> None:
    assert classify_confirmation("incinerate!\n") is Confirmation.EXACT
    assert classify_confirmation("  InCiNeRaTe!  ") is Confirmation.EXACT
    assert classify_confirmation("do it!") is Confirmation.LOOSE
    assert classify_confirmation("incinerate") is None
    assert classify_confirmation("burn!", trigger="burn!") is Confirmation.EXACT


def test_gate_ignores_other_input_until_trigger() -> None:
    messages: list[str] = []
    confirmation = asyncio.run(
        wait_for_confirmation(
            _reader(["maybe later\n", "", "INCINERATE!\n"]),
            echo=messages.append,
        )
    )
    assert confirmation is Confirmation.EXACT
    assert messages.count("Waiting for 'incinerate!'") == 3


def test_gate_accepts_loose_confirmation() -> None:
    messages: list[str] = []
    confirmation = asyncio.run(
        wait_for_confirmation(_reader(["yes!\n"]), echo=messages.append)
    )
    assert confirmation is Confirmation.LOOSE
    assert "Well, anyway I'll incinerate!" in messages


def test_gate_aborts_when_input_ends() -> None:
    with pytest.raises(ConfirmationAborted):
        asyncio.run(wait_for_confirmation(_reader([None]), echo=lambda *_: None))
