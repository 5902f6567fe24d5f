from __future__ import annotations

import asyncio
import sys
from enum import StrEnum
from typing import Callable

import typer

from incinerator.config import DEFAULT_TRIGGER
from incinerator.exceptions import ConfirmationAborted

LOOSE_MARKER = "!"
LineReader = Callable[[], str | None]


class Confirmation(StrEnum):
    EXACT = "exact"
    LOOSE = "loose"


def classify_confirmation(line: str, *, trigger: str = DEFAULT_TRIGGER) -> Confirmation | None:
    if line.strip().lower() == trigger.lower():
        return Confirmation.EXACT
    if LOOSE_MARKER in line:
        return Confirmation.LOOSE
    return None


def read_stdin_line() -> str | None:
    line = sys.stdin.readline()
    return line if line else None


async def wait_for_confirmation(
    read_line: LineReader = read_stdin_line,
    *,
    echo: Callable[..., None] = typer.echo,
    trigger: str = DEFAULT_TRIGGER,
) -> Confirmation:
    """Block the caller until the operator confirms.

    Lines are read on a worker thread so the event loop keeps serving
    reports in the meantime.
    """
    while True:
        echo(f"Waiting for '{trigger}'")
        line = await asyncio.to_thread(read_line)
        if line is None:
            raise ConfirmationAborted("input closed before incineration was confirmed")
        confirmation = classify_confirmation(line, trigger=trigger)
        if confirmation is Confirmation.EXACT:
            return confirmation
        if confirmation is Confirmation.LOOSE:
            echo("Well, anyway I'll incinerate!")
            return confirmation
