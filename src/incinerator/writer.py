from __future__ import annotations

import asyncio
from typing import Iterable

from incinerator.exceptions import SourceWriteError
from incinerator.rewrite.model import SourceFile


def write_source(source_file: SourceFile) -> bool:
    """Write the file's module back in its own encoding; False when unchanged."""
    data = source_file.module.bytes
    if data == source_file.disk_bytes:
        return False
    try:
        source_file.path.write_bytes(data)
    except OSError as exc:
        raise SourceWriteError(source_file.path, exc.strerror or str(exc)) from exc
    source_file.disk_bytes = data
    return True


async def write_sources(files: Iterable[SourceFile]) -> int:
    """Write all files concurrently; files share no state, so order is free."""
    results = await asyncio.gather(
        *(asyncio.to_thread(write_source, source_file) for source_file in files)
    )
    return sum(1 for written in results if written)
