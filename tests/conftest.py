from __future__ import annotations

import builtins
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import libcst as cst
import pytest

from incinerator.channel import SHARED_CHANNEL_ATTR
from incinerator.rewrite.model import SourceFile
from tests.source_helpers import dedent_source


@pytest.fixture
def make_source_file(tmp_path: Path):
    def _make(text: str, *, name: str = "sample.py") -> SourceFile:
        path = tmp_path / name
        source = dedent_source(text)
        path.write_text(source, encoding="utf-8")
        return SourceFile(
            path=path,
            module=cst.parse_module(source),
            disk_bytes=source.encode("utf-8"),
        )

    return _make


@pytest.fixture
def shared_channel_cleanup():
    builtins.__dict__.pop(SHARED_CHANNEL_ATTR, None)
    yield
    channel = builtins.__dict__.pop(SHARED_CHANNEL_ATTR, None)
    if channel is not None:
        channel.close(timeout=1.0)
