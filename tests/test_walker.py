from __future__ import annotations

from pathlib import Path

import pytest

from incinerator.exceptions import SourceTraversalError
from incinerator.walker import collect_source_files, iter_candidate_paths, parse_source_file


def _tree(root: Path) -> None:
    (root / "pkg").mkdir()
    (root / "pkg" / "mod.py").write_text("def f():\n    return 1\n")
    (root / "pkg" / "broken.py").write_text("def broken(\n")
    (root / "notes.txt").write_text("not python at all\n")
    (root / ".git").mkdir()
    (root / ".git" / "hook.py").write_text("x = 1\n")
    (root / "top.py").write_text("y = 2\n")


def test_collect_source_files_skips_unparseable_files(tmp_path: Path) -> None:
    _tree(tmp_path)
    result = collect_source_files(tmp_path)
    assert [source.path for source in result.files] == [
        tmp_path / "top.py",
        tmp_path / "pkg" / "mod.py",
    ]
    assert [witness.path for witness in result.skipped] == [tmp_path / "pkg" / "broken.py"]
    assert result.skipped[0].error.startswith("syntax error")


def test_excluded_directories_are_pruned(tmp_path: Path) -> None:
    _tree(tmp_path)
    paths = iter_candidate_paths(tmp_path, exclude_dirs=(), suffixes=(".py",))
    assert tmp_path / ".git" / "hook.py" in paths


def test_empty_suffix_list_tries_every_file(tmp_path: Path) -> None:
    _tree(tmp_path)
    result = collect_source_files(tmp_path, suffixes=())
    skipped = {witness.path for witness in result.skipped}
    assert tmp_path / "notes.txt" in skipped
    assert tmp_path / "pkg" / "broken.py" in skipped


def test_binary_content_is_not_source(tmp_path: Path) -> None:
    target = tmp_path / "blob.py"
    target.write_bytes(b"\x81\x82\x83garbage")
    result = collect_source_files(tmp_path)
    assert result.files == []
    assert [witness.path for witness in result.skipped] == [target]


def test_single_file_root(tmp_path: Path) -> None:
    target = tmp_path / "only.py"
    target.write_text("z = 3\n")
    result = collect_source_files(target)
    assert [source.path for source in result.files] == [target]
    assert result.files[0].disk_bytes == b"z = 3\n"


def test_missing_root_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(SourceTraversalError):
        collect_source_files(tmp_path / "missing")


def test_unreadable_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(SourceTraversalError) as excinfo:
        parse_source_file(tmp_path)
    assert excinfo.value.path == tmp_path
