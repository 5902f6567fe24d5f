from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

import libcst as cst

from incinerator.config import DEFAULT_EXCLUDE_DIRS, DEFAULT_SUFFIXES
from incinerator.exceptions import SourceTraversalError
from incinerator.rewrite.model import SourceFile


@dataclass(frozen=True)
class ParseFailureWitness:
    path: Path
    error: str


@dataclass
class WalkResult:
    files: list[SourceFile] = field(default_factory=list)
    skipped: list[ParseFailureWitness] = field(default_factory=list)


def _matches_suffix(path: Path, suffixes: tuple[str, ...]) -> bool:
    if not suffixes:
        return True
    return path.suffix in suffixes


def iter_candidate_paths(
    root: Path,
    *,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    suffixes: tuple[str, ...] = DEFAULT_SUFFIXES,
) -> list[Path]:
    """Expand ``root`` to candidate files, pruning excluded directories early."""
    if not root.exists():
        raise SourceTraversalError(root, "no such file or directory")
    if not root.is_dir():
        return [root]
    excluded = set(exclude_dirs)
    out: list[Path] = []

    def _raise(exc: OSError) -> None:
        raise SourceTraversalError(Path(exc.filename or root), exc.strerror or str(exc))

    for current, dirnames, filenames in os.walk(root, topdown=True, onerror=_raise):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in sorted(filenames):
            candidate = Path(current) / filename
            if not candidate.is_file():
                continue
            if not _matches_suffix(candidate, suffixes):
                continue
            out.append(candidate)
    return out


def parse_source_file(path: Path) -> SourceFile | ParseFailureWitness:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SourceTraversalError(path, exc.strerror or str(exc)) from exc
    try:
        module = cst.parse_module(raw)
    except cst.ParserSyntaxError as exc:
        return ParseFailureWitness(path=path, error=f"syntax error: {exc.message}")
    except SyntaxError as exc:
        # Raised while detecting the encoding declaration.
        return ParseFailureWitness(path=path, error=f"syntax error: {exc.msg}")
    except UnicodeDecodeError as exc:
        return ParseFailureWitness(path=path, error=f"undecodable: {exc.reason}")
    return SourceFile(path=path, module=module, disk_bytes=raw)


def collect_source_files(
    root: Path,
    *,
    exclude_dirs: Iterable[str] = DEFAULT_EXCLUDE_DIRS,
    suffixes: tuple[str, ...] = DEFAULT_SUFFIXES,
) -> WalkResult:
    """Parse every candidate under ``root``.

    Files that do not parse are not source and only leave a witness behind;
    any other failure raises :class:`SourceTraversalError`.
    """
    result = WalkResult()
    for path in iter_candidate_paths(root, exclude_dirs=exclude_dirs, suffixes=suffixes):
        parsed = parse_source_file(path)
        if isinstance(parsed, ParseFailureWitness):
            result.skipped.append(parsed)
        else:
            result.files.append(parsed)
    return result
