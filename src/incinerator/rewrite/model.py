from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Iterable, Iterator, TypeAlias

import libcst as cst

FunctionNode: TypeAlias = cst.FunctionDef | cst.Lambda


class FunctionKind(StrEnum):
    DECLARATION = "declaration"
    METHOD = "method"
    EXPRESSION = "expression"
    OTHER = "other"


@dataclass(eq=False)
class SourceFile:
    path: Path
    module: cst.Module
    # Last bytes known to be on disk; lets the writer skip untouched files.
    disk_bytes: bytes = b""


@dataclass(frozen=True, eq=False)
class FunctionSite:
    """One function construct of an instrumented module.

    ``node`` is the exact node object living in the file's current module, so
    later phases locate the construct by identity rather than by position.
    """

    tag: int
    path: Path
    kind: FunctionKind
    node: FunctionNode
    name: str | None = None
    probed: bool = False

    @property
    def label(self) -> str:
        return f"{self.path}::{self.name or '<lambda>'}"


class TagRegistry:
    """Dense ``tag -> FunctionSite`` mapping for a single run."""

    def __init__(self) -> None:
        self._next_tag = 0
        self._sites: dict[int, FunctionSite] = {}

    def allocate(self) -> int:
        tag = self._next_tag
        self._next_tag += 1
        return tag

    def register(self, site: FunctionSite) -> None:
        if site.tag >= self._next_tag:
            raise ValueError(f"tag {site.tag} was never allocated")
        if site.tag in self._sites:
            raise ValueError(f"tag {site.tag} is already registered")
        self._sites[site.tag] = site

    def tags(self) -> list[int]:
        return sorted(self._sites)

    def sites(self) -> list[FunctionSite]:
        return [self._sites[tag] for tag in self.tags()]

    def __getitem__(self, tag: int) -> FunctionSite:
        return self._sites[tag]

    def __contains__(self, tag: object) -> bool:
        return tag in self._sites

    def __len__(self) -> int:
        return len(self._sites)


class PendingSet:
    """Tags that have not been reported yet; only ever shrinks once observed."""

    def __init__(self, tags: Iterable[int] = ()) -> None:
        self._tags: set[int] = set(tags)
        self._discarded: set[int] = set()

    @classmethod
    def from_registry(cls, registry: TagRegistry) -> PendingSet:
        return cls(registry.tags())

    def track(self, tags: Iterable[int]) -> None:
        incoming = set(tags)
        revived = incoming & self._discarded
        if revived:
            raise ValueError(f"reported tags cannot become pending again: {sorted(revived)}")
        self._tags |= incoming

    def discard(self, tag: int) -> bool:
        if tag not in self._tags:
            return False
        self._tags.remove(tag)
        self._discarded.add(tag)
        return True

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._tags))

    def __len__(self) -> int:
        return len(self._tags)


@dataclass
class IncinerationRun:
    """State owned by one run; every phase receives it explicitly."""

    files: list[SourceFile] = field(default_factory=list)
    registry: TagRegistry = field(default_factory=TagRegistry)
    pending: PendingSet = field(default_factory=PendingSet)

    def begin_observation(self) -> PendingSet:
        self.pending.track(self.registry.tags())
        return self.pending
