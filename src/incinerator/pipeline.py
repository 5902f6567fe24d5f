from __future__ import annotations

from dataclasses import dataclass, field
from itertools import cycle
from pathlib import Path
from typing import Callable, Iterable

import typer

from incinerator.config import Settings
from incinerator.coordinator import ReportingCoordinator
from incinerator.gate import LineReader, read_stdin_line, wait_for_confirmation
from incinerator.rewrite.incinerate import incinerate
from incinerator.rewrite.instrument import instrument
from incinerator.rewrite.model import FunctionSite, IncinerationRun, SourceFile
from incinerator.rewrite.prune import prune_unused_bindings
from incinerator.schema import IncineratedSiteDTO, IncinerationReportDTO, SkippedFileDTO
from incinerator.walker import ParseFailureWitness, collect_source_files
from incinerator.writer import write_sources

Echo = Callable[..., None]

_BANNER_COLORS = (
    typer.colors.RED,
    typer.colors.YELLOW,
    typer.colors.GREEN,
    typer.colors.CYAN,
    typer.colors.BLUE,
    typer.colors.MAGENTA,
)


def rainbow(text: str) -> str:
    colors = cycle(_BANNER_COLORS)
    return "".join(
        char if char.isspace() else typer.style(char, fg=next(colors), bold=True)
        for char in text
    )


@dataclass(frozen=True)
class IncinerationSummary:
    root: Path
    files: tuple[Path, ...]
    registered: int
    reports_received: int = 0
    incinerated: tuple[FunctionSite, ...] = ()
    pruned: dict[Path, tuple[str, ...]] = field(default_factory=dict)
    skipped: tuple[ParseFailureWitness, ...] = ()

    def to_dto(self) -> IncinerationReportDTO:
        return IncinerationReportDTO(
            root=str(self.root),
            files=[str(path) for path in self.files],
            registered=self.registered,
            reports_received=self.reports_received,
            incinerated=[
                IncineratedSiteDTO(
                    tag=site.tag,
                    path=str(site.path),
                    kind=site.kind.value,
                    name=site.name,
                    probed=site.probed,
                )
                for site in self.incinerated
            ],
            pruned={str(path): list(names) for path, names in self.pruned.items()},
            skipped=[
                SkippedFileDTO(path=str(witness.path), error=witness.error)
                for witness in self.skipped
            ],
        )


def prune_sources(files: Iterable[SourceFile]) -> dict[Path, tuple[str, ...]]:
    pruned: dict[Path, tuple[str, ...]] = {}
    for source_file in files:
        result = prune_unused_bindings(source_file.module)
        source_file.module = result.module
        if result.removed:
            pruned[source_file.path] = result.removed
    return pruned


async def run_incinerator(
    root: Path,
    settings: Settings | None = None,
    *,
    read_line: LineReader = read_stdin_line,
    echo: Echo = typer.echo,
) -> IncinerationSummary:
    """Instrument ``root``, observe reports until confirmed, then incinerate.

    Source files are rewritten twice: once with probes, once emptied and
    pruned. The coordinator stays up from before the first write until after
    the second one.
    """
    settings = settings or Settings()
    walk = collect_source_files(
        root,
        exclude_dirs=settings.exclude_dirs,
        suffixes=settings.suffixes,
    )
    run = IncinerationRun(files=walk.files)
    echo(f"Found {len(run.files)} source files under {root}")

    coordinator = ReportingCoordinator(
        run.pending,
        host=settings.host,
        port=settings.port,
        on_report=lambda tag: echo(".", nl=False),
        on_connect=lambda: echo("Connected."),
    )
    async with coordinator:
        port = coordinator.bound_port
        instrument(run, host=settings.host, port=port)
        run.begin_observation()
        written = await write_sources(run.files)
        echo(
            f"Instrumented {len(run.registry)} functions across {written} files; "
            f"listening on ws://{settings.host}:{port}"
        )

        await wait_for_confirmation(read_line, echo=echo, trigger=settings.trigger)

        echo("")
        echo(rainbow("Incinerating!"))
        incinerated = incinerate(run)
        pruned = prune_sources(run.files)
        await write_sources(run.files)

    return IncinerationSummary(
        root=root,
        files=tuple(source_file.path for source_file in run.files),
        registered=len(run.registry),
        reports_received=coordinator.received,
        incinerated=tuple(incinerated),
        pruned=pruned,
        skipped=tuple(walk.skipped),
    )
