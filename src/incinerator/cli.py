from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from incinerator.config import resolve_settings
from incinerator.exceptions import IncineratorError
from incinerator.pipeline import IncinerationSummary, run_incinerator
from incinerator.runtime.json_io import write_json_path

app = typer.Typer(add_completion=False)


def _render_summary(summary: IncinerationSummary) -> list[str]:
    lines = [
        f"Incinerated {len(summary.incinerated)} of {summary.registered} functions "
        f"({summary.reports_received} reports received)."
    ]
    for site in summary.incinerated:
        lines.append(f"- {site.label} [{site.kind.value}]")
    pruned_total = sum(len(names) for names in summary.pruned.values())
    if pruned_total:
        lines.append(f"Pruned {pruned_total} unused bindings:")
        for path, names in summary.pruned.items():
            lines.append(f"- {path}: {', '.join(names)}")
    if summary.skipped:
        lines.append(f"Skipped {len(summary.skipped)} files that are not source.")
    return lines


@app.command()
def main(
    root: Path = typer.Argument(Path("."), help="File or directory to incinerate."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to incinerator.toml."),
    host: Optional[str] = typer.Option(None, "--host", help="Host probes report to."),
    port: Optional[int] = typer.Option(
        None, "--port", min=0, max=65535, help="Coordinator port; overrides PORT."
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON summary here."),
) -> None:
    """Instrument ROOT, watch which functions run, and empty the ones that never do."""
    root = root.resolve()
    settings = resolve_settings(root, config_path=config, host=host, port=port)
    try:
        summary = asyncio.run(run_incinerator(root, settings))
    except IncineratorError as exc:
        typer.echo(f"incinerator: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    for line in _render_summary(summary):
        typer.echo(line)
    if report is not None:
        write_json_path(report, summary.to_dto().model_dump())
        typer.echo(f"Wrote incineration report: {report}")


if __name__ == "__main__":  # pragma: no cover
    app()
