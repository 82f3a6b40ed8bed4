"""CLI entrypoint for CTO Studio."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm
from rich.table import Table

from local_storage import JsonFileStore, StoreError
from orchestrator import (
    ConsentError,
    PreconditionError,
    ProgressEvent,
    RunFinished,
    StudioSession,
)
from pipeline import __version__
from pipeline.config import get_config
from schemas.pipeline_state import STAGE_LABELS, RunState, Stage
from schemas.stage_outputs import GeneratedFile

app = typer.Typer(
    name="cto-studio",
    help="Agreement-gated application generation from a validated project definition.",
    add_completion=False,
)
console = Console()

RISK_STYLES = {
    "low": "dim",
    "medium": "yellow",
    "high": "red",
    "critical": "bold red",
}

STATE_STYLES = {
    "complete": "green",
    "failed": "red",
    "cancelled": "yellow",
    "discarded": "dim",
}


@app.callback()
def main() -> None:
    """Configure logging once for every command."""
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, config.pipeline.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _session() -> StudioSession:
    config = get_config()
    return StudioSession(store=JsonFileStore(Path(config.pipeline.state_dir)), config=config)


def _load_agreement(session: StudioSession):
    try:
        agreement = session.evaluate(resume=True)
    except StoreError as e:
        rprint(f"[red]Could not read studio state: {e}[/red]")
        raise typer.Exit(1)
    if agreement is None:
        rprint("[yellow]No project data yet.[/yellow] Start with:")
        rprint("  cto-studio init project.json")
        raise typer.Exit(1)
    return agreement


def _print_gate(session: StudioSession) -> None:
    if session.can_proceed:
        rprint("[bold green]Agreement complete. Ready to generate.[/bold green]")
        return
    rprint("[bold yellow]Generation is blocked:[/bold yellow]")
    for reason in session.gate.blocking_reasons():
        rprint(f"  • {reason}")


def write_generated_files(files: list[GeneratedFile], output_dir: Path) -> list[Path]:
    """Write generated files under ``output_dir``.

    Generated paths are untrusted; any path that would land outside
    ``output_dir`` is rejected.

    Raises:
        ValueError: If a file path escapes the output directory
    """
    root = output_dir.resolve()
    targets: list[tuple[Path, str]] = []
    for generated in files:
        target = (root / generated.file_path.lstrip("/")).resolve()
        if target != root and root not in target.parents:
            raise ValueError(f"Refusing to write outside {root}: {generated.file_path}")
        targets.append((target, generated.content))

    written = []
    for target, content in targets:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        written.append(target)
    return written


@app.command()
def init(
    project_json: Path = typer.Argument(..., help="Path to the project definition JSON"),
) -> None:
    """Store project data and evaluate a fresh agreement.

    Examples:
        cto-studio init project.json
    """
    try:
        data = json.loads(project_json.read_text(encoding="utf-8"))
    except OSError as e:
        rprint(f"[red]Cannot read {project_json}: {e}[/red]")
        raise typer.Exit(1)
    except json.JSONDecodeError as e:
        rprint(f"[red]Invalid JSON in {project_json}: {e}[/red]")
        raise typer.Exit(1)

    session = _session()
    try:
        session.save_project(data)
    except ValidationError as e:
        rprint(f"[red]Invalid project data ({e.error_count()} error(s)):[/red]")
        for error in e.errors()[:5]:
            loc = ".".join(str(part) for part in error["loc"])
            rprint(f"  • {loc}: {error['msg']}")
        raise typer.Exit(1)

    agreement = session.evaluate(resume=False)
    if agreement is None:
        rprint("[yellow]Project data is empty; nothing to agree on yet.[/yellow]")
        raise typer.Exit(1)

    rprint(f"[bold blue]CTO Studio v{__version__}[/bold blue]")
    rprint(f"[green]Project stored.[/green] Readiness: {agreement.overall_readiness}%")
    rprint(f"[dim]{agreement.recommended_action}[/dim]")
    rprint()
    rprint("Review the agreement with:")
    rprint("  cto-studio agreement")


@app.command()
def agreement() -> None:
    """Show the Founder-Cofounder Agreement checklist."""
    session = _session()
    current = _load_agreement(session)

    table = Table(title="Critical Items (must complete)")
    table.add_column("", width=3)
    table.add_column("ID", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("Description", style="white")
    table.add_column("Evidence", style="dim")
    for item in current.critical_items:
        mark = "[green]✓[/green]" if item.is_complete else "[red]✗[/red]"
        table.add_row(mark, item.id, item.category, item.description, item.evidence_requirement)
    console.print(table)

    if current.optional_items:
        table = Table(title="Optional Items (can evolve post-launch)")
        table.add_column("", width=3)
        table.add_column("ID", style="cyan")
        table.add_column("Category", style="magenta")
        table.add_column("Description", style="white")
        for item in current.optional_items:
            mark = "[green]+[/green]" if item.is_included else "[dim]-[/dim]"
            table.add_row(mark, item.id, item.category, item.description)
        console.print(table)

    if current.risky_choices:
        table = Table(title="Risky Choices (need explicit consent)")
        table.add_column("", width=3)
        table.add_column("ID", style="cyan")
        table.add_column("Level")
        table.add_column("Risk", style="white")
        table.add_column("Mitigation", style="dim")
        for risk in current.risky_choices:
            mark = "[green]✓[/green]" if risk.consent_granted else "[red]✗[/red]"
            style = RISK_STYLES.get(risk.risk_level.value, "white")
            table.add_row(
                mark,
                risk.id,
                f"[{style}]{risk.risk_level.value}[/{style}]",
                risk.description,
                risk.mitigation,
            )
        console.print(table)

    rprint()
    rprint(f"Readiness: {current.overall_readiness}%  [dim]{current.recommended_action}[/dim]")
    _print_gate(session)


@app.command()
def toggle(item_id: str = typer.Argument(..., help="Critical item ID")) -> None:
    """Mark a critical item complete (or incomplete again)."""
    session = _session()
    _load_agreement(session)
    try:
        session.toggle_critical(item_id)
    except ConsentError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except StoreError as e:
        rprint(f"[red]Could not save agreement: {e}[/red]")
        raise typer.Exit(1)

    item = next(i for i in session.agreement.critical_items if i.id == item_id)
    state = "[green]complete[/green]" if item.is_complete else "[yellow]incomplete[/yellow]"
    rprint(f"{item_id}: {state}")
    _print_gate(session)


@app.command()
def include(item_id: str = typer.Argument(..., help="Optional item ID")) -> None:
    """Include (or exclude) an optional item in the MVP."""
    session = _session()
    _load_agreement(session)
    try:
        included = session.toggle_optional(item_id)
    except ConsentError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except StoreError as e:
        rprint(f"[red]Could not save agreement: {e}[/red]")
        raise typer.Exit(1)

    rprint(f"{item_id}: {'[green]included[/green]' if included else '[dim]deferred[/dim]'}")


@app.command()
def consent(
    risk_ids: Optional[list[str]] = typer.Argument(None, help="Risky choice IDs to accept"),
    all_risks: bool = typer.Option(False, "--all", help="Accept every pending risky choice"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Give explicit consent to risky choices.

    Examples:
        cto-studio consent vendor-lock-in
        cto-studio consent --all
    """
    session = _session()
    current = _load_agreement(session)

    if all_risks:
        targets = current.pending_risks()
    else:
        wanted = set(risk_ids or [])
        targets = [r for r in current.risky_choices if r.id in wanted]
        unknown = wanted - {r.id for r in targets}
        if unknown:
            rprint(f"[red]Unknown risky choices: {', '.join(sorted(unknown))}[/red]")
            raise typer.Exit(1)

    if not targets:
        rprint("[dim]Nothing to consent to.[/dim]")
        return

    rprint("[bold]By continuing you accept the following:[/bold]")
    for risk in targets:
        style = RISK_STYLES.get(risk.risk_level.value, "white")
        rprint(f"  [{style}]{risk.id}[/{style}] {risk.consent_language or risk.description}")
    rprint()

    if not yes and not Confirm.ask("I understand and accept these risks"):
        rprint("[yellow]No consent given.[/yellow]")
        raise typer.Exit(1)

    try:
        session.grant_consent(risk.id for risk in targets)
    except ConsentError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except StoreError as e:
        rprint(f"[red]Could not save agreement: {e}[/red]")
        raise typer.Exit(1)

    rprint(f"[green]Consent recorded for {len(targets)} choice(s).[/green]")
    _print_gate(session)


@app.command()
def generate(
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the generated files to this directory",
    ),
) -> None:
    """Run the six generation stages under the current agreement.

    Examples:
        cto-studio generate
        cto-studio generate --output ./my-app
    """
    session = _session()
    _load_agreement(session)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task("Starting", total=100)

        def on_event(event: ProgressEvent | RunFinished) -> None:
            if isinstance(event, ProgressEvent):
                label = STAGE_LABELS[Stage(event.stage_name)] if event.stage_name else "Done"
                progress.update(task, completed=event.percent, description=label)

        unsubscribe = session.reporter.subscribe(on_event)
        try:
            run = asyncio.run(_generate(session))
        except PreconditionError as e:
            progress.stop()
            rprint(f"[red]{e.reason}[/red]")
            for reason in e.blocking:
                rprint(f"  • {reason}")
            raise typer.Exit(1)
        except (ConnectionError, ValueError) as e:
            progress.stop()
            rprint(f"[red]Backend unavailable: {e}[/red]")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            progress.stop()
            rprint("\n[yellow]Interrupted[/yellow]")
            raise typer.Exit(130)
        finally:
            unsubscribe()

    style = STATE_STYLES.get(run.state.value, "white")
    rprint(f"Run {run.run_id}: [{style}]{run.state.value}[/{style}]")

    if run.state != RunState.COMPLETE:
        if run.error:
            rprint(f"[red]{run.error}[/red]")
        raise typer.Exit(1)

    degraded = run.degraded_stages()
    if degraded:
        rprint(f"[yellow]Fallback content used for: {', '.join(degraded)}[/yellow]")

    files = [
        GeneratedFile.model_validate(f)
        for f in run.final_artifact["application"]["complete_file_structure"]
    ]
    rprint(f"[green]{len(files)} file(s) generated.[/green]")

    if output is not None:
        try:
            written = write_generated_files(files, output)
        except (ValueError, OSError) as e:
            rprint(f"[red]Could not write files: {e}[/red]")
            raise typer.Exit(1)
        rprint(f"Wrote {len(written)} file(s) to {output}")


async def _generate(session: StudioSession):
    try:
        return await session.generate()
    finally:
        await session.aclose()


@app.command()
def status() -> None:
    """Show agreement and last run status."""
    session = _session()
    current = _load_agreement(session)

    table = Table(title="CTO Studio Status")
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="green")

    completed = len(current.critical_items) - len(current.incomplete_items())
    table.add_row("Readiness", f"{current.overall_readiness}%")
    table.add_row("Critical items", f"{completed}/{len(current.critical_items)}")
    table.add_row("Pending risks", str(len(current.pending_risks())))
    table.add_row("Founder choices", ", ".join(current.founder_choices) or "-")

    context = session.project_context()
    if context is not None:
        stack = context.suggested_tech_stack
        layers = [stack.frontend, stack.backend, stack.database, stack.hosting]
        table.add_row("Suggested stack", " / ".join(filter(None, layers)) or "-")
        table.add_row(
            "Suggested modules", ", ".join(m.name for m in context.suggested_modules) or "-"
        )
    table.add_row(
        "Agreed at",
        current.timestamp.isoformat(timespec="seconds") if current.timestamp else "-",
    )

    last_run = session.last_run()
    if last_run:
        table.add_row("Last run", last_run.get("run_id", ""))
        table.add_row("Run state", last_run.get("state", ""))
        table.add_row("Progress", f"{last_run.get('progress_percent', 0)}%")
        if last_run.get("error"):
            table.add_row("Error", last_run["error"])

    artifact = session.last_artifact()
    if artifact:
        table.add_row("Files", str(artifact.get("file_count", 0)))
        table.add_row("Platform", artifact.get("platform", ""))
        table.add_row("Degraded stages", ", ".join(artifact.get("degraded_stages", [])) or "-")

    console.print(table)
    _print_gate(session)


@app.command()
def version() -> None:
    """Show version information."""
    config = get_config()

    rprint(f"[bold blue]CTO Studio[/bold blue] v{__version__}")
    rprint()
    rprint(f"[dim]LLM Backend:[/dim] {config.llm.backend}")
    rprint(f"[dim]Model:[/dim] {config.llm.model or 'backend default'}")


@app.command()
def config_show() -> None:
    """Show current configuration."""
    cfg = get_config()

    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("llm.backend", cfg.llm.backend)
    table.add_row("llm.model", cfg.llm.model or "(default)")
    table.add_row("llm.base_url", cfg.llm.base_url or "(default)")
    table.add_row("llm.ollama_base_url", cfg.llm.ollama_base_url or "(default)")
    table.add_row("llm.timeout", str(cfg.llm.timeout))
    table.add_row("llm.temperature", str(cfg.llm.temperature))
    table.add_row("llm.max_tokens", str(cfg.llm.max_tokens) if cfg.llm.max_tokens else "(default)")

    table.add_row("pipeline.state_dir", cfg.pipeline.state_dir)
    table.add_row("pipeline.log_level", cfg.pipeline.log_level)
    table.add_row("pipeline.pacing_delay", str(cfg.pipeline.pacing_delay))
    table.add_row("pipeline.stage_timeout", str(cfg.pipeline.stage_timeout))
    table.add_row("pipeline.stage_retries", str(cfg.pipeline.stage_retries))

    console.print(table)


if __name__ == "__main__":
    app()
