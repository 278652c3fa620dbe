from __future__ import annotations

"""yapl Command Line Interface."""

import dataclasses
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from yapl.core.types import Defaults
from yapl.engine.provider import Provider
from yapl.engine.registry import BACKENDS, build_provider, load_providers_from_yaml
from yapl.exceptions import YaplError
from yapl.io.cache import FileCache
from yapl.runtime import Yapl
from yapl.utils import events as _events
from yapl.utils.logging import setup as _setup_logging

app = typer.Typer(
    name="yapl",
    help="CLI for yapl: YAML-declared chains of LLM calls.",
    add_completion=False,
)

console = Console()


# --------------------------------------------------------------------------- #
# helpers
# --------------------------------------------------------------------------- #

def _parse_inputs(pairs: List[str], inputs_json: Optional[Path]) -> Dict[str, Any]:
    """Merge ``--inputs-json`` with ``--input key=value`` pairs (pairs win)."""
    data: Dict[str, Any] = {}
    if inputs_json is not None:
        loaded = json.loads(inputs_json.read_text(encoding="utf-8"))
        if not isinstance(loaded, dict):
            console.print(f"[bold red]Error: {inputs_json} must contain a JSON object.[/]")
            raise typer.Exit(code=1)
        data.update(loaded)
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            console.print(f"[bold red]Error: invalid --input '{pair}', expected key=value.[/]")
            raise typer.Exit(code=1)
        # YAML scalars: numbers, booleans and lists parse; anything else stays a string
        try:
            data[key] = yaml.safe_load(raw) if raw else ""
        except yaml.YAMLError:
            data[key] = raw
    return data


def _build_providers(providers_file: Optional[Path], backend: str) -> List[Provider]:
    if providers_file is not None:
        return load_providers_from_yaml(providers_file)
    return [build_provider(backend, backend=backend)]


def _build_engine(
    providers_file: Optional[Path] = None,
    backend: str = "openai",
    provider: Optional[str] = None,
    model: Optional[str] = None,
    cache_dir: Optional[Path] = None,
    max_tool_rounds: Optional[int] = None,
) -> Yapl:
    providers = _build_providers(providers_file, backend)
    if provider is None and len(providers) == 1:
        provider = providers[0].name
    return Yapl(
        providers=providers,
        defaults=Defaults(provider=provider, model=model),
        cache=FileCache(cache_dir) if cache_dir is not None else None,
        max_tool_rounds=max_tool_rounds,
    )


def _print_event(evt: _events.Event) -> None:
    payload = {"event": type(evt).__name__, **dataclasses.asdict(evt)}
    typer.echo(json.dumps(payload, default=str), err=True)


_EVENT_TYPES = (
    _events.ChainStarted,
    _events.ChainFinished,
    _events.OutputFinished,
    _events.CacheHit,
    _events.ToolCalled,
    _events.OutputParseFailed,
)


# --------------------------------------------------------------------------- #
# commands
# --------------------------------------------------------------------------- #

@app.command()
def run(
    file: Path = typer.Argument(..., help="YAML program file.", exists=True, file_okay=True, dir_okay=False, readable=True),
    input: List[str] = typer.Option([], "--input", "-i", help="Input as key=value (repeatable)."),
    inputs_json: Path = typer.Option(None, "--inputs-json", help="JSON file holding an object of inputs.", exists=True, dir_okay=False),
    providers_file: Path = typer.Option(None, "--providers", help="YAML list of provider definitions.", exists=True, dir_okay=False),
    backend: str = typer.Option("openai", "--backend", help=f"Backend used without --providers ({', '.join(sorted(BACKENDS))})."),
    provider: str = typer.Option(None, "--provider", help="Default provider name."),
    model: str = typer.Option(None, "--model", "-m", help="Default model name."),
    cache_dir: Path = typer.Option(None, "--cache-dir", help="Directory for the on-disk response cache.", file_okay=False),
    max_tool_rounds: int = typer.Option(None, "--max-tool-rounds", help="Fail when tool calls exceed this many rounds."),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit execution events as JSON lines on stderr."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
):
    """Run a YAML program and print its default output."""
    _setup_logging("debug" if verbose else "warning")
    inputs = _parse_inputs(input, inputs_json)

    if json_logs:
        for et in _EVENT_TYPES:
            _events.subscribe(et)(_print_event)

    try:
        engine = _build_engine(providers_file, backend, provider, model, cache_dir, max_tool_rounds)
        program = engine.load_file(file)
        result = program.run_sync(inputs)
    except YaplError as e:
        console.print(f"[bold red]Error:[/] {escape(str(e))}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[bold red]Error during program execution: {escape(str(e))}[/]")
        import traceback
        console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
        raise typer.Exit(code=1)
    finally:
        if json_logs:
            for et in _EVENT_TYPES:
                _events.unsubscribe(et, _print_event)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
        return

    if result.output is None:
        console.print("[yellow]No default output produced.[/]")
    else:
        typer.echo(result.content)
    c = result.cost
    console.print(f"[dim]cost: ${c.usd:.6f} • {c.tokens} tokens • {c.ms:.0f} ms[/dim]", highlight=False)


@app.command()
def validate(
    file: Path = typer.Argument(..., help="YAML program file.", exists=True, file_okay=True, dir_okay=False, readable=True),
):
    """Check a YAML program without calling any provider."""
    from yapl.yaml_loader import load_document

    try:
        display, _ = load_document(file)
    except YaplError as e:
        console.print(f"[bold red]Invalid:[/] {escape(str(e))}")
        raise typer.Exit(code=1)
    console.print(f"[bold green]{display}: OK[/]")


@app.command()
def inspect(
    file: Path = typer.Argument(..., help="YAML program file.", exists=True, file_okay=True, dir_okay=False, readable=True),
):
    """Print the execution plan (waves, chains and instructions) as a tree."""
    from yapl.utils.dag import build_rich_tree

    try:
        program = Yapl(providers=[]).load_file(file)
    except YaplError as e:
        console.print(f"[bold red]Invalid:[/] {escape(str(e))}")
        raise typer.Exit(code=1)

    console.print(build_rich_tree(program))
    console.print(f"[green]{len(program.chain_names())} chain(s) in {len(program.waves())} wave(s).[/]")


@app.command()
def providers(
    providers_file: Path = typer.Argument(..., help="YAML list of provider definitions.", exists=True, dir_okay=False),
):
    """List the providers defined in a providers YAML file."""
    built = load_providers_from_yaml(providers_file)
    if not built:
        console.print("[yellow]No providers defined.[/]")
        return

    table = Table(title="Providers")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Backend", style="magenta")
    table.add_column("Base URL", style="green")
    for p in built:
        table.add_row(p.name, type(p).__name__, str(getattr(p, "base_url", "-")))
    console.print(table)


@app.command()
def schema():
    """Print the JSON schema of yapl documents."""
    from yapl.core.schema import document_json_schema

    typer.echo(json.dumps(document_json_schema(), indent=2))


if __name__ == "__main__":
    app()
