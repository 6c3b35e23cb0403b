"""Command-line interface for crate_registry.

Provides subcommands for inspecting the crate registry, license evidence,
and the normalized resolve graph of a Cargo workspace.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from crate_registry.errors import MetadataError
from crate_registry.metadata import BaseMetadataSource, CargoMetadataSource, JsonMetadataSource
from crate_registry.registry import Crates, get_all_crates

app = typer.Typer(
    name="crate-registry",
    help="Inspect the resolved crates and license evidence of a Cargo workspace.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("crate_registry")

ManifestOption = Annotated[
    Path,
    typer.Option(
        "--manifest-path",
        "-m",
        envvar="CRATE_REGISTRY_MANIFEST",
        help="Path to the workspace Cargo.toml",
    ),
]
MetadataOption = Annotated[
    Optional[Path],
    typer.Option(
        "--metadata",
        help="Saved `cargo metadata --format-version 1` output to use instead of running cargo",
        exists=True,
        readable=True,
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
]


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("crate_registry").setLevel(level)


def _load_crates(manifest_path: Path, metadata: Optional[Path]) -> Crates:
    """Build the registry, exiting with code 1 on metadata errors."""
    source: BaseMetadataSource
    if metadata is not None:
        source = JsonMetadataSource(metadata)
    else:
        source = CargoMetadataSource(manifest_path)

    try:
        return get_all_crates(manifest_path.parent, source=source)
    except MetadataError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


@app.command("list")
def list_crates(
    manifest_path: ManifestOption = Path("Cargo.toml"),
    metadata: MetadataOption = None,
    show_ids: Annotated[
        bool,
        typer.Option(
            "--ids",
            help="Include package ids, to tell vendored copies apart",
        ),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """List every resolved crate in canonical order."""
    _setup_logging(verbose)
    crates = _load_crates(manifest_path, metadata)

    table = Table(title=f"{len(crates)} crates")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("License")
    if show_ids:
        table.add_column("Id", style="dim", overflow="fold")

    for crate in crates:
        row = [crate.name, str(crate.version), " / ".join(crate.license) or "-"]
        if show_ids:
            row.append(crate.id)
        table.add_row(*row)

    console.print(table)


@app.command()
def licenses(
    manifest_path: ManifestOption = Path("Cargo.toml"),
    metadata: MetadataOption = None,
    crate_name: Annotated[
        Optional[str],
        typer.Option(
            "--crate",
            "-c",
            help="Only show evidence for crates with this name",
        ),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Show the license evidence collected for each crate."""
    _setup_logging(verbose)
    crates = _load_crates(manifest_path, metadata)

    shown = 0
    for crate in crates:
        if crate_name and crate.name != crate_name:
            continue

        shown += 1
        console.print(f"[bold]{crate.name}[/bold] {crate.version}")
        evidence = list(crate.licenses())
        if not evidence:
            console.print("  [yellow]no license evidence[/yellow]")
        for info in evidence:
            console.print(f"  - {info}", soft_wrap=True, markup=False, highlight=False)

    if crate_name and not shown:
        err_console.print(f"[red]Error:[/red] crate '{crate_name}' not found")
        raise typer.Exit(code=1)


@app.command()
def graph(
    manifest_path: ManifestOption = Path("Cargo.toml"),
    metadata: MetadataOption = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Write the normalized resolve graph as canonical JSON",
        ),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Print the size and fingerprint of the normalized resolve graph."""
    _setup_logging(verbose)
    crates = _load_crates(manifest_path, metadata)
    resolved = crates.resolved
    if resolved is None:
        err_console.print("[red]Error:[/red] metadata did not include a resolve graph")
        raise typer.Exit(code=1)

    console.print(f"Nodes: [bold]{len(resolved.nodes)}[/bold]")
    console.print(f"Fingerprint: [bold]{resolved.fingerprint():08x}[/bold]")

    if output:
        try:
            output.write_text(resolved.to_json(), encoding="utf-8")
        except OSError as e:
            err_console.print(f"[red]Error writing output:[/red] {e}")
            raise typer.Exit(code=1)
        console.print(f"[green]Generated:[/green] {output}")
