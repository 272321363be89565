import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from contract_studio.compiler.solc_process import SolcProcessBackend
from contract_studio.config import get_settings
from contract_studio.core.builds import builds_from_list

builds_app = typer.Typer(help="Inspect compiler builds.")
console = Console()


@builds_app.command("list")
def list_builds(
    list_file: Annotated[Path, typer.Argument(help="A solc-bin list.json document.", exists=True, dir_okay=False)],
    base_url: Annotated[str, typer.Option(help="Prefix for build download URLs.")] = "",
    releases_only: Annotated[bool, typer.Option("--releases-only", help="Hide nightly builds.")] = False,
) -> None:
    """List the builds described by a solc-bin list.json file."""
    builds = builds_from_list(json.loads(list_file.read_text(encoding="utf-8")), base_url)
    settings = get_settings()
    backend = SolcProcessBackend(solc_binary=settings.solc_binary, solc_dir=settings.solc_dir)

    table = Table(show_lines=False)
    for header in ("index", "version", "release", "available", "download"):
        table.add_column(header)
    shown = 0
    for index, build in enumerate(builds):
        if releases_only and not build.is_release:
            continue
        table.add_row(
            str(index),
            build.label,
            "yes" if build.is_release else "no",
            "yes" if backend.is_available(build) else "no",
            build.download_url,
        )
        shown += 1
    console.print(table)
    console.print(f"({shown} builds)")
