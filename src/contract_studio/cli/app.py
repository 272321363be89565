import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from contract_studio.cli.builds import builds_app
from contract_studio.cli.compile import compile_file, metadata_hash
from contract_studio.cli.contracts import contracts_app
from contract_studio.cli.watch import watch

app = typer.Typer(
    name="contract-studio",
    help="Contract Studio CLI: compile Solidity contracts and manage saved sources.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


app.command("compile")(compile_file)
app.command("watch")(watch)
app.command("hash")(metadata_hash)
app.add_typer(builds_app, name="builds")
app.add_typer(contracts_app, name="contracts")


def main() -> None:
    app()
