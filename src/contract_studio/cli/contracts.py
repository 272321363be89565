import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from contract_studio.config import get_settings
from contract_studio.core.session import ContractSession
from contract_studio.storage import JsonFileContractStorage

contracts_app = typer.Typer(help="Manage saved contracts.")
console = Console()


def _get_storage() -> JsonFileContractStorage:
    return JsonFileContractStorage(get_settings().store_path)


def _format_timestamp(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat(timespec="seconds")


@contracts_app.command("list")
def list_contracts(
    snippets: Annotated[bool, typer.Option("--snippets", help="List the bundled snippets instead.")] = False,
) -> None:
    """List saved contracts."""
    storage = _get_storage()

    async def _run() -> None:
        rows = await (storage.list_snippets() if snippets else storage.list_contracts())
        table = Table(show_lines=False)
        for header in ("id", "name", "saved"):
            table.add_column(header)
        for contract in rows:
            table.add_row(contract.id or "", contract.name, _format_timestamp(contract.timestamp))
        console.print(table)
        console.print(f"({len(rows)} rows)")

    asyncio.run(_run())


@contracts_app.command("show")
def show(
    contract_id: Annotated[str, typer.Argument(help="Saved contract id.")],
) -> None:
    """Print the source code of a saved contract."""
    storage = _get_storage()
    contract = asyncio.run(storage.get_contract(contract_id))
    if contract is None:
        console.print(f"[red]No saved contract {contract_id}.[/red]")
        raise typer.Exit(1)
    console.print(f"[bold]{contract.name}[/bold] (saved {_format_timestamp(contract.timestamp)})")
    console.print(Syntax(contract.sourcecode, "solidity", line_numbers=True))


@contracts_app.command("save")
def save(
    path: Annotated[Path, typer.Argument(help="Solidity source file.", exists=True, dir_okay=False)],
    name: Annotated[str | None, typer.Option(help="Name to save under; defaults to the file name.")] = None,
) -> None:
    """Save a Solidity file into the contract store."""
    storage = _get_storage()

    async def _run() -> None:
        async with ContractSession(autocompile=False) as session:
            session.import_source(path.read_text(encoding="utf-8"))
            saved = await session.save_contract(storage, name or path.stem)
        console.print(f"[green]Saved[/green] {saved.name} as {saved.id}")

    asyncio.run(_run())


@contracts_app.command("export")
def export(
    contract_id: Annotated[str, typer.Argument(help="Saved contract id.")],
    directory: Annotated[Path, typer.Option(help="Directory to write the source file into.")] = Path("."),
) -> None:
    """Write a saved contract back to a .sol file."""
    storage = _get_storage()
    contract = asyncio.run(storage.get_contract(contract_id))
    if contract is None:
        console.print(f"[red]No saved contract {contract_id}.[/red]")
        raise typer.Exit(1)

    session = ContractSession(autocompile=False)
    session.load_contract(contract)
    target = directory / session.export_filename
    target.write_text(session.save_payload().sourcecode, encoding="utf-8")
    console.print(f"[green]Exported[/green] {target}")


@contracts_app.command("delete")
def delete(
    contract_id: Annotated[str, typer.Argument(help="Saved contract id.")],
) -> None:
    """Delete a saved contract."""
    storage = _get_storage()
    if not asyncio.run(storage.delete(contract_id)):
        console.print(f"[red]No saved contract {contract_id}.[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Deleted[/green] {contract_id}")
