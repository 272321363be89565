import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from contract_studio.compiler.solc_process import SolcProcessBackend
from contract_studio.config import get_settings
from contract_studio.core.artifacts import extract_metadata_hash
from contract_studio.core.session import ContractSession
from contract_studio.models import CompilerBuild, Severity

console = Console()

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


def _get_backend(solc: str | None = None) -> SolcProcessBackend:
    settings = get_settings()
    return SolcProcessBackend(
        solc_binary=solc or settings.solc_binary,
        solc_dir=settings.solc_dir,
        timeout=settings.compile_timeout,
    )


def _local_build(version: str | None) -> CompilerBuild:
    label = version or "local"
    return CompilerBuild(version=label, long_version=label, is_release=True)


def render_session(session: ContractSession) -> None:
    """Print the compiled contracts and compiler messages of *session*."""
    if session.worker_error is not None:
        console.print(f"[red]Compiler error:[/red] {session.worker_error}")
        return

    if session.contracts is not None:
        if not session.contracts:
            console.print("No contract has been found.")
        else:
            table = Table(show_lines=False)
            for header in ("contract", "bytecode bytes", "metadata hash"):
                table.add_column(header)
            for name, contract in session.contracts.items():
                table.add_row(name, str(len(contract.bytecode) // 2), contract.metadata_hash or "-")
            console.print(table)

    for diagnostic in session.diagnostics:
        style = "magenta" if diagnostic.is_formal_verification else _SEVERITY_STYLES[diagnostic.severity]
        scope = f"[ {diagnostic.contract_name} ]   " if diagnostic.contract_name else ""
        console.print(
            f"{scope}{diagnostic.line}:{diagnostic.column} "
            f"[{style}]{diagnostic.severity.value}[/{style}] {escape(diagnostic.message)}"
        )


def compile_file(
    path: Annotated[Path, typer.Argument(help="Solidity source file.", exists=True, dir_okay=False)],
    optimize: Annotated[bool, typer.Option(help="Enable the solc optimizer.")] = False,
    solc: Annotated[str | None, typer.Option(help="solc binary to use instead of the configured one.")] = None,
    version: Annotated[
        str | None, typer.Option(help="Compiler version, looked up as solc-<version> in CONTRACT_STUDIO_SOLC_DIR.")
    ] = None,
) -> None:
    """Compile a Solidity file once and print the result."""
    source = path.read_text(encoding="utf-8")
    backend = _get_backend(solc)

    async def _run() -> bool:
        async with ContractSession(backend, [_local_build(version)], autocompile=False, optimize=optimize) as session:
            session.import_source(source)
            if session.compile_now() is None:
                console.print("[red]No solc binary available.[/red]")
                return False
            await session.dispatcher.wait_idle()
            render_session(session)
            has_errors = any(d.severity is Severity.ERROR for d in session.diagnostics)
            return session.worker_error is None and session.contracts is not None and not has_errors

    if not asyncio.run(_run()):
        raise typer.Exit(1)


def metadata_hash(
    bytecode: Annotated[str, typer.Argument(help="Contract bytecode, with or without 0x prefix.")],
) -> None:
    """Print the swarm metadata hash embedded in contract bytecode."""
    value = bytecode[2:] if bytecode.startswith("0x") else bytecode
    found = extract_metadata_hash(value)
    if found is None:
        console.print("[yellow]No metadata hash found.[/yellow]")
        raise typer.Exit(1)
    console.print(found)
