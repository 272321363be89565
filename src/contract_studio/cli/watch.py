import asyncio
import contextlib
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from contract_studio.cli.compile import _get_backend, _local_build, render_session
from contract_studio.config import get_settings
from contract_studio.core.events import SessionEvent, StateChange
from contract_studio.core.session import ContractSession
from contract_studio.watcher.watchfiles_adapter import WatchfilesWatcher

console = Console()


def watch(
    path: Annotated[Path, typer.Argument(help="Solidity source file to watch.", exists=True, dir_okay=False)],
    optimize: Annotated[bool, typer.Option(help="Enable the solc optimizer.")] = False,
    solc: Annotated[str | None, typer.Option(help="solc binary to use instead of the configured one.")] = None,
    version: Annotated[str | None, typer.Option(help="Compiler version to look up in CONTRACT_STUDIO_SOLC_DIR.")] = None,
) -> None:
    """Recompile a Solidity file every time it is saved."""
    settings = get_settings()
    backend = _get_backend(solc)

    async def _run() -> None:
        session = ContractSession(
            backend,
            [_local_build(version)],
            debounce_delay=settings.debounce_delay,
            optimize=optimize,
        )

        def _on_change(change: StateChange) -> None:
            if change.event is SessionEvent.COMPILE_STARTED:
                console.print(f"[dim]Compiling ({change.fields['request_id']})...[/dim]")
            elif change.event in (SessionEvent.COMPILE_FINISHED, SessionEvent.COMPILE_FAILED):
                render_session(session)

        async def _on_file_change(text: str) -> None:
            session.import_source(text)

        session.subscribe(_on_change)
        watcher = WatchfilesWatcher(path, _on_file_change)
        session.import_source(path.read_text(encoding="utf-8"))
        await watcher.start()
        console.print(f"[green]Watching[/green] {path} (Ctrl+C to stop)")
        try:
            await asyncio.Event().wait()
        finally:
            await watcher.stop()
            await session.aclose()

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_run())
