from pathlib import Path
from typing import Protocol


class FileWatcherPort(Protocol):
    """Feeds saved edits of one Solidity file back into a session."""

    @property
    def source_file(self) -> Path: ...

    @property
    def running(self) -> bool: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
