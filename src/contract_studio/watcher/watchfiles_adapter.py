from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from watchfiles import awatch

logger = logging.getLogger(__name__)

SOLIDITY_SUFFIX = ".sol"


def _is_source_file(path: Path) -> bool:
    return path.suffix == SOLIDITY_SUFFIX


class WatchfilesWatcher:
    """Watch a Solidity source file and hand its new content to a callback.

    The parent directory is watched rather than the file itself so editors
    that save by renaming a temporary file are still picked up.

    Implements the ``FileWatcherPort`` protocol.
    """

    def __init__(
        self,
        source_file: str | Path,
        on_change: Callable[[str], Coroutine[Any, Any, None]],
    ) -> None:
        self._source_file = Path(source_file).resolve()
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    @property
    def source_file(self) -> Path:
        return self._source_file

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", self._source_file)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped for %s", self._source_file)

    async def _watch(self) -> None:
        async for changes in awatch(self._source_file.parent):
            touched = {Path(p).resolve() for _, p in changes if _is_source_file(Path(p))}
            if self._source_file not in touched or not self._source_file.exists():
                continue
            logger.info("Detected change in %s", self._source_file.name)
            try:
                text = self._source_file.read_text(encoding="utf-8")
                await self._on_change(text)
            except Exception:
                logger.exception("Error in watcher callback")
