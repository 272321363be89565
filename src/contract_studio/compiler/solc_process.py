"""Compile in a separate ``solc --standard-json`` process.

Each request runs its own compiler process, so a slow compilation never
blocks the event loop and a crashed compiler only fails the request that
started it.
"""

import asyncio
import json
import logging
import os
import shutil
from pathlib import Path
from typing import Any

from contract_studio.errors import BackendError
from contract_studio.models import CompileRequest, CompileResponse, CompilerBuild

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_NAME = "contract.sol"
_OPTIMIZER_RUNS = 200


def standard_json_input(source_text: str, optimize: bool, source_name: str = DEFAULT_SOURCE_NAME) -> dict[str, Any]:
    return {
        "language": "Solidity",
        "sources": {source_name: {"content": source_text}},
        "settings": {
            "optimizer": {"enabled": optimize, "runs": _OPTIMIZER_RUNS},
            "outputSelection": {"*": {"*": ["abi", "evm.bytecode.object", "metadata"]}},
        },
    }


class SolcProcessBackend:
    """Run solc binaries as subprocesses.

    Binaries for specific builds are looked up as ``solc-<version>`` (or
    ``solc-<longVersion>``) inside *solc_dir*; otherwise *solc_binary* is
    resolved on ``PATH``.
    """

    def __init__(
        self,
        solc_binary: str = "solc",
        solc_dir: str | Path | None = None,
        timeout: float = 60.0,
        source_name: str = DEFAULT_SOURCE_NAME,
    ) -> None:
        self._solc_binary = solc_binary
        self._solc_dir = Path(solc_dir) if solc_dir else None
        self._timeout = timeout
        self._source_name = source_name

    def resolve_binary(self, build: CompilerBuild) -> str | None:
        if self._solc_dir is not None:
            for version in (build.long_version, build.version):
                candidate = self._solc_dir / f"solc-{version}"
                if candidate.is_file() and os.access(candidate, os.X_OK):
                    return str(candidate)
        return shutil.which(self._solc_binary)

    def is_available(self, build: CompilerBuild) -> bool:
        return self.resolve_binary(build) is not None

    async def compile(self, request: CompileRequest, build: CompilerBuild) -> CompileResponse:
        binary = self.resolve_binary(build)
        if binary is None:
            raise BackendError(f"No solc binary available for {build.long_version}")

        payload = json.dumps(standard_json_input(request.source_text, request.optimize, self._source_name))
        try:
            process = await asyncio.create_subprocess_exec(
                binary,
                "--standard-json",
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise BackendError(f"Could not start {binary}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(payload.encode("utf-8")), self._timeout)
        except asyncio.TimeoutError:
            await _kill(process)
            raise BackendError(f"solc timed out after {self._timeout:g}s") from None
        except asyncio.CancelledError:
            await _kill(process)
            raise

        if process.returncode != 0 and not stdout.strip():
            message = stderr.decode("utf-8", errors="replace").strip() or f"exit code {process.returncode}"
            raise BackendError(f"solc failed: {message}")

        try:
            output = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise BackendError(f"solc returned invalid JSON: {exc}") from exc

        logger.debug("solc %s answered request %d", build.long_version, request.request_id)
        return CompileResponse(request_id=request.request_id, output=output)


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        process.kill()
        await process.wait()
