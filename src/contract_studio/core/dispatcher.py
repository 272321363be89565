"""Debounced, latest-wins dispatch of compile requests.

Every dispatched request gets a fresh, strictly increasing ``request_id``. A
response is applied only when its echoed id equals the latest id issued;
anything older was superseded and is dropped without touching the session.
Superseded compiler processes are left to finish, their results discarded.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from contract_studio.core.builds import BuildRegistry
from contract_studio.core.diagnostics import normalize
from contract_studio.core.output import partition_output
from contract_studio.core.ports.compiler import CompilerBackend
from contract_studio.core.timing import DEFAULT_INTERVAL, Debouncer
from contract_studio.errors import BackendError
from contract_studio.models import (
    CompiledContract,
    CompileRequest,
    CompileResponse,
    CompilerBuild,
    Diagnostic,
    SourceDocument,
)

logger = logging.getLogger(__name__)


class DispatcherState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    COMPILING = "compiling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class CompileOutcome:
    request: CompileRequest
    contracts: dict[str, CompiledContract] | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: BackendError | None = None


class DispatchHost(Protocol):
    document: SourceDocument
    registry: BuildRegistry
    optimize: bool
    autocompile: bool
    worker_error: BackendError | None

    def on_compile_started(self, request: CompileRequest) -> None: ...

    def on_compile_settled(self, outcome: CompileOutcome) -> None: ...


class CompileDispatcher:
    def __init__(
        self,
        host: DispatchHost,
        backend: CompilerBackend | None = None,
        debounce_delay: float = DEFAULT_INTERVAL,
    ) -> None:
        self._host = host
        self.backend = backend
        self.state = DispatcherState.IDLE
        self._latest_request_id = 0
        self._discard_through = 0
        self._latest_outstanding = False
        self._debouncer = Debouncer(debounce_delay, self._on_debounce_elapsed)
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def latest_request_id(self) -> int:
        return self._latest_request_id

    @property
    def debounce_pending(self) -> bool:
        return self._debouncer.pending

    @property
    def awaiting_latest(self) -> bool:
        return self._latest_outstanding and self._latest_request_id > self._discard_through

    def on_edit(self) -> None:
        if not self._host.autocompile:
            return
        self.state = DispatcherState.DEBOUNCING
        self._debouncer.schedule()

    def cancel_pending(self) -> None:
        self._debouncer.cancel()
        if self.state is DispatcherState.DEBOUNCING:
            self.state = self._resting_state()

    def invalidate(self) -> None:
        """Drop the results of every request issued so far."""
        self._debouncer.cancel()
        self._discard_through = self._latest_request_id
        self._latest_outstanding = False
        self.state = DispatcherState.IDLE

    def dispatch(self) -> CompileRequest | None:
        """Issue a compile request for the current source, or return ``None`` when not possible."""
        self._debouncer.cancel()
        host = self._host
        build = host.registry.selected

        reason = None
        if self.backend is None:
            reason = "no compiler backend"
        elif host.worker_error is not None:
            reason = "compiler backend failed"
        elif build is None:
            reason = "no build selected"
        elif not build.ready:
            reason = f"build {build.long_version} is not ready"

        if reason is not None or build is None:
            logger.info("Compile skipped: %s", reason)
            self.state = self._resting_state()
            return None

        # Raises RuntimeError outside an event loop, before any state is touched.
        loop = asyncio.get_running_loop()

        self._latest_request_id += 1
        request = CompileRequest(
            request_id=self._latest_request_id,
            source_text=host.document.text,
            build_index=host.registry.selected_index,
            optimize=host.optimize,
        )
        self.state = DispatcherState.COMPILING
        self._latest_outstanding = True
        host.on_compile_started(request)
        logger.info("Dispatching compile request %d with solc %s", request.request_id, build.long_version)

        task = loop.create_task(self._run(request, build))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return request

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*self._tasks)

    async def aclose(self) -> None:
        self._debouncer.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        self.state = DispatcherState.IDLE

    def _on_debounce_elapsed(self) -> None:
        self.dispatch()

    async def _run(self, request: CompileRequest, build: CompilerBuild) -> None:
        assert self.backend is not None
        try:
            response = await self.backend.compile(request, build)
        except asyncio.CancelledError:
            raise
        except BackendError as exc:
            self._settle_failure(request, exc)
        except Exception as exc:
            logger.exception("Compiler backend crashed on request %d", request.request_id)
            error = BackendError(str(exc) or exc.__class__.__name__)
            error.__cause__ = exc
            self._settle_failure(request, error)
        else:
            self._settle_response(request, response)

    def _is_stale(self, request_id: int) -> bool:
        return request_id != self._latest_request_id or request_id <= self._discard_through

    def _settle_response(self, request: CompileRequest, response: CompileResponse) -> None:
        if self._is_stale(request.request_id):
            logger.debug(
                "Discarding stale response %d (latest is %d)", response.request_id, self._latest_request_id
            )
            return
        if response.request_id != request.request_id:
            error = BackendError(f"Compiler answered request {request.request_id} with id {response.request_id}")
            self._settle_failure(request, error)
            return

        contracts, raw_diagnostics = partition_output(response.output)
        diagnostics = normalize(raw_diagnostics, request.source_text)
        self._latest_outstanding = False
        self.state = DispatcherState.DEBOUNCING if self._debouncer.pending else DispatcherState.SUCCEEDED
        logger.info(
            "Compile request %d finished: %d contract(s), %d diagnostic(s)",
            request.request_id,
            len(contracts or {}),
            len(diagnostics),
        )
        self._host.on_compile_settled(CompileOutcome(request=request, contracts=contracts, diagnostics=diagnostics))

    def _settle_failure(self, request: CompileRequest, error: BackendError) -> None:
        if self._is_stale(request.request_id):
            logger.debug("Discarding stale failure of request %d: %s", request.request_id, error)
            return
        self._latest_outstanding = False
        self._debouncer.cancel()
        self.state = DispatcherState.FAILED
        logger.error("Compile request %d failed: %s", request.request_id, error)
        self._host.on_compile_settled(CompileOutcome(request=request, error=error))

    def _resting_state(self) -> DispatcherState:
        if self.awaiting_latest:
            return DispatcherState.COMPILING
        return DispatcherState.IDLE
