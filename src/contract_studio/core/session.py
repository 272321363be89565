"""The contract-editing session.

``ContractSession`` is the single owner and mutator of everything the
authoring view renders: the source document, the compiler builds, the latest
compilation result and the saved-contract metadata. Renderers subscribe to
``StateChange`` notifications and read the session's attributes back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from contract_studio.core import artifacts
from contract_studio.core.builds import BuildRegistry
from contract_studio.core.diagnostics import editor_annotations
from contract_studio.core.dispatcher import CompileDispatcher, CompileOutcome, DispatcherState
from contract_studio.core.events import EventEmitter, SessionEvent, StateChange, Subscriber
from contract_studio.core.ports.compiler import CompilerBackend
from contract_studio.core.ports.storage import ContractStorage
from contract_studio.core.timing import DEFAULT_INTERVAL
from contract_studio.errors import BackendError, UnknownContract
from contract_studio.models import (
    CompiledContract,
    CompileRequest,
    CompilerBuild,
    DeploymentPayload,
    Diagnostic,
    EditorState,
    SavedContract,
    SavePayload,
    SourceDocument,
)

logger = logging.getLogger(__name__)

NEW_CONTRACT_TITLE = "New Solidity Contract"


class ContractSession:
    def __init__(
        self,
        backend: CompilerBackend | None = None,
        builds: Iterable[CompilerBuild] = (),
        *,
        debounce_delay: float = DEFAULT_INTERVAL,
        autocompile: bool = True,
        optimize: bool = False,
    ) -> None:
        self.document = SourceDocument()
        self.registry = BuildRegistry()
        self.autocompile = autocompile
        self.optimize = optimize
        self.worker_error: BackendError | None = None
        self.events = EventEmitter()
        self.dispatcher = CompileDispatcher(self, backend, debounce_delay)
        self._reset_compiled_state()
        self.saved: SavedContract | None = None

        builds = list(builds)
        if builds:
            self.load_builds(builds)

    async def __aenter__(self) -> ContractSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.dispatcher.aclose()
        self.compiling = False

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.events.subscribe(callback)

    @property
    def sourcecode(self) -> str:
        return self.document.text

    @property
    def dirty(self) -> bool:
        return self.document.dirty

    @property
    def builds(self) -> tuple[CompilerBuild, ...]:
        return self.registry.builds

    @property
    def selected_build(self) -> int:
        return self.registry.selected_index

    @property
    def loading(self) -> bool:
        """A build is selected but its compiler is not loaded yet."""
        build = self.registry.selected
        return build is not None and not build.ready

    @property
    def latest_request_id(self) -> int:
        return self.dispatcher.latest_request_id

    @property
    def dispatcher_state(self) -> DispatcherState:
        return self.dispatcher.state

    @property
    def selected_contract(self) -> CompiledContract | None:
        if self.contracts is None or self.selected_contract_name is None:
            return None
        return self.contracts.get(self.selected_contract_name)

    @property
    def annotations(self) -> list[Diagnostic]:
        return editor_annotations(self.diagnostics)

    @property
    def editor_state(self) -> EditorState:
        return EditorState(text=self.document.text, annotations=self.annotations)

    @property
    def title(self) -> str:
        if self.saved is None or not self.saved.name:
            return NEW_CONTRACT_TITLE
        return self.saved.name

    @property
    def export_filename(self) -> str:
        return artifacts.export_filename(self.saved.name if self.saved else None)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def edit_source(self, text: str) -> None:
        self.document = SourceDocument(text=text, dirty=True)
        self._emit(SessionEvent.SOURCE_CHANGED, dirty=True)
        self.dispatcher.on_edit()

    def import_source(self, text: str) -> None:
        """Replace the whole document, e.g. with an imported file."""
        logger.info("Importing %d characters of source code", len(text))
        self.edit_source(text)

    def compile_now(self) -> CompileRequest | None:
        return self.dispatcher.dispatch()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def load_builds(self, builds: Iterable[CompilerBuild]) -> None:
        self.registry.load(builds)
        index = self.registry.latest_release_index()
        if index >= 0:
            self.registry.select(index)
            self._load_selected_build()
        self._emit(SessionEvent.BUILDS_CHANGED, selected_build=self.registry.selected_index)

    def select_build(self, index: int) -> None:
        self.registry.select(index)
        self._load_selected_build()
        self._emit(SessionEvent.CONFIG_CHANGED, selected_build=index)

    def mark_build_ready(self, index: int) -> None:
        self.registry.mark_ready(index)
        self._emit(SessionEvent.BUILDS_CHANGED, selected_build=self.registry.selected_index)

    def toggle_optimize(self) -> None:
        self.optimize = not self.optimize
        self._emit(SessionEvent.CONFIG_CHANGED, optimize=self.optimize)

    def toggle_autocompile(self) -> None:
        self.autocompile = not self.autocompile
        if not self.autocompile:
            self.dispatcher.cancel_pending()
        self._emit(SessionEvent.CONFIG_CHANGED, autocompile=self.autocompile)

    def set_worker(self, backend: CompilerBackend) -> None:
        """(Re)initialize the compiler backend, clearing any recorded worker error."""
        self.dispatcher.backend = backend
        self.worker_error = None
        self._load_selected_build()
        logger.info("Compiler backend set to %s", type(backend).__name__)
        self._emit(SessionEvent.WORKER_ERROR, worker_error=None)

    def set_worker_error(self, error: BackendError | str) -> None:
        self.worker_error = error if isinstance(error, BackendError) else BackendError(error)
        self.compiling = False
        self._emit(SessionEvent.WORKER_ERROR, worker_error=str(self.worker_error))

    # ------------------------------------------------------------------
    # Compilation results
    # ------------------------------------------------------------------

    def select_contract(self, name: str) -> None:
        if self.contracts is None or name not in self.contracts:
            raise UnknownContract(name)
        self.selected_contract_name = name
        self._emit(SessionEvent.CONTRACT_SELECTED, name=name)

    def deployment_payload(self) -> DeploymentPayload:
        contract = self.selected_contract
        if contract is None:
            raise UnknownContract(self.selected_contract_name)
        return DeploymentPayload(
            abi=contract.abi_interface,
            bytecode_with_prefix=artifacts.with_hex_prefix(contract.bytecode),
            sourcecode=self.document.text,
        )

    def on_compile_started(self, request: CompileRequest) -> None:
        self.compiling = True
        self._emit(SessionEvent.COMPILE_STARTED, request_id=request.request_id)

    def on_compile_settled(self, outcome: CompileOutcome) -> None:
        self.compiling = False
        self.diagnostics = list(outcome.diagnostics)

        if outcome.error is not None:
            self.worker_error = outcome.error
            self._emit(SessionEvent.COMPILE_FAILED, request_id=outcome.request.request_id, error=str(outcome.error))
            return

        self.compiled = True
        self.contracts = outcome.contracts
        if self.contracts and self.selected_contract_name not in self.contracts:
            self.selected_contract_name = next(iter(self.contracts))
        elif not self.contracts:
            self.selected_contract_name = None
        self._emit(
            SessionEvent.COMPILE_FINISHED,
            request_id=outcome.request.request_id,
            contracts=sorted(self.contracts or {}),
            diagnostics=len(self.diagnostics),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load_contract(self, saved: SavedContract | Mapping[str, Any]) -> None:
        contract = saved if isinstance(saved, SavedContract) else SavedContract.model_validate(saved)
        self.dispatcher.invalidate()
        self._reset_compiled_state()
        self.document = SourceDocument(text=contract.sourcecode, dirty=False)
        self.saved = contract
        logger.info("Loaded contract %r", contract.name)
        self._emit(SessionEvent.CONTRACT_LOADED, name=contract.name, timestamp=contract.timestamp)
        self.dispatcher.on_edit()

    def new_contract(self) -> None:
        self.dispatcher.invalidate()
        self._reset_compiled_state()
        self.document = SourceDocument()
        self.saved = None
        self._emit(SessionEvent.SESSION_RESET)

    def save_payload(self) -> SavePayload:
        return SavePayload(sourcecode=self.document.text, name=self.saved.name if self.saved else None)

    async def save_contract(self, storage: ContractStorage, name: str | None = None) -> SavedContract:
        """Persist the current source, under *name* or the name it was loaded with."""
        contract_name = name or (self.saved.name if self.saved else None)
        if not contract_name:
            raise ValueError("A name is required to save a new contract")

        contract_id = self.saved.id if self.saved and self.saved.name == contract_name else None
        saved = await storage.save(self.document.text, contract_name, contract_id=contract_id)
        self.saved = saved
        self.document = SourceDocument(text=self.document.text, dirty=False)
        self._emit(SessionEvent.CONTRACT_SAVED, name=saved.name, timestamp=saved.timestamp)
        return saved

    async def delete_contract(self, storage: ContractStorage, contract_id: str) -> bool:
        deleted = await storage.delete(contract_id)
        if deleted and self.saved is not None and self.saved.id == contract_id:
            self.saved = None
            self._emit(SessionEvent.CONTRACT_SAVED, name=None, timestamp=None)
        return deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _reset_compiled_state(self) -> None:
        self.contracts: dict[str, CompiledContract] | None = None
        self.selected_contract_name: str | None = None
        self.diagnostics: list[Diagnostic] = []
        self.compiling = False
        self.compiled = False

    def _load_selected_build(self) -> None:
        build = self.registry.selected
        backend = self.dispatcher.backend
        if build is not None and not build.ready and backend is not None and backend.is_available(build):
            self.registry.mark_ready(self.registry.selected_index)

    def _emit(self, event: SessionEvent, **fields: Any) -> StateChange:
        return self.events.emit(event, **fields)
