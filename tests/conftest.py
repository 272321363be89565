"""Shared fixtures and helpers for tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from contract_studio.core.session import ContractSession
from contract_studio.errors import BackendError
from contract_studio.models import CompileRequest, CompileResponse, CompilerBuild

_REPO_ROOT = Path(__file__).parent.parent

DEBOUNCE = 0.02


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Fake compiler backends
# ---------------------------------------------------------------------------


def contract_output(*names: str, errors: list[Any] | None = None) -> dict[str, Any]:
    """Standard-JSON compiler output with one trivial contract per name."""
    return {
        "contracts": {
            "contract.sol": {
                name: {
                    "abi": [{"type": "function", "name": "f", "inputs": [], "outputs": []}],
                    "evm": {"bytecode": {"object": "6060604052"}},
                    "metadata": '{"compiler":{}}',
                }
                for name in names
            }
        },
        "errors": errors or [],
    }


class ControlledBackend:
    """Backend whose responses are released by the test, in any order."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.requests: list[CompileRequest] = []
        self._pending: dict[int, asyncio.Future[CompileResponse]] = {}

    def is_available(self, build: CompilerBuild) -> bool:
        return self.available

    async def compile(self, request: CompileRequest, build: CompilerBuild) -> CompileResponse:
        self.requests.append(request)
        future: asyncio.Future[CompileResponse] = asyncio.get_running_loop().create_future()
        self._pending[request.request_id] = future
        return await future

    async def respond(self, request_id: int, output: dict[str, Any]) -> None:
        self._pending.pop(request_id).set_result(CompileResponse(request_id=request_id, output=output))
        await settle()

    async def fail(self, request_id: int, error: Exception) -> None:
        self._pending.pop(request_id).set_exception(error)
        await settle()


class InstantBackend:
    """Backend that answers every request immediately with a fixed output."""

    def __init__(self, output: dict[str, Any] | None = None, error: Exception | None = None) -> None:
        self.output = output if output is not None else contract_output("Foo")
        self.error = error
        self.requests: list[CompileRequest] = []

    def is_available(self, build: CompilerBuild) -> bool:
        return True

    async def compile(self, request: CompileRequest, build: CompilerBuild) -> CompileResponse:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return CompileResponse(request_id=request.request_id, output=self.output)


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def builds() -> list[CompilerBuild]:
    return [
        CompilerBuild(
            version="0.4.12",
            long_version="0.4.12-nightly.2017.6.1+commit.96de7a83",
            is_release=False,
            download_url="https://example.test/soljson-v0.4.12-nightly.js",
        ),
        CompilerBuild(
            version="0.4.11",
            long_version="0.4.11+commit.68ef5810",
            is_release=True,
            download_url="https://example.test/soljson-v0.4.11.js",
        ),
        CompilerBuild(
            version="0.4.10",
            long_version="0.4.10+commit.f0d539ae",
            is_release=True,
            download_url="https://example.test/soljson-v0.4.10.js",
        ),
    ]


@pytest.fixture
def controlled_backend() -> ControlledBackend:
    return ControlledBackend()


@pytest.fixture
def session(controlled_backend: ControlledBackend, builds: list[CompilerBuild]) -> ContractSession:
    return ContractSession(controlled_backend, builds, debounce_delay=DEBOUNCE)


@pytest.fixture
def backend_error() -> BackendError:
    return BackendError("worker crashed")
