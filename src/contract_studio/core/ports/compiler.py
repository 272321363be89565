from typing import Protocol

from contract_studio.models import CompileRequest, CompileResponse, CompilerBuild


class CompilerBackend(Protocol):
    async def compile(self, request: CompileRequest, build: CompilerBuild) -> CompileResponse: ...

    def is_available(self, build: CompilerBuild) -> bool: ...
