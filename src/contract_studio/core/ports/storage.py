from typing import Protocol

from contract_studio.models import SavedContract


class ContractStorage(Protocol):
    async def list_contracts(self) -> list[SavedContract]: ...

    async def get_contract(self, contract_id: str) -> SavedContract | None: ...

    async def save(self, sourcecode: str, name: str, contract_id: str | None = None) -> SavedContract: ...

    async def delete(self, contract_id: str) -> bool: ...

    async def list_snippets(self) -> list[SavedContract]: ...
