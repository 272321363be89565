import time
import uuid
from collections.abc import Iterable

from contract_studio.models import SavedContract

DEFAULT_SNIPPETS: tuple[SavedContract, ...] = (
    SavedContract(
        id="snippet-owned",
        name="Owned",
        timestamp=0,
        sourcecode=(
            "pragma solidity ^0.4.11;\n"
            "\n"
            "contract Owned {\n"
            "  address public owner;\n"
            "\n"
            "  modifier onlyOwner { require(msg.sender == owner); _; }\n"
            "\n"
            "  function Owned() { owner = msg.sender; }\n"
            "\n"
            "  function setOwner(address _new) onlyOwner { owner = _new; }\n"
            "}\n"
        ),
    ),
    SavedContract(
        id="snippet-foo",
        name="Foo",
        timestamp=0,
        sourcecode=(
            "pragma solidity ^0.4.11;\n"
            "\n"
            "contract Foo {\n"
            "  uint public value;\n"
            "\n"
            "  function set(uint _value) { value = _value; }\n"
            "}\n"
        ),
    ),
)


def now_millis() -> int:
    return int(time.time() * 1000)


class InMemoryContractStorage:
    def __init__(self, snippets: Iterable[SavedContract] = DEFAULT_SNIPPETS) -> None:
        self.contracts: dict[str, SavedContract] = {}
        self.snippets = list(snippets)

    async def list_contracts(self) -> list[SavedContract]:
        return sorted(self.contracts.values(), key=lambda c: c.timestamp, reverse=True)

    async def get_contract(self, contract_id: str) -> SavedContract | None:
        return self.contracts.get(contract_id)

    async def save(self, sourcecode: str, name: str, contract_id: str | None = None) -> SavedContract:
        new_id = contract_id or str(uuid.uuid4())
        saved = SavedContract(
            id=new_id,
            name=name,
            sourcecode=sourcecode,
            timestamp=now_millis(),
        )
        self.contracts[new_id] = saved
        return saved

    async def delete(self, contract_id: str) -> bool:
        return self.contracts.pop(contract_id, None) is not None

    async def list_snippets(self) -> list[SavedContract]:
        return list(self.snippets)
