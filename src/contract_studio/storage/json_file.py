import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import TypeAdapter

from contract_studio.models import SavedContract
from contract_studio.storage.memory import DEFAULT_SNIPPETS, InMemoryContractStorage

logger = logging.getLogger(__name__)

_CONTRACTS_ADAPTER = TypeAdapter(dict[str, SavedContract])


class JsonFileContractStorage(InMemoryContractStorage):
    """Saved contracts kept in a single JSON document on disk."""

    def __init__(self, path: str | Path, snippets: Iterable[SavedContract] = DEFAULT_SNIPPETS) -> None:
        super().__init__(snippets)
        self.path = Path(path)
        self.contracts = self._read()

    async def save(self, sourcecode: str, name: str, contract_id: str | None = None) -> SavedContract:
        saved = await super().save(sourcecode, name, contract_id=contract_id)
        self._write()
        return saved

    async def delete(self, contract_id: str) -> bool:
        deleted = await super().delete(contract_id)
        if deleted:
            self._write()
        return deleted

    def _read(self) -> dict[str, SavedContract]:
        if not self.path.exists():
            return {}
        return _CONTRACTS_ADAPTER.validate_json(self.path.read_bytes())

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = _CONTRACTS_ADAPTER.dump_python(self.contracts, mode="json")
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.debug("Wrote %d contract(s) to %s", len(self.contracts), self.path)
