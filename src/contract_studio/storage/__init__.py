from contract_studio.storage.json_file import JsonFileContractStorage
from contract_studio.storage.memory import DEFAULT_SNIPPETS, InMemoryContractStorage, now_millis

__all__ = [
    "DEFAULT_SNIPPETS",
    "InMemoryContractStorage",
    "JsonFileContractStorage",
    "now_millis",
]
