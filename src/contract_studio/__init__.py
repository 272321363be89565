"""Headless core of a Solidity contract authoring tool."""

from contract_studio.core.session import ContractSession
from contract_studio.errors import BackendError, ContractStudioError, InvalidIndex, UnknownContract

__version__ = "0.1.0"

__all__ = [
    "BackendError",
    "ContractSession",
    "ContractStudioError",
    "InvalidIndex",
    "UnknownContract",
]
